#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""Merging imported samples into a destination buffer.

The destination buffer keeps its own values by default. An imported sample
replaces the destination value only in the slot whose reconstructed time
equals the sample's timestamp exactly, and only inside the destination's time
window (oldest to newest slot). Nothing is resampled or interpolated.

Import files written from another circular buffer are in slot order, which is
chronological order rotated at the old buffer's write position. Lookups use
a binary search that copes with that single rotation.
"""

import numpy as np
import pandas as pd

from .logging_config import logger
from .rra_time import slot_window

__all__ = ["search_rotated", "is_rotated_sorted", "merge_samples"]


def search_rotated(arr, key):
    """ Index of key in a sorted-and-rotated array without duplicates.

    Parameters
    ----------
    arr : sequence of int
        Ascending sequence rotated at an arbitrary point, e.g.
        ``[40, 50, 10, 20, 30]``.

    key : int
        Value to look for.

    Returns
    -------
    index : int or None
        Position of key, or None when it is absent. 0 is a valid result and
        never means "not found".
    """
    lo, hi = 0, len(arr) - 1
    while lo <= hi:
        mid = (lo + hi) // 2
        if arr[mid] == key:
            return mid
        if arr[lo] <= arr[mid]:
            # arr[lo..mid] is ascending
            if arr[lo] <= key < arr[mid]:
                hi = mid - 1
            else:
                lo = mid + 1
        else:
            # arr[mid..hi] is ascending
            if arr[mid] < key <= arr[hi]:
                lo = mid + 1
            else:
                hi = mid - 1
    return None


def is_rotated_sorted(arr):
    """ True if arr is strictly ascending apart from at most one rotation point """
    arr = np.asarray(arr)
    if len(arr) < 2:
        return True
    descents = np.count_nonzero(np.diff(arr) <= 0)
    if descents == 0:
        return True
    return descents == 1 and arr[-1] < arr[0]


def merge_samples(times, values, file_offset, import_times, import_values, window=None):
    """ Fill a destination buffer with imported samples at matching times.

    Parameters
    ----------
    times : numpy.ndarray
        Reconstructed timestamp of every destination slot.

    values : pandas.Series
        Destination values, slot aligned with times. NA marks unfilled slots.

    file_offset : int
        Destination slot holding the newest sample.

    import_times : sequence of int
        Timestamps of the imported samples, already limited to the cutoff.

    import_values : sequence
        Imported values aligned with import_times.

    window : tuple of int, optional
        (oldest, newest) destination timestamps, as from
        :func:`rrd_transfer.rra_time.time_window`. Derived from times and
        file_offset when omitted.

    Returns
    -------
    merged : pandas.Series
        Copy of values with every slot whose timestamp appears in the import
        replaced by the imported value.

    Raises
    ------
    IndexError
        If the import holds more samples than the destination has slots.
    ValueError
        If the input lengths are inconsistent.
    """
    n = len(times)
    if len(values) != n:
        raise ValueError(f"{n} slot times but {len(values)} destination values")
    if len(import_times) != len(import_values):
        raise ValueError(
            f"{len(import_times)} import timestamps but {len(import_values)} import values"
        )
    if len(import_times) > n:
        raise IndexError(
            f"import holds {len(import_times)} samples, destination buffer only {n} slots"
        )

    merged = values.copy()
    if n == 0 or len(import_times) == 0:
        return merged

    import_times = np.asarray(import_times, dtype=np.int64)
    import_values = pd.Series(import_values).reset_index(drop=True)
    if not is_rotated_sorted(import_times):
        logger.debug("Import timestamps are unordered, sorting before lookup")
        order = np.argsort(import_times, kind="stable")
        import_times = import_times[order]
        import_values = import_values.iloc[order].reset_index(drop=True)

    oldest, newest = window if window is not None else slot_window(times, file_offset)
    in_window = (times >= oldest) & (times <= newest)

    replaced = 0
    for slot in np.flatnonzero(in_window):
        k = search_rotated(import_times, times[slot])
        if k is not None:
            merged.iloc[slot] = import_values.iloc[k]
            replaced += 1
    logger.debug(f"{replaced} of {n} slots taken from import")
    return merged
