#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""Timestamps of the slots of a circular archive buffer.

The ``.rra`` payload stores values only. Their times follow from the buffer
descriptor: slot ``file_offset`` holds the newest sample at ``timestamp_1``
and every step backwards (wrapping from slot 0 to slot ``n_samples - 1``) is
one ``interval`` earlier. The oldest sample therefore sits in slot
``file_offset + 1`` modulo ``n_samples``.
"""

import numpy as np

__all__ = ["create_rra_time", "oldest_slot", "slot_window", "time_window"]


def _check_offset(buffer):
    if buffer.n_samples < 0:
        raise IndexError(f"negative buffer capacity {buffer.n_samples}")
    if buffer.n_samples and not 0 <= buffer.file_offset < buffer.n_samples:
        raise IndexError(
            f"file_offset {buffer.file_offset} outside buffer of "
            f"{buffer.n_samples} slots"
        )


def create_rra_time(buffer):
    """ Absolute timestamp of every slot of a buffer.

    Parameters
    ----------
    buffer : Buffer
        Decoded buffer descriptor.

    Returns
    -------
    times : numpy.ndarray of int64
        Array of length ``n_samples`` indexed by slot. Empty when the buffer
        has no capacity.

    Raises
    ------
    IndexError
        If ``file_offset`` does not address a slot of the buffer.
    """
    _check_offset(buffer)
    n = buffer.n_samples
    if n == 0:
        return np.empty(0, dtype=np.int64)
    slots = np.arange(n, dtype=np.int64)
    steps_back = (buffer.file_offset - slots) % n
    return np.int64(buffer.timestamp_1) - steps_back * np.int64(buffer.interval)


def oldest_slot(buffer):
    """ Slot index holding the oldest sample """
    _check_offset(buffer)
    if buffer.n_samples == 0:
        raise IndexError("empty buffer has no oldest slot")
    return (buffer.file_offset + 1) % buffer.n_samples


def slot_window(times, file_offset):
    """ (oldest, newest) of slot times whose newest sample is at file_offset """
    n = len(times)
    if n == 0:
        raise IndexError("empty buffer has no time window")
    return int(times[(file_offset + 1) % n]), int(times[file_offset])


def time_window(buffer, times=None):
    """ (oldest, newest) timestamps covered by the buffer """
    if times is None:
        times = create_rra_time(buffer)
    if len(times) == 0:
        raise IndexError("empty buffer has no time window")
    return int(times[oldest_slot(buffer)]), int(times[buffer.file_offset])
