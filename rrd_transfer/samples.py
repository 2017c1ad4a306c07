#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""Reading and writing buffer sample payloads.

Two payload shapes exist:

* ``.rra`` files: exactly ``n_samples`` fixed width elements in slot order,
  ``<i4`` for integer archives and ``<f8`` for real archives, no header.
* import csv files: one ``timestamp,value`` pair per line, as produced by
  :func:`write_buffer_csv` on the old device.

Unfilled slots are marked on disk with ``0x7fffffff`` (integers) or NaN
(reals). In memory they are ``pd.NA`` in a nullable Series; the translation
happens only in this module.
"""

import datetime as dtm
import os
import shutil
import tempfile

import numpy as np
import pandas as pd

from .dat_file import SampleKind
from .errors import ArchiveIOError
from .logging_config import logger
from .transfer_config import config_value

__all__ = [
    "NO_CUTOFF",
    "read_rra_file",
    "read_csv_import",
    "cutoff_from_date",
    "write_rra_file",
    "write_buffer_csv",
    "to_sample_series",
    "from_sample_series",
]

# the largest timestamp an int32 archive can hold
NO_CUTOFF = 0x7FFFFFFF


def to_sample_series(raw, kind):
    """ Wrap a raw slot array as a nullable Series, sentinels become NA """
    raw = np.asarray(raw)
    if kind is SampleKind.INTEGER:
        values = raw.astype(np.int32)
        mask = values == config_value("int_sentinel")
        arr = pd.arrays.IntegerArray(values, mask)
    else:
        values = raw.astype(np.float64)
        arr = pd.arrays.FloatingArray(values, np.isnan(values))
    series = pd.Series(arr, name="value")
    series.index.name = "slot"
    return series


def from_sample_series(series, kind):
    """ Raw little-endian array for a sample series, NA becomes the sentinel """
    if kind is SampleKind.INTEGER:
        out = series.to_numpy(dtype=np.int64, na_value=config_value("int_sentinel"))
    else:
        out = series.to_numpy(dtype=np.float64, na_value=np.nan)
    return out.astype(kind.dtype)


def read_rra_file(path, device, index):
    """ Read the values of one buffer from its .rra file.

    Parameters
    ----------
    path : str
        Path of the .rra file

    device : Device
        Decoded device owning the buffer

    index : int
        Buffer index

    Returns
    -------
    values : pandas.Series
        Nullable series of length n_samples indexed by slot

    Raises
    ------
    ArchiveIOError
        If the file cannot be read or holds fewer than n_samples elements
    """
    buf = device.buffer(index)
    kind = device.sample_kind
    nbytes = buf.n_samples * kind.dtype.itemsize
    try:
        with open(path, "rb") as f:
            payload = f.read(nbytes)
    except OSError as e:
        raise ArchiveIOError(f"Cannot open {path} for reading: {e}") from e
    if len(payload) < nbytes:
        raise ArchiveIOError(
            f"{path} is too short: {len(payload)} bytes, expected {nbytes} "
            f"for {buf.n_samples} samples"
        )
    raw = np.frombuffer(payload, dtype=kind.dtype, count=buf.n_samples)
    return to_sample_series(raw, kind)


def read_csv_import(path, kind, cutoff=NO_CUTOFF):
    """ Read (timestamp, value) rows from an import csv file.

    Rows later than cutoff are dropped, the rest keep their file order.

    Parameters
    ----------
    path : str
        Import file with lines of ``timestamp,value``

    kind : SampleKind
        Sample kind of the destination device

    cutoff : int
        Largest POSIX timestamp retained

    Returns
    -------
    df : pandas.DataFrame
        Columns ``timestamp`` (int64) and ``value`` (nullable)
    """
    if not os.path.exists(path):
        raise ArchiveIOError(f"Cannot open file {path} for reading")
    try:
        df = pd.read_csv(
            path,
            header=None,
            names=["timestamp", "value"],
            skipinitialspace=True,
            dtype={"timestamp": "int64", "value": kind.series_dtype},
        )
    except pd.errors.EmptyDataError:
        df = pd.DataFrame(
            {
                "timestamp": pd.Series([], dtype="int64"),
                "value": pd.Series([], dtype=kind.series_dtype),
            }
        )
    if kind is SampleKind.INTEGER:
        unfilled = (df["value"] == config_value("int_sentinel")).fillna(False)
        df.loc[unfilled.astype(bool), "value"] = pd.NA
    kept = df[df["timestamp"] <= cutoff].reset_index(drop=True)
    logger.debug(f"{path}: {len(kept)} of {len(df)} rows at or before {cutoff}")
    return kept


def cutoff_from_date(date, tz=None):
    """ POSIX timestamp of midnight at the start of the day after date.

    Parameters
    ----------
    date : str, datetime.date or None
        Last day to import, as ``YYYY-mm-dd`` when given as a string. None
        means no limit.

    tz : str, optional
        Time zone of the calendar date. Local time when omitted, which is
        what the device uses.

    Returns
    -------
    cutoff : int
    """
    if date is None:
        return NO_CUTOFF
    if isinstance(date, str):
        try:
            day = dtm.datetime.strptime(date, "%Y-%m-%d")
        except ValueError:
            raise ValueError(f"Invalid date {date}, expected YYYY-mm-dd") from None
    elif isinstance(date, dtm.date):
        day = dtm.datetime(date.year, date.month, date.day)
    else:
        raise TypeError(f"Cannot interpret {date!r} as a date")
    next_day = day + dtm.timedelta(days=1)
    if tz is None:
        return int(next_day.timestamp())
    return int(pd.Timestamp(next_day).tz_localize(tz).timestamp())


def write_rra_file(path, values, kind):
    """ Replace the .rra file at path with the full array of values.

    The data go to a temporary file in the same directory first so that a
    failed write leaves the existing file untouched. An existing file keeps
    its permission bits.
    """
    raw = from_sample_series(values, kind)
    dest_dir = os.path.dirname(os.path.abspath(path))
    tmp_path = None
    try:
        fd, tmp_path = tempfile.mkstemp(dir=dest_dir, suffix=".tmp")
        with os.fdopen(fd, "wb") as f:
            f.write(raw.tobytes())
        if os.path.exists(path):
            shutil.copymode(path, tmp_path)
        os.replace(tmp_path, path)
    except OSError as e:
        if tmp_path is not None and os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise ArchiveIOError(f"Cannot write {path}: {e}") from e
    logger.debug(f"Wrote {len(raw)} samples to {path}")


def write_buffer_csv(path, times, values, kind):
    """ Write filled slots as ``timestamp, value`` lines in slot order.

    Returns
    -------
    n : int
        Number of lines written
    """
    if len(times) != len(values):
        raise ValueError(
            f"{len(times)} timestamps but {len(values)} values for {path}"
        )
    float_format = config_value("float_format")
    n = 0
    try:
        with open(path, "w", newline="\n") as f:
            for t, v in zip(times, values):
                if pd.isna(v):
                    continue
                if kind is SampleKind.INTEGER:
                    f.write(f"{int(t)}, {int(v)}\n")
                else:
                    f.write(f"{int(t)}, {float_format % float(v)}\n")
                n += 1
    except OSError as e:
        raise ArchiveIOError(f"Cannot open file {path} for writing: {e}") from e
    return n
