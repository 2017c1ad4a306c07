#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""Batch transfer of archive history between devices.

Two public workflows are provided:

* rra_to_csv: run against the archive directory copied from the *old* device;
  writes one import csv per buffer.
* inject_data: run against the archive directory of the *new* device; merges
  the import csv files into each buffer's ``.rra`` file.

Both walk every ``.dat`` metadata file of a directory, one device and one
buffer at a time, and report what they did (or would do, with ``plan=True``)
as a list of :class:`TransferAction`.

Failure policy
--------------
Failures are contained to the smallest unit possible so that one bad archive
does not stop the batch:

* a ``.dat`` file with a bad magic number or truncated header skips the device;
* a placeholder (never provisioned) archive is skipped, this is not an error;
* a corrupt trailing buffer record drops that buffer only;
* a missing or short ``.rra``/csv file, or an inconsistent buffer, skips the
  buffer.

Each skip is logged and appears in the returned actions with its reason.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from glob import glob
from typing import List, Mapping, Optional, Union

from .dat_file import Device, read_dat_file
from .device_names import get_device_name, read_device_names
from .errors import ArchiveIOError, FormatError, TruncatedError
from .filename import csv_path, rra_path, uuid_from_dat_path
from .logging_config import logger
from .merge import merge_samples
from .rra_time import create_rra_time, time_window
from .samples import (
    NO_CUTOFF,
    read_csv_import,
    read_rra_file,
    write_buffer_csv,
    write_rra_file,
)
from .transfer_config import config_value

__all__ = [
    "TransferAction",
    "merge_data",
    "inject_data",
    "rra_to_csv",
]


# -----------------------------
# Action representation
# -----------------------------


@dataclass(frozen=True)
class TransferAction:
    """ Planned or executed action for one device or buffer.

    Parameters
    ----------
    uuid : str
        Device uuid, taken from the ``.dat`` file name.
    interval : str or None
        Buffer interval label, or None for actions that concern the whole
        device (e.g. a skipped placeholder archive).
    action : str
        One of ``"merge"``, ``"export"`` or ``"skip"``.
    reason : str
        Human-readable explanation.
    csv_path, rra_path : str, optional
        Files involved, when known.
    """

    uuid: str
    interval: Optional[str]
    action: str
    reason: str
    csv_path: Optional[str] = None
    rra_path: Optional[str] = None


# -----------------------------
# Discovery helpers
# -----------------------------


def _list_dat_files(d: str) -> List[str]:
    return sorted(glob(os.path.join(d, "*" + config_value("dat_extension"))))


def _resolve_names(
    device_names: Union[None, str, os.PathLike, Mapping[str, str]], default_dir: str
) -> Mapping[str, str]:
    if device_names is None:
        device_names = os.path.join(default_dir, config_value("device_names_file"))
    if isinstance(device_names, (str, os.PathLike)):
        try:
            return read_device_names(device_names)
        except ArchiveIOError as e:
            logger.error(f"No device names available: {e}")
            return {}
    return device_names


def _load_device(dat_path: str, names: Mapping[str, str], actions: List[TransferAction]) -> Optional[Device]:
    """ Decode one .dat file, recording a skip action if the device is unusable """
    uuid = uuid_from_dat_path(dat_path)
    logger.info(f"found .dat file : {os.path.basename(dat_path)}")
    try:
        device = read_dat_file(dat_path)
    except (FormatError, TruncatedError, ArchiveIOError) as e:
        logger.error(f"Skipping {dat_path}: {e}")
        actions.append(TransferAction(uuid, None, "skip", f"unreadable metadata: {e}"))
        return None

    if device.is_placeholder:
        logger.info("Corresponding database(s) not yet initialised, continuing ...")
        actions.append(TransferAction(uuid, None, "skip", "placeholder"))
        return None

    for diag in device.diagnostics:
        actions.append(TransferAction(uuid, None, "skip", f"corrupt record dropped: {diag}"))

    name = get_device_name(names, uuid)
    if not name:
        logger.warning(f"No device name for uuid {uuid}, skipping")
        actions.append(TransferAction(uuid, None, "skip", "no device name"))
        return None
    return device.with_name(name)


# -----------------------------
# Single buffer
# -----------------------------


def merge_data(
    csv_file: str,
    rra_file: str,
    device: Device,
    index: int,
    cutoff: int = NO_CUTOFF,
    *,
    plan: bool = False,
    current=None,
):
    """ Merge one import csv file into one buffer of the destination device.

    Parameters
    ----------
    csv_file : str
        Import csv with samples from the old device.
    rra_file : str
        Destination ``.rra`` file, rewritten in place unless ``plan``.
    device : Device
        Destination device.
    index : int
        Buffer index within device.
    cutoff : int, default no limit
        Import rows later than this POSIX timestamp are ignored.
    plan : bool, default False
        If True, compute the merged values without writing.
    current : pandas.Series, optional
        Present contents of the buffer when the caller has already read
        ``rra_file``.

    Returns
    -------
    merged : pandas.Series
        New slot-aligned contents of the buffer.

    Raises
    ------
    ArchiveIOError
        If either file is missing or the ``.rra`` file is too short.
    IndexError
        If the index is out of range or the import does not fit the buffer.
    """
    buf = device.buffer(index)
    kind = device.sample_kind
    times = create_rra_time(buf)
    if current is None:
        current = read_rra_file(rra_file, device, index)
    imported = read_csv_import(csv_file, kind, cutoff)
    merged = merge_samples(
        times,
        current,
        buf.file_offset,
        imported["timestamp"].to_numpy(),
        imported["value"],
        window=time_window(buf, times) if len(times) else None,
    )
    if not plan:
        write_rra_file(rra_file, merged, kind)
        logger.info(f"rra_out_path    : {rra_file}")
    return merged


def _changed_slots(before, after) -> int:
    differs = before.ne(after).fillna(False) | (before.isna() ^ after.isna())
    return int(differs.astype(bool).sum())


# -----------------------------
# Public APIs
# -----------------------------


def inject_data(
    rra_dir: str,
    csv_dir: str,
    cutoff: int = NO_CUTOFF,
    device_names=None,
    *,
    plan: bool = False,
) -> List[TransferAction]:
    """ Merge import csv files into every archive of a directory.

    Parameters
    ----------
    rra_dir : str
        Archive directory of the destination device (``.dat`` and ``.rra``
        files).
    csv_dir : str
        Directory with the import csv files.
    cutoff : int, default no limit
        Import rows later than this POSIX timestamp are ignored. See
        :func:`rrd_transfer.samples.cutoff_from_date`.
    device_names : mapping or path, optional
        uuid to display name lookup, or the path of a ``config_hcb_rrd.xml``.
        Defaults to that file inside ``rra_dir``.
    plan : bool, default False
        If True, return planned actions without writing.

    Returns
    -------
    actions : list[TransferAction]
    """
    names = _resolve_names(device_names, rra_dir)
    actions: List[TransferAction] = []
    dat_files = _list_dat_files(rra_dir)
    for dat_path in dat_files:
        device = _load_device(dat_path, names, actions)
        if device is None:
            continue
        uuid = uuid_from_dat_path(dat_path)
        for i, buf in enumerate(device.buffers):
            cpath = rpath = None
            try:
                cpath = csv_path(csv_dir, device, i)
                rpath = rra_path(rra_dir, device, i, uuid=uuid)
                logger.info(f"csv_path        : {cpath}")
                logger.info(f"rra_path        : {rpath}")
                if buf.n_samples == 0:
                    actions.append(TransferAction(uuid, buf.interval_name, "skip", "empty buffer", cpath, rpath))
                    continue
                before = read_rra_file(rpath, device, i)
                merged = merge_data(cpath, rpath, device, i, cutoff, plan=plan, current=before)
            except (ArchiveIOError, IndexError, ValueError) as e:
                logger.error(f"merge_data: {e}")
                actions.append(TransferAction(uuid, buf.interval_name, "skip", str(e), cpath, rpath))
                continue
            reason = f"{_changed_slots(before, merged)} of {buf.n_samples} slots changed"
            actions.append(TransferAction(uuid, buf.interval_name, "merge", reason, cpath, rpath))

    logger.info(f"{len(dat_files)} .dat files read and processed.")
    return actions


def rra_to_csv(rra_dir: str, device_names=None, csv_dir: Optional[str] = None) -> List[TransferAction]:
    """ Export every buffer of every archive in rra_dir as an import csv.

    Unfilled slots are left out of the csv files.

    Parameters
    ----------
    rra_dir : str
        Archive directory copied from the old device.
    device_names : mapping or path, optional
        As for :func:`inject_data`. Defaults to the ``config_hcb_rrd.xml``
        in ``rra_dir``.
    csv_dir : str, optional
        Destination of the csv files, ``rra_dir`` by default.

    Returns
    -------
    actions : list[TransferAction]

    Raises
    ------
    FileNotFoundError
        If rra_dir holds no ``.dat`` files.
    """
    csv_dir = rra_dir if csv_dir is None else csv_dir
    dat_files = _list_dat_files(rra_dir)
    if not dat_files:
        raise FileNotFoundError(f"Cannot find any .dat files in {rra_dir}")
    os.makedirs(csv_dir, exist_ok=True)

    names = _resolve_names(device_names, rra_dir)
    actions: List[TransferAction] = []
    for dat_path in dat_files:
        device = _load_device(dat_path, names, actions)
        if device is None:
            continue
        uuid = uuid_from_dat_path(dat_path)
        for i, buf in enumerate(device.buffers):
            cpath = rpath = None
            try:
                cpath = csv_path(csv_dir, device, i)
                rpath = rra_path(rra_dir, device, i, uuid=uuid)
                times = create_rra_time(buf)
                values = read_rra_file(rpath, device, i)
                n = write_buffer_csv(cpath, times, values, device.sample_kind)
            except (ArchiveIOError, IndexError, ValueError) as e:
                logger.error(f"write_data_to_csv: {e}")
                actions.append(TransferAction(uuid, buf.interval_name, "skip", str(e), cpath, rpath))
                continue
            actions.append(TransferAction(uuid, buf.interval_name, "export", f"{n} samples written", cpath, rpath))

    logger.info(f"{len(dat_files)} old .dat files found")
    return actions
