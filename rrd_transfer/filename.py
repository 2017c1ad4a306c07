#!/usr/bin/env python
# -*- coding: utf-8 -*-

import os

from .transfer_config import config_value

__all__ = ["csv_path", "rra_path", "is_thermostat", "uuid_from_dat_path"]


def is_thermostat(name):
    """ True if the display name denotes a thermostat-class device """
    return name is not None and name.startswith(config_value("thermostat_prefix"))


def csv_path(csv_dir, device, index):
    """ Path of the import/export csv file for one buffer of a device.

    The file name follows [name]_[variable]_[interval].csv, except for
    thermostat devices which use [name]_[interval].csv.

    Parameters
    ----------
    csv_dir : str
        Directory holding the csv files

    device : Device
        Decoded device, with its display name resolved

    index : int
        Buffer index, 0 <= index < device.buffer_count

    Returns
    -------
    path : str
        Full path of the csv file

    Raises
    ------
    IndexError
        If index is out of range
    ValueError
        If the device has no display name
    """
    buf = device.buffer(index)
    if not device.name:
        raise ValueError(f"Device {device.uuid} has no display name")
    ext = config_value("csv_extension")
    if is_thermostat(device.name):
        fname = f"{device.name}_{buf.interval_name}{ext}"
    else:
        fname = f"{device.name}_{device.variable}_{buf.interval_name}{ext}"
    return os.path.join(csv_dir, fname)


def rra_path(rra_dir, device, index, uuid=None):
    """ Path of the binary sample file for one buffer: [uuid]-[interval].rra

    uuid defaults to the device uuid. Pass the .dat file stem when the two
    may disagree, the sample files are named after the .dat file.
    """
    buf = device.buffer(index)
    uuid = device.uuid if uuid is None else uuid
    fname = f"{uuid}-{buf.interval_name}{config_value('rra_extension')}"
    return os.path.join(rra_dir, fname)


def uuid_from_dat_path(path):
    """ Device uuid encoded in a .dat file name """
    return os.path.splitext(os.path.basename(path))[0]
