from __future__ import annotations

import numpy as np
import pytest

from rrd_transfer.dat_file import (
    Buffer,
    Device,
    IntegerReserved,
    RealReserved,
    encode_dat,
)
from rrd_transfer.transfer_config import reset_config


@pytest.fixture(autouse=True)
def _default_config():
    reset_config()
    yield
    reset_config()


def mk_buffer(
    n_samples=4,
    file_offset=3,
    timestamp_1=400,
    interval=100,
    interval_name="5min",
    real=False,
) -> Buffer:
    reserved = RealReserved(1.5, 1000.0) if real else IntegerReserved(7, 8, 9)
    return Buffer(
        timestamp_0=timestamp_1 - interval,
        timestamp_1=timestamp_1,
        min_samples_per_bin=1,
        bin_length="1",
        file_offset=file_offset,
        n_samples=n_samples,
        interval_name=interval_name,
        consolidator="average",
        reserved=reserved,
        unk_3=0,
    )


def mk_device(uuid="3f7a9b", buffers=(), real=False, variable="quantity") -> Device:
    return Device(
        uuid=uuid,
        variable=variable,
        service="happ_pwrusage",
        sample_type="double" if real else "integer",
        buffers=tuple(buffers),
    )


def write_archive(directory, device, values_by_interval, real=False):
    """Write device.dat plus one .rra file per buffer into directory."""
    (directory / f"{device.uuid}.dat").write_bytes(encode_dat(device))
    dtype = "<f8" if real else "<i4"
    for buf in device.buffers:
        raw = np.asarray(values_by_interval[buf.interval_name], dtype=dtype)
        (directory / f"{device.uuid}-{buf.interval_name}.rra").write_bytes(raw.tobytes())


def write_names(directory, names):
    loggers = "".join(
        f"<rrdLogger><uuid>{uuid}</uuid><name>{name}</name></rrdLogger>"
        for uuid, name in names.items()
    )
    (directory / "config_hcb_rrd.xml").write_text(f"<Config>{loggers}</Config>")
