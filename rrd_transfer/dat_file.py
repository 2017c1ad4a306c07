#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""Reader and writer for the binary ``.dat`` archive metadata file.

Every round-robin archive on the device is described by one ``.dat`` file
named after the device uuid. The file holds the device identity followed by
one to four buffer descriptors, one for each retention granularity (for
instance 5 minute, hourly, daily and monthly samples). The sample values
themselves live in separate ``<uuid>-<interval>.rra`` files.

Layout
------
All integers are little-endian 32-bit signed, reals are little-endian IEEE
doubles and strings are a 4-byte length followed by exactly that many raw
bytes::

    magic            17 bytes, "hcb_rrd_09082011A"
    device uuid      string
    device variable  string
    device service   string
    sample type      string, "integer" or anything else for reals
    buffer records   repeated until end of stream, at most four

Each buffer record is::

    reserved         3 x int32 (integer archives) or 2 x double (reals)
    timestamp_0      int32
    timestamp_1      int32
    minSamplesPerBin int32
    binLength        string
    file_offset      int32
    n_samples        int32
    reserved         int32
    interval         string
    consolidator     string

Archives that were never provisioned carry the uuid ``placeholder`` and no
buffer records at all.

The device software is known to leave trailing garbage behind when it
rewrites the file. A buffer record that runs out of bytes is therefore
dropped and reported through :attr:`Device.diagnostics` rather than raised.
"""

from __future__ import annotations

import enum
import io
import os
import struct
from dataclasses import dataclass, field, replace
from typing import BinaryIO, List, Optional, Tuple, Union

import numpy as np

from .errors import (
    ArchiveIOError,
    CorruptRecordError,
    FormatError,
    TruncatedError,
)
from .logging_config import logger
from .transfer_config import config_value

__all__ = [
    "SampleKind",
    "IntegerReserved",
    "RealReserved",
    "Buffer",
    "Device",
    "read_dat_file",
    "decode_dat",
    "encode_dat",
    "describe_device",
]

MAGIC_LENGTH = 17
STRING_ENCODING = "utf-8"

_INT = struct.Struct("<i")
_INT_RESERVED = struct.Struct("<3i")
_REAL_RESERVED = struct.Struct("<2d")
_TIMES = struct.Struct("<3i")
_OFFSET_COUNT = struct.Struct("<3i")


class SampleKind(enum.Enum):
    """Element type shared by every buffer of a device."""

    INTEGER = "integer"
    REAL = "real"

    @classmethod
    def from_tag(cls, tag: str) -> "SampleKind":
        return cls.INTEGER if tag == "integer" else cls.REAL

    @property
    def dtype(self) -> np.dtype:
        """On-disk element type of the ``.rra`` payload."""
        return np.dtype("<i4") if self is SampleKind.INTEGER else np.dtype("<f8")

    @property
    def series_dtype(self) -> str:
        """Nullable pandas dtype used for in-memory sample series."""
        return "Int32" if self is SampleKind.INTEGER else "Float64"


@dataclass(frozen=True)
class IntegerReserved:
    """Opaque leading fields of an integer buffer record."""

    unk_0: int = 0
    unk_1: int = 0
    unk_2: int = 0


@dataclass(frozen=True)
class RealReserved:
    """Opaque leading fields of a real buffer record."""

    value: float = 0.0
    divider: float = 0.0


@dataclass(frozen=True)
class Buffer:
    """Descriptor of one fixed-capacity circular buffer.

    Parameters
    ----------
    timestamp_0, timestamp_1 : int
        The two newest sample times. Their difference is the buffer interval
        and ``timestamp_1`` is the time of the sample in slot ``file_offset``.
    min_samples_per_bin : int
        Consolidation threshold, carried through untouched.
    bin_length : str
        Consolidation bin description, carried through untouched.
    file_offset : int
        Slot holding the most recent sample.
    n_samples : int
        Capacity of the buffer in slots.
    interval_name : str
        Interval label used in file names (e.g. ``5min``, ``1hour``).
    consolidator : str
        Name of the aggregation function, carried through untouched.
    reserved : IntegerReserved or RealReserved
        Leading opaque fields, whose layout depends on the sample kind.
    unk_3 : int
        Opaque field between ``n_samples`` and ``interval``.
    """

    timestamp_0: int
    timestamp_1: int
    min_samples_per_bin: int
    bin_length: str
    file_offset: int
    n_samples: int
    interval_name: str
    consolidator: str
    reserved: Union[IntegerReserved, RealReserved] = field(
        default_factory=IntegerReserved
    )
    unk_3: int = 0

    @property
    def interval(self) -> int:
        return self.timestamp_1 - self.timestamp_0


@dataclass(frozen=True)
class Device:
    """Identity of one archive and its buffer descriptors."""

    uuid: str
    variable: str
    service: str
    sample_type: str
    buffers: Tuple[Buffer, ...] = ()
    name: Optional[str] = None
    diagnostics: Tuple[CorruptRecordError, ...] = ()

    @property
    def sample_kind(self) -> SampleKind:
        return SampleKind.from_tag(self.sample_type)

    @property
    def is_placeholder(self) -> bool:
        return self.uuid == config_value("placeholder_uuid")

    @property
    def buffer_count(self) -> int:
        return len(self.buffers)

    def buffer(self, index: int) -> Buffer:
        """Return buffer ``index``, refusing negative or out of range values."""
        if not 0 <= index < self.buffer_count:
            raise IndexError(
                f"buffer index {index} out of range for device {self.uuid} "
                f"with {self.buffer_count} buffers"
            )
        return self.buffers[index]

    def with_name(self, name: Optional[str]) -> "Device":
        """Copy of this device carrying the resolved display name."""
        return replace(self, name=name)


class _ShortRead(Exception):
    def __init__(self, needed, available):
        self.needed = needed
        self.available = available
        super().__init__(f"needed {needed} bytes, {available} available")


class _NegativeLength(Exception):
    pass


class _ByteReader:
    """Cursor over an in-memory byte string."""

    def __init__(self, data: bytes):
        self.data = data
        self.pos = 0

    @property
    def remaining(self) -> int:
        return len(self.data) - self.pos

    def take(self, n: int) -> bytes:
        if n > self.remaining:
            raise _ShortRead(n, self.remaining)
        chunk = self.data[self.pos : self.pos + n]
        self.pos += n
        return chunk

    def unpack(self, fmt: struct.Struct) -> tuple:
        return fmt.unpack(self.take(fmt.size))

    def read_int(self) -> int:
        return self.unpack(_INT)[0]

    def read_string(self) -> str:
        length = self.read_int()
        if length < 0:
            raise _NegativeLength(f"negative string length {length}")
        raw = self.take(length)
        return raw.decode(STRING_ENCODING, errors="surrogateescape").rstrip("\x00")


def _read_header(reader: _ByteReader) -> Tuple[str, str, str, str]:
    magic_token = config_value("magic")
    magic = reader.data[:MAGIC_LENGTH]
    if magic.rstrip(b"\x00").decode("ascii", errors="replace") != magic_token:
        raise FormatError(f"Bad magic number: {magic!r}")
    reader.take(MAGIC_LENGTH)

    fields = []
    for label in ("device uuid", "device variable", "device service", "sample type"):
        try:
            fields.append(reader.read_string())
        except _ShortRead as e:
            raise TruncatedError(
                f"Header field {label} is truncated: {e}"
            ) from None
        except _NegativeLength as e:
            raise FormatError(f"Header field {label}: {e}") from None
    return tuple(fields)


def _read_buffer(reader: _ByteReader, kind: SampleKind) -> Buffer:
    if kind is SampleKind.INTEGER:
        reserved = IntegerReserved(*reader.unpack(_INT_RESERVED))
    else:
        reserved = RealReserved(*reader.unpack(_REAL_RESERVED))
    timestamp_0, timestamp_1, min_samples = reader.unpack(_TIMES)
    bin_length = reader.read_string()
    file_offset, n_samples, unk_3 = reader.unpack(_OFFSET_COUNT)
    interval_name = reader.read_string()
    consolidator = reader.read_string()
    return Buffer(
        timestamp_0=timestamp_0,
        timestamp_1=timestamp_1,
        min_samples_per_bin=min_samples,
        bin_length=bin_length,
        file_offset=file_offset,
        n_samples=n_samples,
        interval_name=interval_name,
        consolidator=consolidator,
        reserved=reserved,
        unk_3=unk_3,
    )


def decode_dat(stream: BinaryIO) -> Device:
    """Decode a ``.dat`` metadata stream.

    Parameters
    ----------
    stream : file-like
        Readable binary stream positioned at the magic token.

    Returns
    -------
    device : Device
        Device with its buffers. A placeholder device has no buffers. If the
        last buffer record was incomplete it is dropped and a
        :class:`CorruptRecordError` is stored in ``device.diagnostics``.

    Raises
    ------
    FormatError
        If the magic token does not match or a header length is negative.
    TruncatedError
        If a header string is shorter than its declared length.
    """
    reader = _ByteReader(stream.read())
    uuid, variable, service, sample_type = _read_header(reader)
    device = Device(uuid=uuid, variable=variable, service=service, sample_type=sample_type)

    if device.is_placeholder:
        logger.debug("Archive not yet provisioned, no buffers to read")
        return device

    kind = device.sample_kind
    max_buffers = config_value("max_buffers")
    buffers: List[Buffer] = []
    diagnostics: List[CorruptRecordError] = []
    while len(buffers) < max_buffers and reader.remaining > 0:
        start = reader.pos
        try:
            buffers.append(_read_buffer(reader, kind))
        except (_ShortRead, _NegativeLength) as e:
            needed = getattr(e, "needed", 0)
            available = getattr(e, "available", reader.remaining)
            err = CorruptRecordError(len(buffers), needed, available)
            logger.warning(
                f"dat file is partly corrupted, dropping trailing record "
                f"at byte {start}: {err}"
            )
            diagnostics.append(err)
            break

    if not buffers and not diagnostics:
        logger.warning(f"Device {uuid} has no buffer records")
    if reader.remaining > 0 and not diagnostics:
        logger.debug(f"Ignoring {reader.remaining} bytes after {len(buffers)} buffers")

    return replace(device, buffers=tuple(buffers), diagnostics=tuple(diagnostics))


def read_dat_file(source: Union[str, os.PathLike, BinaryIO]) -> Device:
    """Decode a ``.dat`` file given its path or an open binary stream.

    Raises
    ------
    ArchiveIOError
        If the path cannot be opened.
    """
    if hasattr(source, "read"):
        return decode_dat(source)
    try:
        with open(source, "rb") as f:
            device = decode_dat(f)
    except OSError as e:
        raise ArchiveIOError(f"Cannot open {source} for reading: {e}") from e
    logger.debug(f"Read {source}: {device.buffer_count} buffers")
    return device


def _pack_string(s: str) -> bytes:
    raw = s.encode(STRING_ENCODING, errors="surrogateescape")
    return _INT.pack(len(raw)) + raw


def encode_dat(device: Device) -> bytes:
    """Serialize ``device`` back into ``.dat`` layout (inverse of :func:`decode_dat`)."""
    out = io.BytesIO()
    out.write(config_value("magic").encode("ascii")[:MAGIC_LENGTH])
    for s in (device.uuid, device.variable, device.service, device.sample_type):
        out.write(_pack_string(s))
    kind = device.sample_kind
    for buf in device.buffers:
        reserved = buf.reserved
        if kind is SampleKind.INTEGER:
            if not isinstance(reserved, IntegerReserved):
                reserved = IntegerReserved()
            out.write(_INT_RESERVED.pack(reserved.unk_0, reserved.unk_1, reserved.unk_2))
        else:
            if not isinstance(reserved, RealReserved):
                reserved = RealReserved()
            out.write(_REAL_RESERVED.pack(reserved.value, reserved.divider))
        out.write(_TIMES.pack(buf.timestamp_0, buf.timestamp_1, buf.min_samples_per_bin))
        out.write(_pack_string(buf.bin_length))
        out.write(_OFFSET_COUNT.pack(buf.file_offset, buf.n_samples, buf.unk_3))
        out.write(_pack_string(buf.interval_name))
        out.write(_pack_string(buf.consolidator))
    return out.getvalue()


def describe_device(device: Device) -> List[str]:
    """Field by field listing of a device, one ``label : value`` per line."""
    lines = [
        f"deviceUuid      : {device.uuid}",
        f"deviceVar       : {device.variable}",
        f"device_name     : {device.name}",
        f"deviceSvc       : {device.service}",
        f"sampleType      : {device.sample_type}",
        f"nr of subsets   : {device.buffer_count}",
    ]
    for i, buf in enumerate(device.buffers):
        lines.append(f"subset          : {i}")
        if isinstance(buf.reserved, IntegerReserved):
            lines += [
                f"unk_0           : {buf.reserved.unk_0}",
                f"unk_1           : {buf.reserved.unk_1}",
                f"unk_2           : {buf.reserved.unk_2}",
            ]
        else:
            lines += [
                f"value           : {buf.reserved.value:.3f}",
                f"divider         : {buf.reserved.divider:.3f}",
            ]
        lines += [
            f"timestamp_0     : {buf.timestamp_0}",
            f"timestamp_1     : {buf.timestamp_1}",
            f"minSamplesPerBin: {buf.min_samples_per_bin}",
            f"binLength       : {buf.bin_length}",
            f"file offset     : {buf.file_offset}",
            f"n_samples       : {buf.n_samples}",
            f"unk_3           : {buf.unk_3}",
            f"interval        : {buf.interval_name}",
            f"consolidator    : {buf.consolidator}",
        ]
    for diag in device.diagnostics:
        lines.append(f"diagnostic      : {diag}")
    return lines
