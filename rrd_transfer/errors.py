#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""Exception taxonomy for archive decoding and merging.

Errors are scoped to the smallest unit that can be skipped:

* :class:`FormatError` and :class:`TruncatedError` condemn one ``.dat`` file
  (one device).
* :class:`CorruptRecordError` is recoverable. It is not raised by the decoder
  but attached to the decoded device as a diagnostic.
* :class:`ArchiveIOError` and the built-in :class:`IndexError` condemn a single
  buffer.
"""

__all__ = [
    "RrdTransferError",
    "FormatError",
    "TruncatedError",
    "CorruptRecordError",
    "ArchiveIOError",
]


class RrdTransferError(Exception):
    """Base class for archive errors."""


class FormatError(RrdTransferError):
    """The metadata stream does not start with the expected magic token."""


class TruncatedError(RrdTransferError):
    """Fewer bytes are available than a header field declares."""


class CorruptRecordError(RrdTransferError):
    """A trailing buffer record is incomplete.

    Parameters
    ----------
    index : int
        Position of the discarded buffer record.
    needed : int
        Bytes the record required at the point of failure.
    available : int
        Bytes that were actually left in the stream.
    """

    def __init__(self, index, needed, available):
        self.index = index
        self.needed = needed
        self.available = available
        super().__init__(
            f"buffer record {index} is incomplete: needed {needed} bytes, "
            f"{available} available"
        )


class ArchiveIOError(RrdTransferError, OSError):
    """An archive or import file is missing, unreadable or too short."""
