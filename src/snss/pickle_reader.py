"""
Reader for Chromium's base::Pickle serialization format.

Pickle format:
- Every value is read as a run of raw bytes followed by zero padding up to the
  next alignment boundary (4 bytes in session files).
- Integers and floats: little-endian, 2/4/8 bytes.
- Bool: stored as a 4-byte int, only 0 and 1 are valid.
- String: u32 byte length, then UTF-8 bytes.
- String16: u32 count of UTF-16 code units, then count*2 little-endian bytes.

The reader borrows the buffer it is given: raw reads return memoryview slices
into it and only strings are materialized.
"""

from __future__ import annotations

import struct
from datetime import datetime
from typing import Union

from core.timestamps import unix_micros_to_datetime

from .exceptions import (
    InvalidBoolError,
    InvalidLengthError,
    InvalidTimestampError,
    TruncatedError,
    Utf16DecodeError,
    Utf8DecodeError,
)

PICKLE_ALIGNMENT = 4

Buffer = Union[bytes, bytearray, memoryview]

_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")
_I16 = struct.Struct("<h")
_I32 = struct.Struct("<i")
_I64 = struct.Struct("<q")
_F32 = struct.Struct("<f")
_F64 = struct.Struct("<d")


def padding_for(length: int, alignment: int = PICKLE_ALIGNMENT) -> int:
    """Bytes of padding after a ``length``-byte read; zero when already aligned."""
    return (alignment - (length % alignment)) % alignment


class PickleReader:
    """Forward-only cursor over a pickled byte buffer."""

    def __init__(self, data: Buffer, alignment: int = PICKLE_ALIGNMENT):
        if alignment <= 0:
            raise ValueError(f"alignment must be positive, got {alignment}")
        self.data = data if isinstance(data, memoryview) else memoryview(data)
        self.alignment = alignment
        self.pos = 0

    @property
    def remaining(self) -> int:
        return len(self.data) - self.pos

    def at_end(self) -> bool:
        return self.remaining <= 0

    def skip_remaining(self) -> None:
        """Move the cursor to the end of the buffer."""
        self.pos = len(self.data)

    def read_aligned(self, length: int) -> memoryview:
        """
        Read ``length`` raw bytes, then skip padding to the alignment boundary.

        The cursor does not move when the read fails.
        """
        if length < 0:
            raise InvalidLengthError(f"Negative read length {length} at offset {self.pos}")
        pad = padding_for(length, self.alignment)
        needed = length + pad
        if self.remaining < needed:
            raise TruncatedError(needed, self.remaining, self.pos)
        raw = self.data[self.pos:self.pos + length]
        self.pos += needed
        return raw

    def _unpack(self, layout: struct.Struct):
        return layout.unpack(self.read_aligned(layout.size))[0]

    def read_uint16(self) -> int:
        return self._unpack(_U16)

    def read_uint32(self) -> int:
        return self._unpack(_U32)

    def read_uint64(self) -> int:
        return self._unpack(_U64)

    def read_int16(self) -> int:
        return self._unpack(_I16)

    def read_int32(self) -> int:
        return self._unpack(_I32)

    def read_int64(self) -> int:
        return self._unpack(_I64)

    def read_float(self) -> float:
        return self._unpack(_F32)

    def read_double(self) -> float:
        return self._unpack(_F64)

    def read_bool(self) -> bool:
        """Read a boolean stored as a 4-byte int."""
        value = self.read_int32()
        if value == 0:
            return False
        if value == 1:
            return True
        raise InvalidBoolError(value)

    def read_bytes(self) -> memoryview:
        """Read an i32 length-prefixed blob."""
        length = self.read_int32()
        if length < 0:
            raise InvalidLengthError(f"Negative blob length {length} at offset {self.pos - 4}")
        return self.read_aligned(length)

    def read_string(self) -> str:
        """Read a length-prefixed UTF-8 string."""
        length = self.read_uint32()
        raw = self.read_aligned(length)
        try:
            return str(raw, "utf-8")
        except UnicodeDecodeError as e:
            raise Utf8DecodeError(f"Invalid UTF-8 in string at offset {self.pos - len(raw)}: {e}") from e

    def read_string16(self) -> str:
        """Read a length-prefixed UTF-16LE string."""
        # Length is number of char16_t, so byte length is 2x
        char_count = self.read_uint32()
        raw = self.read_aligned(char_count * 2)
        try:
            return str(raw, "utf-16-le")
        except UnicodeDecodeError as e:
            raise Utf16DecodeError(f"Invalid UTF-16 in string16: {e}") from e

    def read_datetime(self) -> datetime:
        """Read a u64 count of microseconds since the Unix epoch."""
        microseconds = self.read_uint64()
        try:
            return unix_micros_to_datetime(microseconds)
        except ValueError as e:
            raise InvalidTimestampError(str(e)) from e
