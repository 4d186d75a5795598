"""
Chromium SNSS Session File Container

Decodes the binary SNSS format used by Chromium browsers for session restore.

File Format (based on Chromium source):
- FileHeader: 8 bytes (signature: "SNSS", version: uint32 little-endian)
- Commands: sequence of (size: uint16, command_id: uint8, payload: size-1 bytes)

Only navigation-update commands are fully decoded; every other command is
passed through as an UnprocessedEntry carrying its identity and location.

References:
- https://chromium.googlesource.com/chromium/src/+/refs/heads/main/components/sessions/core/command_storage_backend.cc
"""

from __future__ import annotations

import struct
from typing import Iterator, Optional, Union

from core.logging import get_logger

from .commands import CommandIdentity, FileType
from .exceptions import (
    InvalidMagicError,
    MalformedContainerError,
    PickleError,
    UnsupportedVersionError,
)
from .navigation_entry import NavigationEntryDecoder
from .pickle_reader import PICKLE_ALIGNMENT, Buffer, PickleReader
from .records import NavigationEntry, UnprocessedEntry

LOGGER = get_logger("snss.container")

SNSS_MAGIC = b"SNSS"
HEADER_SIZE = 8
LENGTH_PREFIX_SIZE = 2

# File versions
FILE_VERSION_1 = 1
ENCRYPTED_FILE_VERSION = 2
FILE_VERSION_WITH_MARKER = 3
ENCRYPTED_FILE_VERSION_WITH_MARKER = 4

SUPPORTED_VERSIONS = (FILE_VERSION_1, FILE_VERSION_WITH_MARKER)
ENCRYPTED_VERSIONS = (ENCRYPTED_FILE_VERSION, ENCRYPTED_FILE_VERSION_WITH_MARKER)

DecodeResult = Union[NavigationEntry, UnprocessedEntry]

_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")


def strip_pickle_header(body: memoryview) -> memoryview:
    """
    Drop Chromium's pickle header when the body carries one.

    Browsers write each pickled command as a u32 payload size followed by the
    payload. A body whose first u32 equals the size of the rest is treated as
    headed; anything else is returned unchanged.
    """
    if len(body) >= 4 and _U32.unpack_from(body, 0)[0] == len(body) - 4:
        return body[4:]
    return body


class SnssContainer:
    """
    Lazy, forward-only iterator over the commands of one SNSS buffer.

    The buffer is borrowed for the container's lifetime and must not change.
    Iteration is not restartable; construct a new container to decode again.
    """

    def __init__(
        self,
        buffer: Buffer,
        file_type: FileType = FileType.SESSION,
        *,
        strip_header: bool = True,
    ):
        # Own view, so close() never releases one the caller holds
        view = memoryview(buffer)
        if view.format != "B" or view.ndim != 1:
            flat = view.cast("B")
            view.release()
            view = flat
        self._view = view
        self.file_type = FileType(file_type)
        self.strip_header = strip_header
        try:
            self.version = self._read_header()
        except MalformedContainerError:
            # Let the caller unmap the buffer while the error propagates
            view.release()
            raise
        self.pos = HEADER_SIZE
        self.records_read = 0

    @classmethod
    def open(cls, buffer: Buffer, file_type: FileType = FileType.SESSION, **kwargs) -> "SnssContainer":
        """Validate the header of ``buffer`` and return a container positioned at the first command."""
        return cls(buffer, file_type, **kwargs)

    def _read_header(self) -> int:
        view = self._view
        magic = bytes(view[:4])
        if magic != SNSS_MAGIC:
            raise InvalidMagicError(magic)
        if len(view) < HEADER_SIZE:
            raise MalformedContainerError(
                f"File too small for header: {len(view)} bytes, need {HEADER_SIZE}"
            )
        version = _U32.unpack_from(view, 4)[0]
        if version in ENCRYPTED_VERSIONS:
            raise UnsupportedVersionError(version, "encrypted session files are not supported")
        if version not in SUPPORTED_VERSIONS:
            raise UnsupportedVersionError(version)
        return version

    @property
    def size(self) -> int:
        return len(self._view)

    @property
    def remaining(self) -> int:
        return len(self._view) - self.pos

    def __iter__(self) -> Iterator[DecodeResult]:
        return self

    def __next__(self) -> DecodeResult:
        result = self.read_record()
        if result is None:
            raise StopIteration
        return result

    def read_record(self) -> Optional[DecodeResult]:
        """
        Decode the command at the cursor and advance past it.

        Returns None at end of stream, i.e. when no complete length prefix
        remains.
        """
        if self.remaining < LENGTH_PREFIX_SIZE:
            return None

        offset = self.pos
        length = _U16.unpack_from(self._view, offset)[0]
        start = offset + LENGTH_PREFIX_SIZE
        available = min(length, len(self._view) - start)
        payload = self._view[start:start + available]
        self.pos = start + available
        self.records_read += 1

        if available < length:
            identity = CommandIdentity.resolve(self.file_type, payload[0]) if available else None
            LOGGER.debug(
                "Truncated command at offset %d: declared %d bytes, %d available",
                offset, length, available,
            )
            return UnprocessedEntry(
                identity=identity,
                offset=offset,
                length=length,
                error=f"Truncated payload: declared {length} bytes, {available} available",
            )

        if length == 0:
            LOGGER.debug("Empty command at offset %d", offset)
            return UnprocessedEntry(identity=None, offset=offset, length=0, error="Empty command record")

        identity = CommandIdentity.resolve(self.file_type, payload[0])
        if not identity.is_navigation_update:
            return UnprocessedEntry(identity=identity, offset=offset, length=length)

        return self._decode_navigation(identity, offset, length, payload[1:])

    def _decode_navigation(
        self,
        identity: CommandIdentity,
        offset: int,
        length: int,
        body: memoryview,
    ) -> DecodeResult:
        candidates = [body]
        if self.strip_header:
            stripped = strip_pickle_header(body)
            if len(stripped) != len(body):
                # A headerless body whose session_id equals its own size looks headed
                candidates.insert(0, stripped)

        error = None
        for candidate in candidates:
            try:
                return NavigationEntryDecoder(PickleReader(candidate, alignment=PICKLE_ALIGNMENT)).decode()
            except PickleError as e:
                error = error or str(e)
        LOGGER.debug("Error decoding %s at offset %d: %s", identity, offset, error)
        return UnprocessedEntry(identity=identity, offset=offset, length=length, error=error)

    def close(self) -> None:
        """Release the borrowed buffer so the caller can unmap it."""
        self._view.release()

    def __enter__(self) -> "SnssContainer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def iter_records(buffer: Buffer, file_type: FileType = FileType.SESSION, **kwargs) -> Iterator[DecodeResult]:
    """Convenience generator over a fresh container."""
    yield from SnssContainer(buffer, file_type, **kwargs)
