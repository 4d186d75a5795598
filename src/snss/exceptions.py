"""
Exceptions for SNSS decoding.

Container-level errors abort before iteration starts. Pickle-level errors are
raised by PickleReader and are always caught by the record decoders; they never
escape SnssContainer iteration.
"""


class SnssError(Exception):
    """Base exception for SNSS decoding errors."""
    pass


class MalformedContainerError(SnssError):
    """Raised when the file header cannot be accepted."""
    pass


class InvalidMagicError(MalformedContainerError):
    """Raised when the first four bytes are not ``SNSS``."""

    def __init__(self, magic: bytes):
        self.magic = bytes(magic)
        super().__init__(f"Invalid header magic {self.magic!r}, expected b'SNSS'")


class UnsupportedVersionError(MalformedContainerError):
    """Raised when the header version is not a supported plaintext version."""

    def __init__(self, version: int, hint: str = ""):
        self.version = version
        message = f"Unsupported SNSS version: {version}"
        if hint:
            message += f" ({hint})"
        super().__init__(message)


class PickleError(SnssError):
    """Base exception for field-level pickle decoding errors."""
    pass


class TruncatedError(PickleError):
    """Raised when fewer bytes remain than a read and its padding need."""

    def __init__(self, needed: int, remaining: int, offset: int):
        self.needed = needed
        self.remaining = remaining
        self.offset = offset
        super().__init__(
            f"Truncated read at offset {offset}: need {needed} bytes, {remaining} remain"
        )


class InvalidLengthError(PickleError):
    """Raised when a length or count prefix is negative."""
    pass


class InvalidBoolError(PickleError):
    """Raised when a pickled bool is neither 0 nor 1."""

    def __init__(self, value: int):
        self.value = value
        super().__init__(f"Invalid bool value: {value}")


class Utf8DecodeError(PickleError):
    """Raised when a pickled string is not valid UTF-8."""
    pass


class Utf16DecodeError(PickleError):
    """Raised when a pickled string16 is not valid UTF-16 (e.g. unpaired surrogate)."""
    pass


class InvalidTimestampError(PickleError):
    """Raised when a pickled time cannot be represented as a datetime."""
    pass
