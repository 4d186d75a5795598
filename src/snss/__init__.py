"""
Chromium SNSS Session File Decoder

Decodes session restore files (Session_*, Tabs_*, Current/Last Session,
Current/Last Tabs) into navigation entries and passthrough command records.
"""

from .commands import CommandIdentity, FileType, SessionCommand, TabCommand
from .container import SnssContainer, iter_records
from .exceptions import (
    InvalidBoolError,
    InvalidMagicError,
    MalformedContainerError,
    PickleError,
    SnssError,
    TruncatedError,
    UnsupportedVersionError,
    Utf16DecodeError,
    Utf8DecodeError,
)
from .navigation_entry import NavigationEntryDecoder, decode_navigation_entry
from .page_transition import CoreTransition, PageTransition, TransitionQualifier
from .pickle_reader import PickleReader
from .records import NavigationEntry, UnprocessedEntry
from .summary import SessionSummary, extract_urls_with_metadata, summarize

__all__ = [
    "CommandIdentity",
    "CoreTransition",
    "FileType",
    "InvalidBoolError",
    "InvalidMagicError",
    "MalformedContainerError",
    "NavigationEntry",
    "NavigationEntryDecoder",
    "PageTransition",
    "PickleError",
    "PickleReader",
    "SessionCommand",
    "SessionSummary",
    "SnssContainer",
    "SnssError",
    "TabCommand",
    "TransitionQualifier",
    "TruncatedError",
    "UnprocessedEntry",
    "UnsupportedVersionError",
    "Utf16DecodeError",
    "Utf8DecodeError",
    "decode_navigation_entry",
    "extract_urls_with_metadata",
    "iter_records",
    "summarize",
]
