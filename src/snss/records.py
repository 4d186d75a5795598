"""
Result records produced by SnssContainer iteration.

Optional-tail fields of NavigationEntry use None for "absent": the field was
not in the record (older browser) or could not be decoded.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from core.timestamps import to_iso

from .commands import CommandIdentity
from .page_transition import PageTransition

OPTIONAL_TAIL_FIELDS = (
    "referrer_url",
    "reserved_referrer_policy",
    "original_request_url",
    "is_overriding_user_agent",
    "timestamp",
    "search_terms",
    "http_status",
    "referrer_policy",
    "extended_map",
    "task_id",
    "parent_task_id",
    "root_task_id",
    "child_task_id_count",
)

# type_mask bit set when the navigation carried POST data
HAS_POST_DATA_MASK = 0x1


@dataclass(frozen=True)
class NavigationEntry:
    """Decoded navigation-update command."""

    # Required prefix
    session_id: int
    index: int
    url: str
    title: str
    page_state: bytes
    transition: PageTransition
    type_mask: int

    # Optional tail
    referrer_url: Optional[str] = None
    reserved_referrer_policy: Optional[int] = None
    original_request_url: Optional[str] = None
    is_overriding_user_agent: Optional[bool] = None
    timestamp: Optional[datetime] = None
    search_terms: Optional[str] = None
    http_status: Optional[int] = None
    referrer_policy: Optional[int] = None
    # MappingProxyType is unhashable
    extended_map: Optional[Mapping[str, str]] = field(default=None, hash=False)
    task_id: Optional[int] = None
    parent_task_id: Optional[int] = None
    root_task_id: Optional[int] = None
    child_task_id_count: Optional[int] = None

    def __post_init__(self) -> None:
        if self.extended_map is not None and not isinstance(self.extended_map, MappingProxyType):
            object.__setattr__(self, "extended_map", MappingProxyType(dict(self.extended_map)))

    @property
    def has_post_data(self) -> bool:
        return bool(self.type_mask & HAS_POST_DATA_MASK)

    @property
    def absent_fields(self) -> List[str]:
        return [name for name in OPTIONAL_TAIL_FIELDS if getattr(self, name) is None]

    def to_dict(self, include_page_state: bool = False) -> Dict[str, Any]:
        data: Dict[str, Any] = {"kind": "navigation"}
        for item in fields(self):
            value = getattr(self, item.name)
            if item.name == "page_state":
                data["page_state_length"] = len(value)
                if include_page_state:
                    data["page_state"] = value.hex()
            elif item.name == "transition":
                data["transition"] = value.to_dict()
            elif item.name == "timestamp":
                data["timestamp"] = to_iso(value)
            elif item.name == "extended_map":
                data["extended_map"] = dict(value) if value is not None else None
            else:
                data[item.name] = value
        return data


@dataclass(frozen=True)
class UnprocessedEntry:
    """
    Passthrough for a command that was not fully decoded.

    ``offset`` is the position of the record's length prefix in the file and
    ``length`` the declared payload length. ``error`` is set when the record
    should have decoded but could not (truncated payload, malformed navigation
    entry); ``identity`` is None only for records too short to hold a command id.
    """

    identity: Optional[CommandIdentity]
    offset: int
    length: int
    error: Optional[str] = None

    @property
    def is_failed(self) -> bool:
        return self.error is not None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "kind": "unprocessed",
            "command": self.identity.to_dict() if self.identity else None,
            "offset": self.offset,
            "length": self.length,
            "error": self.error,
        }
        return data
