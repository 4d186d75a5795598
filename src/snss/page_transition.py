"""
Chromium page transition decoding.

A transition is a packed u32: the low byte is the core transition (how the
navigation started) and the upper bits are independent qualifier flags.

References:
- https://chromium.googlesource.com/chromium/src/+/refs/heads/main/ui/base/page_transition_types.h
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum, IntFlag
from typing import List

CORE_MASK = 0x000000FF
QUALIFIER_MASK = 0xFFFFFF00


class CoreTransition(IntEnum):
    """Primary classification of a navigation."""

    LINK = 0
    TYPED = 1
    AUTO_BOOKMARK = 2
    AUTO_SUBFRAME = 3
    MANUAL_SUBFRAME = 4
    GENERATED = 5
    AUTO_TOPLEVEL = 6
    FORM_SUBMIT = 7
    RELOAD = 8
    KEYWORD = 9
    KEYWORD_GENERATED = 10
    UNKNOWN = -1  # Low byte outside the known table


class TransitionQualifier(IntFlag):
    """Bit flags refining how a navigation occurred."""

    BLOCKED = 0x00800000
    FORWARD_BACK = 0x01000000
    FROM_ADDRESS_BAR = 0x02000000
    HOME_PAGE = 0x04000000
    FROM_API = 0x08000000
    CHAIN_START = 0x10000000
    CHAIN_END = 0x20000000
    CLIENT_REDIRECT = 0x40000000
    SERVER_REDIRECT = 0x80000000


KNOWN_QUALIFIER_BITS = 0
for _flag in TransitionQualifier:
    KNOWN_QUALIFIER_BITS |= _flag.value
del _flag

REDIRECT_MASK = TransitionQualifier.CLIENT_REDIRECT | TransitionQualifier.SERVER_REDIRECT

_CORE_BY_VALUE = {member.value: member for member in CoreTransition if member is not CoreTransition.UNKNOWN}


@dataclass(frozen=True)
class PageTransition:
    """Decoded view over a raw transition value."""

    value: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", self.value & 0xFFFFFFFF)

    @property
    def core_value(self) -> int:
        return self.value & CORE_MASK

    @property
    def core_transition(self) -> CoreTransition:
        return _CORE_BY_VALUE.get(self.core_value, CoreTransition.UNKNOWN)

    @property
    def qualifiers(self) -> TransitionQualifier:
        # Bits outside the named set are dropped
        return TransitionQualifier(self.value & QUALIFIER_MASK & KNOWN_QUALIFIER_BITS)

    @property
    def is_redirect(self) -> bool:
        return bool(self.qualifiers & REDIRECT_MASK)

    def qualifier_names(self) -> List[str]:
        """Names of the set qualifiers, lowest bit first."""
        qualifiers = self.qualifiers
        return [flag.name for flag in TransitionQualifier if flag in qualifiers]

    def to_dict(self) -> dict:
        return {
            "value": self.value,
            "core": self.core_transition.name,
            "qualifiers": self.qualifier_names(),
        }

    def __str__(self) -> str:
        names = self.qualifier_names()
        if not names:
            return self.core_transition.name
        return f"{self.core_transition.name}|{'|'.join(names)}"
