"""
Navigation entry decoding.

Navigation Entry Pickle Format (from serialized_navigation_entry.cc):

Required prefix (any failure fails the record):
1. session_id (int32) - owning tab
2. index (int32)
3. virtual_url (string)
4. title (string16)
5. encoded_page_state (int32 length + raw bytes)
6. transition_type (uint32)
7. type_mask (uint32)

Optional tail (appended by newer browser versions; each field decodes or is
absent on its own):
8. referrer_url (string)
9. reserved (int32) - deprecated referrer policy slot
10. original_request_url (string)
11. is_overriding_user_agent (bool)
12. timestamp (uint64)
13. search_terms (string16)
14. http_status_code (int32)
15. referrer_policy (int32)
16. extended_info_map (int32 count + count * (string, string))
17. task_id, parent_task_id, root_task_id (int64)
18. child_task_id_count (int32)
"""

from __future__ import annotations

from typing import Callable, Dict, Optional, TypeVar

from core.logging import get_logger

from .exceptions import InvalidLengthError, PickleError, TruncatedError
from .page_transition import PageTransition
from .pickle_reader import PickleReader
from .records import NavigationEntry

LOGGER = get_logger("snss.navigation_entry")

T = TypeVar("T")


class NavigationEntryDecoder:
    """Builds one NavigationEntry from a PickleReader positioned at its start."""

    def __init__(self, reader: PickleReader):
        self.reader = reader

    def decode(self) -> NavigationEntry:
        """
        Decode the required prefix, then as much of the optional tail as exists.

        Raises:
            PickleError: if any required-prefix field cannot be read
        """
        reader = self.reader

        session_id = reader.read_int32()
        index = reader.read_int32()
        url = reader.read_string()
        title = reader.read_string16()
        page_state = bytes(reader.read_bytes())
        transition = PageTransition(reader.read_uint32())
        type_mask = reader.read_uint32()

        tail = self._decode_tail()

        return NavigationEntry(
            session_id=session_id,
            index=index,
            url=url,
            title=title,
            page_state=page_state,
            transition=transition,
            type_mask=type_mask,
            **tail,
        )

    def _optional(self, name: str, read: Callable[[], T]) -> Optional[T]:
        try:
            return read()
        except TruncatedError as e:
            # The body ended inside this field, so nothing after it can be read
            if not self.reader.at_end():
                LOGGER.debug("Optional field %s truncated: %s", name, e)
            self.reader.skip_remaining()
            return None
        except PickleError as e:
            LOGGER.debug("Optional field %s not decoded: %s", name, e)
            return None

    def _read_count(self) -> int:
        count = self.reader.read_int32()
        if count < 0:
            raise InvalidLengthError(f"Negative extended map count {count}")
        return count

    def _read_extended_map(self, count: int) -> Dict[str, str]:
        extended_map: Dict[str, str] = {}
        for _ in range(count):
            key = self.reader.read_string()
            extended_map[key] = self.reader.read_string()
        return extended_map

    def _decode_tail(self) -> dict:
        reader = self.reader
        tail = {
            "referrer_url": self._optional("referrer_url", reader.read_string),
            "reserved_referrer_policy": self._optional("reserved_referrer_policy", reader.read_int32),
            "original_request_url": self._optional("original_request_url", reader.read_string),
            "is_overriding_user_agent": self._optional("is_overriding_user_agent", reader.read_bool),
            "timestamp": self._optional("timestamp", reader.read_datetime),
            "search_terms": self._optional("search_terms", reader.read_string16),
            "http_status": self._optional("http_status", reader.read_int32),
            "referrer_policy": self._optional("referrer_policy", reader.read_int32),
        }

        count = self._optional("extended_map_count", self._read_count)
        extended_map = None
        if count is not None:
            extended_map = self._optional("extended_map", lambda: self._read_extended_map(count))

        if extended_map is None:
            # Without a complete map the cursor position of the task ids is unknown
            for name in ("task_id", "parent_task_id", "root_task_id", "child_task_id_count"):
                tail[name] = None
            tail["extended_map"] = None
            return tail

        tail["extended_map"] = extended_map
        tail["task_id"] = self._optional("task_id", reader.read_int64)
        tail["parent_task_id"] = self._optional("parent_task_id", reader.read_int64)
        tail["root_task_id"] = self._optional("root_task_id", reader.read_int64)
        tail["child_task_id_count"] = self._optional("child_task_id_count", reader.read_int32)
        return tail


def decode_navigation_entry(data, alignment: int = 4) -> NavigationEntry:
    """Decode a navigation entry from a pickled command body."""
    return NavigationEntryDecoder(PickleReader(data, alignment=alignment)).decode()
