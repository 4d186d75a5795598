"""
SNSS command identities.

Session files (Session_*, Current/Last Session) and tab restore files
(Tabs_*, Current/Last Tabs) number their commands independently, so a command
id only means something together with the file type.

References:
- https://chromium.googlesource.com/chromium/src/+/refs/heads/main/components/sessions/core/session_service_commands.cc
- https://chromium.googlesource.com/chromium/src/+/refs/heads/main/components/sessions/core/tab_restore_service_impl.cc
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum, StrEnum
from typing import Dict, Optional, Type, Union


class FileType(StrEnum):
    """Which command table a container uses."""

    SESSION = "session"
    TAB = "tab"


class SessionCommand(IntEnum):
    """Command ids in session files."""

    SET_TAB_WINDOW = 0
    SET_WINDOW_BOUNDS = 1  # Obsolete, superseded by SET_WINDOW_BOUNDS3
    SET_TAB_INDEX_IN_WINDOW = 2
    TAB_CLOSED_OBSOLETE = 3
    WINDOW_CLOSED_OBSOLETE = 4
    TAB_NAVIGATION_PATH_PRUNED_FROM_BACK = 5
    UPDATE_TAB_NAVIGATION = 6
    SET_SELECTED_NAVIGATION_INDEX = 7
    SET_SELECTED_TAB_IN_INDEX = 8
    SET_WINDOW_TYPE = 9
    SET_WINDOW_BOUNDS2 = 10  # Obsolete
    TAB_NAVIGATION_PATH_PRUNED_FROM_FRONT = 11
    SET_PINNED_STATE = 12
    SET_EXTENSION_APP_ID = 13
    SET_WINDOW_BOUNDS3 = 14
    SET_WINDOW_APP_NAME = 15
    TAB_CLOSED = 16
    WINDOW_CLOSED = 17
    SET_TAB_USER_AGENT_OVERRIDE = 18
    SESSION_STORAGE_ASSOCIATED = 19
    SET_ACTIVE_WINDOW = 20
    LAST_ACTIVE_TIME = 21
    SET_WINDOW_WORKSPACE = 22  # Obsolete
    SET_WINDOW_WORKSPACE2 = 23
    TAB_NAVIGATION_PATH_PRUNED = 24
    SET_TAB_GROUP = 25
    SET_TAB_GROUP_METADATA = 26  # Obsolete
    SET_TAB_GROUP_METADATA2 = 27
    SET_TAB_GUID = 28
    SET_TAB_USER_AGENT_OVERRIDE2 = 29
    SET_TAB_DATA = 30
    SET_WINDOW_USER_TITLE = 31
    SET_WINDOW_VISIBLE_ON_ALL_WORKSPACES = 32
    ADD_TAB_EXTRA_DATA = 33
    ADD_WINDOW_EXTRA_DATA = 34
    SET_PLATFORM_SESSION_ID = 35
    SET_SPLIT_TAB = 36
    SET_SPLIT_TAB_DATA = 37
    INITIAL_STATE_MARKER = 255


class TabCommand(IntEnum):
    """Command ids in tab restore files."""

    UPDATE_TAB_NAVIGATION = 1
    RESTORED_ENTRY = 2
    WINDOW_DEPRECATED = 3
    SELECTED_NAVIGATION_IN_TAB = 4
    PINNED_STATE = 5
    SET_EXTENSION_APP_ID = 6
    SET_WINDOW_APP_NAME = 7
    SET_TAB_USER_AGENT_OVERRIDE = 8
    WINDOW = 9
    SET_TAB_GROUP_DATA = 10
    SET_TAB_USER_AGENT_OVERRIDE2 = 11
    SET_WINDOW_USER_TITLE = 12
    CREATE_GROUP = 13
    ADD_TAB_EXTRA_DATA = 14
    ADD_WINDOW_EXTRA_DATA = 15
    INITIAL_STATE_MARKER = 255


CommandKind = Union[SessionCommand, TabCommand]

COMMAND_TABLES: Dict[FileType, Type[IntEnum]] = {
    FileType.SESSION: SessionCommand,
    FileType.TAB: TabCommand,
}

# Exactly one command per table carries a fully decoded navigation entry
NAVIGATION_UPDATE_COMMANDS: Dict[FileType, CommandKind] = {
    FileType.SESSION: SessionCommand.UPDATE_TAB_NAVIGATION,
    FileType.TAB: TabCommand.UPDATE_TAB_NAVIGATION,
}


@dataclass(frozen=True)
class CommandIdentity:
    """
    A command id resolved against its file type's table.

    ``kind`` is None for ids the table does not know; those are reported as
    ``Unknown(<id>)`` and are never an error.
    """

    file_type: FileType
    command_id: int
    kind: Optional[CommandKind] = None

    @classmethod
    def resolve(cls, file_type: FileType, command_id: int) -> "CommandIdentity":
        file_type = FileType(file_type)
        if not 0 <= command_id <= 0xFF:
            raise ValueError(f"command id must fit in one byte, got {command_id}")
        table = COMMAND_TABLES[file_type]
        try:
            kind = table(command_id)
        except ValueError:
            kind = None
        return cls(file_type=file_type, command_id=command_id, kind=kind)

    @property
    def is_unknown(self) -> bool:
        return self.kind is None

    @property
    def is_navigation_update(self) -> bool:
        return self.kind is not None and self.kind is NAVIGATION_UPDATE_COMMANDS[self.file_type]

    @property
    def name(self) -> str:
        if self.kind is None:
            return f"Unknown({self.command_id})"
        return self.kind.name

    def to_dict(self) -> dict:
        return {
            "file_type": str(self.file_type),
            "command_id": self.command_id,
            "name": self.name,
        }

    def __str__(self) -> str:
        return self.name
