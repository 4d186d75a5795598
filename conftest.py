"""Global pytest configuration."""
from pathlib import Path

import pytest

from tests.fixtures.snss import navigation_prefix, navigation_tail, snss_command, snss_file

pytest_plugins = ["tests.fixtures.snss"]


@pytest.fixture()
def session_file(tmp_path: Path) -> Path:
    """Write a small session file with two tabs and a few passthrough commands."""
    data = snss_file([
        snss_command(0, b"\x01\x00\x00\x00\x0a\x00\x00\x00"),  # SET_TAB_WINDOW
        snss_command(6, navigation_prefix(session_id=10, index=0, url="https://a.example/", title="A")
                     + navigation_tail()),
        snss_command(6, navigation_prefix(session_id=10, index=1, url="https://b.example/", title="B")),
        snss_command(6, navigation_prefix(session_id=11, index=0, url="https://c.example/", title="C")),
        snss_command(200, b"\x00\x00\x00\x00"),
    ])
    path = tmp_path / "Session_13350000000000000"
    path.write_bytes(data)
    return path
