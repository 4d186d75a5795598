"""
Tests for the SNSS container.

Tests the Chromium SNSS (Session Service) container:
- Magic header and version validation
- Command framing and cursor movement
- Navigation-update dispatch and passthrough records
- Truncated and malformed records
"""
import struct

import pytest

from snss.commands import CommandIdentity, FileType, SessionCommand, TabCommand
from snss.container import HEADER_SIZE, SnssContainer, iter_records, strip_pickle_header
from snss.exceptions import (
    InvalidMagicError,
    MalformedContainerError,
    UnsupportedVersionError,
)
from snss.page_transition import CoreTransition
from snss.records import NavigationEntry, UnprocessedEntry
from tests.fixtures.snss import (
    navigation_prefix,
    navigation_tail,
    snss_command,
    snss_file,
    with_pickle_header,
)


# ===========================================================================
# Header Tests
# ===========================================================================

class TestHeader:
    """Test magic and version validation."""

    @pytest.mark.parametrize("version", [1, 3])
    def test_supported_versions(self, version):
        container = SnssContainer(snss_file(version=version))
        assert container.version == version
        assert container.pos == HEADER_SIZE

    def test_wrong_magic(self):
        with pytest.raises(InvalidMagicError) as excinfo:
            SnssContainer(b"SNSX" + struct.pack("<I", 3))
        assert isinstance(excinfo.value, MalformedContainerError)
        assert excinfo.value.magic == b"SNSX"

    def test_empty_buffer(self):
        with pytest.raises(InvalidMagicError):
            SnssContainer(b"")

    def test_short_header(self):
        with pytest.raises(MalformedContainerError):
            SnssContainer(b"SNSS\x03\x00")

    @pytest.mark.parametrize("version", [0, 5, 99])
    def test_unsupported_version(self, version):
        with pytest.raises(UnsupportedVersionError) as excinfo:
            SnssContainer(snss_file(version=version))
        assert excinfo.value.version == version

    @pytest.mark.parametrize("version", [2, 4])
    def test_encrypted_version(self, version):
        with pytest.raises(UnsupportedVersionError, match="encrypted"):
            SnssContainer(snss_file(version=version))

    def test_open_classmethod(self):
        container = SnssContainer.open(snss_file(), FileType.TAB)
        assert container.file_type is FileType.TAB

    def test_header_only_file(self):
        container = SnssContainer(snss_file())
        assert list(container) == []
        assert container.read_record() is None


# ===========================================================================
# Dispatch Tests
# ===========================================================================

class TestDispatch:
    """Test command classification and decoding."""

    def test_single_navigation_then_end(self):
        data = snss_file([snss_command(6, navigation_prefix())])
        container = SnssContainer(data)

        entry = next(container)
        assert isinstance(entry, NavigationEntry)
        assert entry.index == 0
        assert entry.url == "http://x"
        assert entry.transition.core_transition is CoreTransition.TYPED
        with pytest.raises(StopIteration):
            next(container)

    def test_unknown_command_passthrough(self):
        data = snss_file([snss_command(200, b"\x01\x02\x03\x04")])
        results = list(SnssContainer(data))

        assert len(results) == 1
        result = results[0]
        assert isinstance(result, UnprocessedEntry)
        assert result.identity == CommandIdentity(FileType.SESSION, 200)
        assert result.identity.name == "Unknown(200)"
        assert result.offset == HEADER_SIZE
        assert result.length == 5
        assert not result.is_failed

    def test_known_command_passthrough(self):
        data = snss_file([snss_command(0, b"\x01\x00\x00\x00\x02\x00\x00\x00")])
        result = next(SnssContainer(data))

        assert isinstance(result, UnprocessedEntry)
        assert result.identity.kind is SessionCommand.SET_TAB_WINDOW
        assert result.error is None

    def test_tab_file_navigation_id(self):
        data = snss_file([snss_command(1, navigation_prefix(session_id=9))])

        tab_result = next(SnssContainer(data, FileType.TAB))
        assert isinstance(tab_result, NavigationEntry)
        assert tab_result.session_id == 9

        session_result = next(SnssContainer(data, FileType.SESSION))
        assert isinstance(session_result, UnprocessedEntry)
        assert session_result.identity.kind is SessionCommand.SET_WINDOW_BOUNDS

    def test_session_navigation_id_in_tab_file(self):
        data = snss_file([snss_command(6, navigation_prefix())])
        result = next(SnssContainer(data, FileType.TAB))
        assert isinstance(result, UnprocessedEntry)
        assert result.identity.kind is TabCommand.SET_EXTENSION_APP_ID

    def test_pickle_header_is_stripped(self):
        body = with_pickle_header(navigation_prefix(session_id=5, url="https://headed.example/"))
        result = next(SnssContainer(snss_file([snss_command(6, body)])))

        assert isinstance(result, NavigationEntry)
        assert result.session_id == 5
        assert result.url == "https://headed.example/"

    def test_full_entry_through_container(self, full_navigation_body):
        result = next(SnssContainer(snss_file([snss_command(6, full_navigation_body)])))
        assert isinstance(result, NavigationEntry)
        assert result.absent_fields == []

    def test_iter_records(self):
        data = snss_file([snss_command(6, navigation_prefix()), snss_command(200)])
        kinds = [type(result) for result in iter_records(data)]
        assert kinds == [NavigationEntry, UnprocessedEntry]


class TestStripPickleHeader:
    """Test detection of Chromium's pickle size prefix."""

    def test_headed_body(self):
        body = with_pickle_header(b"\x01\x00\x00\x00")
        assert bytes(strip_pickle_header(memoryview(body))) == b"\x01\x00\x00\x00"

    def test_plain_body_unchanged(self):
        body = navigation_prefix()
        assert bytes(strip_pickle_header(memoryview(body))) == body

    def test_short_body_unchanged(self):
        assert bytes(strip_pickle_header(memoryview(b"\x01"))) == b"\x01"

    def test_session_id_equal_to_body_size_still_decodes(self):
        """A headerless body that looks headed falls back to the full body."""
        session_id = len(navigation_prefix()) - 4
        body = navigation_prefix(session_id=session_id)
        result = next(SnssContainer(snss_file([snss_command(6, body)])))

        assert isinstance(result, NavigationEntry)
        assert result.session_id == session_id
        assert result.url == "http://x"

    def test_headed_body_failing_both_ways_reports_first_error(self):
        body = with_pickle_header(b"\x01\x00\x00\x00")
        result = next(SnssContainer(snss_file([snss_command(6, body)])))

        assert isinstance(result, UnprocessedEntry)
        assert result.is_failed
        assert "offset 4" in result.error

    def test_stripping_disabled(self):
        body = with_pickle_header(navigation_prefix(session_id=5))
        result = next(SnssContainer(snss_file([snss_command(6, body)]), strip_header=False))

        # The size prefix is read as session_id and every field shifts by one
        assert isinstance(result, NavigationEntry)
        assert result.session_id == len(navigation_prefix())
        assert result.index == 5
        assert result.url == ""


# ===========================================================================
# Framing Tests
# ===========================================================================

class TestFraming:
    """Test cursor movement across records."""

    def test_cursor_advances_by_record_sizes(self):
        records = [
            snss_command(0, b"\x01\x00\x00\x00\x02\x00\x00\x00"),
            snss_command(6, navigation_prefix() + navigation_tail()),
            snss_command(6, b"\x01\x00"),  # malformed navigation
            snss_command(200),
            snss_command(21, bytes(16)),
        ]
        container = SnssContainer(snss_file(records))

        expected_offset = HEADER_SIZE
        for record in records:
            result = next(container)
            declared = struct.unpack_from("<H", record)[0]
            if isinstance(result, UnprocessedEntry):
                assert result.offset == expected_offset
                assert result.length == declared
            expected_offset += 2 + declared
            assert container.pos == expected_offset

        assert container.read_record() is None
        assert container.pos == expected_offset
        assert container.records_read == len(records)

    def test_malformed_navigation_does_not_hide_next_record(self):
        data = snss_file([
            snss_command(6, b"\x01\x00"),
            snss_command(6, navigation_prefix(url="https://after.example/")),
        ])
        results = list(SnssContainer(data))

        assert len(results) == 2
        failed, entry = results
        assert isinstance(failed, UnprocessedEntry)
        assert failed.is_failed
        assert failed.identity.is_navigation_update
        assert "Truncated" in failed.error
        assert isinstance(entry, NavigationEntry)
        assert entry.url == "https://after.example/"

    def test_truncated_payload(self):
        """Declared length beyond the buffer yields one failed record."""
        data = snss_file() + struct.pack("<HB", 100, 6) + b"short"
        container = SnssContainer(data)
        results = list(container)

        assert len(results) == 1
        result = results[0]
        assert isinstance(result, UnprocessedEntry)
        assert result.is_failed
        assert result.identity.kind is SessionCommand.UPDATE_TAB_NAVIGATION
        assert result.length == 100
        assert container.pos == len(data)

    def test_truncated_payload_without_command_id(self):
        data = snss_file() + struct.pack("<H", 10)
        results = list(SnssContainer(data))

        assert len(results) == 1
        assert results[0].identity is None
        assert results[0].is_failed

    def test_truncated_length_prefix_is_clean_end(self):
        data = snss_file([snss_command(200)]) + b"\x05"
        results = list(SnssContainer(data))

        assert len(results) == 1
        assert not results[0].is_failed

    def test_zero_length_record(self):
        data = snss_file() + struct.pack("<H", 0) + snss_command(6, navigation_prefix())
        results = list(SnssContainer(data))

        assert len(results) == 2
        assert isinstance(results[0], UnprocessedEntry)
        assert results[0].identity is None
        assert results[0].length == 0
        assert results[0].is_failed
        assert isinstance(results[1], NavigationEntry)

    def test_corrupted_data_handled(self):
        """Garbage after the header never raises."""
        data = snss_file() + b"\xFF\xFF\xFF\xFF" * 10
        results = list(SnssContainer(data))
        assert results
        assert all(isinstance(result, UnprocessedEntry) for result in results)


# ===========================================================================
# Lifecycle Tests
# ===========================================================================

class TestLifecycle:
    """Test iteration and buffer ownership."""

    def test_not_restartable(self):
        container = SnssContainer(snss_file([snss_command(200)]))
        assert len(list(container)) == 1
        assert list(container) == []

    def test_accepts_memoryview_and_bytearray(self):
        data = snss_file([snss_command(6, navigation_prefix())])
        assert isinstance(next(SnssContainer(memoryview(data))), NavigationEntry)
        assert isinstance(next(SnssContainer(bytearray(data))), NavigationEntry)

    def test_close_releases_buffer(self):
        buffer = bytearray(snss_file([snss_command(6, navigation_prefix()), snss_command(200)]))
        with SnssContainer(buffer) as container:
            results = list(container)
        # Resizing fails while any view into the bytearray is alive
        buffer.extend(b"\x00")
        assert len(results) == 2

    def test_close_keeps_caller_view(self):
        view = memoryview(snss_file())
        container = SnssContainer(view)
        container.close()
        assert bytes(view[:4]) == b"SNSS"
