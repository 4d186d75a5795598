"""
Command-line front end: decode one SNSS file and print its records as JSON.

Usage:
    snss-dump "Current Session"
    snss-dump Tabs_13345678901234567 --format summary
    python -m snss Session_13345678901234567 --file-type session
"""

from __future__ import annotations

import argparse
import json
import mmap
import sys
from contextlib import contextmanager
from itertools import islice
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, TextIO, Union

from core.config import FILE_TYPE_CHOICES, AppConfig, load_app_config
from core.logging import configure_logging, get_logger

from .commands import FileType
from .container import HEADER_SIZE, SnssContainer
from .exceptions import MalformedContainerError
from .records import NavigationEntry
from .summary import summarize

LOGGER = get_logger("snss.cli")

EXIT_OK = 0
EXIT_MALFORMED = 1
EXIT_USAGE = 2

SESSION_NAME_PREFIXES = ("session_", "current session", "last session")
TAB_NAME_PREFIXES = ("tabs_", "current tabs", "last tabs")


def guess_file_type(name: str) -> Optional[FileType]:
    """Map a Chromium session file name to its command table, or None."""
    lowered = Path(name).name.lower()
    if lowered.startswith(SESSION_NAME_PREFIXES):
        return FileType.SESSION
    if lowered.startswith(TAB_NAME_PREFIXES):
        return FileType.TAB
    return None


@contextmanager
def mapped_file(path: Path) -> Iterator[Union[mmap.mmap, bytes]]:
    """Memory-map ``path`` read-only; tiny files are read into memory instead."""
    with path.open("rb") as handle:
        size = path.stat().st_size
        if size <= HEADER_SIZE:
            # mmap refuses empty files, and a bare header has nothing to borrow
            yield handle.read()
            return
        mapped = mmap.mmap(handle.fileno(), 0, access=mmap.ACCESS_READ)
        try:
            yield mapped
        finally:
            mapped.close()


def non_negative_int(value: str) -> int:
    """argparse type for counts where 0 means unlimited."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}") from None
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be 0 or greater, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="snss-dump",
        description="Decode a Chromium session restore (SNSS) file.",
    )
    parser.add_argument("path", type=Path, help="SNSS file (Session_*, Tabs_*, Current Session, ...)")
    parser.add_argument(
        "--file-type",
        choices=FILE_TYPE_CHOICES,
        default=None,
        help="Command table to use (default: from config, else guessed from the file name)",
    )
    parser.add_argument("--format", choices=("jsonl", "summary"), default="jsonl")
    parser.add_argument("--config-dir", type=Path, default=None, help="Base directory holding config/config.yml")
    parser.add_argument("--log-dir", type=Path, default=None, help="Write processing.log to this directory")
    parser.add_argument("--log-level", default=None, help="Override the configured log level")
    parser.add_argument("--max-records", type=non_negative_int, default=None, help="Stop after N records (0 = unlimited)")
    return parser


def _resolve_file_type(choice: str, path: Path) -> Optional[FileType]:
    if choice != "auto":
        return FileType(choice)
    return guess_file_type(path.name)


def _write_records(container: SnssContainer, config: AppConfig, limit: int, out: TextIO) -> int:
    failed = 0
    records = islice(container, limit) if limit else container
    for result in records:
        if isinstance(result, NavigationEntry):
            data = result.to_dict(include_page_state=config.output.include_page_state)
        else:
            if result.is_failed:
                failed += 1
                LOGGER.warning("Record at offset %d not decoded: %s", result.offset, result.error)
            if not config.output.include_unprocessed and not result.is_failed:
                continue
            data = result.to_dict()
        out.write(json.dumps(data, ensure_ascii=False) + "\n")
    return failed


def run(argv: Optional[Sequence[str]] = None, out: Optional[TextIO] = None) -> int:
    out = out or sys.stdout
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_app_config(args.config_dir or Path.cwd())
    except (ValueError, OSError) as e:
        print(f"snss-dump: invalid configuration: {e}", file=sys.stderr)
        return EXIT_USAGE

    if args.log_level:
        config.logging.level = args.log_level
    configure_logging(
        args.log_dir or config.logs_dir,
        level=config.logging.level_number,
        max_bytes=config.logging.log_max_mb * 1024 * 1024,
        backup_count=config.logging.log_backup_count,
    )
    LOGGER.debug("Resolved configuration: %s", config.to_json())

    file_type = _resolve_file_type(args.file_type or config.decoder.default_file_type, args.path)
    if file_type is None:
        LOGGER.warning("Cannot tell file type from %r, assuming session", args.path.name)
        file_type = FileType.SESSION

    limit = args.max_records if args.max_records is not None else config.decoder.max_records

    try:
        with mapped_file(args.path) as buffer:
            with SnssContainer(buffer, file_type, strip_header=config.decoder.strip_pickle_header) as container:
                LOGGER.info("Decoding %s (version %d, %s commands)", args.path, container.version, file_type)
                if args.format == "summary":
                    records = islice(container, limit) if limit else container
                    summary = summarize(records)
                    out.write(json.dumps(summary.to_dict(), indent=2, ensure_ascii=False) + "\n")
                    failed = summary.failed_records
                else:
                    failed = _write_records(container, config, limit, out)
                LOGGER.info("Decoded %d records (%d failed)", container.records_read, failed)
    except MalformedContainerError as e:
        LOGGER.error("%s: %s", args.path, e)
        return EXIT_MALFORMED
    except OSError as e:
        LOGGER.error("Cannot read %s: %s", args.path, e)
        return EXIT_USAGE

    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    return run(argv)


if __name__ == "__main__":
    sys.exit(main())
