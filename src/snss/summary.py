"""
Aggregation over one decode pass.

Folds the flat result sequence into per-tab navigation histories and command
statistics for reporting.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Set

from core.timestamps import to_iso

from .commands import FileType
from .container import DecodeResult, SnssContainer
from .pickle_reader import Buffer
from .records import NavigationEntry, UnprocessedEntry


@dataclass
class TabHistory:
    """Navigation entries sharing one session_id, ordered by index."""

    session_id: int
    navigations: List[NavigationEntry] = field(default_factory=list)

    @property
    def urls(self) -> List[str]:
        return [entry.url for entry in self.navigations]


@dataclass
class SessionSummary:
    """Complete aggregated result of a decode pass."""

    tabs: Dict[int, TabHistory] = field(default_factory=dict)
    command_counts: Counter = field(default_factory=Counter)
    # Schema warning support: ids newer browsers introduced
    unknown_commands: Set[int] = field(default_factory=set)
    failed_records: int = 0
    total_records: int = 0

    @property
    def navigation_count(self) -> int:
        return sum(len(tab.navigations) for tab in self.tabs.values())

    def to_dict(self) -> dict:
        return {
            "total_records": self.total_records,
            "navigation_entries": self.navigation_count,
            "failed_records": self.failed_records,
            "unknown_commands": sorted(self.unknown_commands),
            "command_counts": dict(sorted(self.command_counts.items())),
            "tabs": [
                {"session_id": tab.session_id, "urls": tab.urls}
                for tab in sorted(self.tabs.values(), key=lambda t: t.session_id)
            ],
        }


def summarize(results: Iterable[DecodeResult]) -> SessionSummary:
    """Fold a result sequence into a SessionSummary."""
    summary = SessionSummary()

    for result in results:
        summary.total_records += 1

        if isinstance(result, NavigationEntry):
            summary.command_counts["UPDATE_TAB_NAVIGATION"] += 1
            tab = summary.tabs.get(result.session_id)
            if tab is None:
                tab = summary.tabs[result.session_id] = TabHistory(session_id=result.session_id)
            tab.navigations.append(result)
            continue

        if isinstance(result, UnprocessedEntry):
            name = result.identity.name if result.identity else "EMPTY"
            summary.command_counts[name] += 1
            if result.identity is not None and result.identity.is_unknown:
                summary.unknown_commands.add(result.identity.command_id)
            if result.is_failed:
                summary.failed_records += 1

    for tab in summary.tabs.values():
        tab.navigations.sort(key=lambda entry: entry.index)

    return summary


def extract_urls_with_metadata(
    data: Buffer,
    file_type: FileType = FileType.SESSION,
    max_urls: int = 0,
) -> List[dict]:
    """
    Extract URLs with metadata from SNSS data.

    Convenience function that returns a list of dicts in first-seen order.

    Args:
        data: Raw SNSS file data
        file_type: Command table to decode with
        max_urls: Maximum URLs to return (0 = unlimited)

    Returns:
        List of dicts with 'url', 'title', 'timestamp', 'referrer_url',
        'http_status', 'transition' keys

    Raises:
        MalformedContainerError: if the header is invalid
    """
    urls: List[dict] = []
    seen: Set[str] = set()

    for result in SnssContainer(data, file_type):
        if not isinstance(result, NavigationEntry) or not result.url:
            continue

        # Skip duplicates by URL
        if result.url in seen:
            continue
        seen.add(result.url)

        urls.append({
            "url": result.url,
            "title": result.title,
            "timestamp": to_iso(result.timestamp),
            "referrer_url": result.referrer_url,
            "http_status": result.http_status,
            "transition": str(result.transition),
        })

        if max_urls > 0 and len(urls) >= max_urls:
            break

    return urls

