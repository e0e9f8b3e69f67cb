from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
import itertools
from typing import Union

from .entry_parsing import LogEntry


def format_duration(milliseconds: int) -> str:
    """
    Render a duration with its largest nonzero unit first, followed by every
    smaller unit down to seconds, e.g. "35s", "2m 5s", "1d 0h 0m 5s".
    """
    seconds, _ = divmod(milliseconds, 1000)
    minutes, seconds = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    days, hours = divmod(hours, 24)

    if days:
        return f"{days}d {hours}h {minutes}m {seconds}s"
    elif hours:
        return f"{hours}h {minutes}m {seconds}s"
    elif minutes:
        return f"{minutes}m {seconds}s"
    else:
        return f"{seconds}s"


@dataclass(frozen=True)
class GapMarker:
    """
    Period of no activity across all merged files, longer than the gap threshold.
    """
    duration_ms: int

    @property
    def formatted_duration(self) -> str:
        return format_duration(self.duration_ms)

    @classmethod
    def between(cls, earlier: LogEntry, later: LogEntry) -> GapMarker:
        return cls(later.timestamp - earlier.timestamp)


MergedItem = Union[LogEntry, GapMarker]


def _sort_key(entry: LogEntry) -> tuple[bool, int]:
    # entries whose timestamps could not be parsed go after all the valid ones
    if entry.timestamp is None:
        return True, 0
    return False, entry.timestamp


def merge_entries(
        entry_lists: Iterable[Iterable[LogEntry]],
        gap_threshold_ms: int | float,
        *,
        show_time_gaps: bool = True,
) -> list[MergedItem]:
    """
    Merge the entries of all files into one chronological sequence, inserting a
    GapMarker between two adjacent entries whose timestamps differ by more than
    gap_threshold_ms.

    entry_lists must be given in file selection order: the sort is stable, so
    entries with equal timestamps keep their file order, and then their order
    within the file.
    """
    all_entries = sorted(itertools.chain.from_iterable(entry_lists), key=_sort_key)
    if not all_entries:
        return []

    # gaps always have a positive duration, even for a negative threshold
    threshold = max(gap_threshold_ms, 0)

    merged: list[MergedItem] = [all_entries[0]]
    for prev_entry, entry in itertools.pairwise(all_entries):
        if (
                show_time_gaps
                and prev_entry.has_valid_timestamp
                and entry.has_valid_timestamp
                and entry.timestamp - prev_entry.timestamp > threshold
        ):
            merged.append(GapMarker.between(prev_entry, entry))
        merged.append(entry)

    return merged


def entries_only(merged: Iterable[MergedItem]) -> list[LogEntry]:
    return [item for item in merged if isinstance(item, LogEntry)]


def gaps_only(merged: Iterable[MergedItem]) -> list[GapMarker]:
    return [item for item in merged if isinstance(item, GapMarker)]
