from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from itertools import groupby
import logging
import re
from typing import Optional

from .timestamp_parsing import TimestampFormatter, TimestampParser

logger = logging.getLogger(__name__)

line_break_re = re.compile(r"\r?\n")


@dataclass(frozen=True)
class LogEntry:
    """
    One logical log record: the line that matched the timestamp regex, plus any
    continuation lines that followed it. A timestamp of None means that the
    captured text could not be parsed with the configured time format.
    """
    timestamp: Optional[int]
    time_text: str
    content: str
    source_file: str

    @property
    def has_valid_timestamp(self) -> bool:
        return self.timestamp is not None

    @property
    def lines(self) -> list[str]:
        return self.content.split("\n")


class NewEntryDetector:
    """
    Callable class used as a key function for itertools.groupby. Each line that
    matches the timestamp pattern starts a new group; lines that don't match keep
    the key of the last matching line, so that they are grouped with it. Lines
    ahead of the first match get key 0.
    """
    def __init__(self, time_re: re.Pattern):
        self._search = time_re.search
        self._entry_number = 0

    def __call__(self, line: str) -> int:
        if self._search(line):
            self._entry_number += 1
        return self._entry_number


def split_lines(text: str) -> list[str]:
    return line_break_re.split(text)


def parse_entries(
        text: str,
        filename: str,
        time_re: re.Pattern | str,
        time_format: TimestampFormatter,
) -> list[LogEntry]:
    """
    Converts the text of a log file into LogEntry's, in file order.

    Converts:
        2023-07-14 08:00:04 ERROR  Request processed unsuccessfully
        Something went wrong
        Traceback (last line is latest):
            sample.py: line 32
                divide(100, 0)
        ZeroDivisionError: division by zero

        2023-07-14 08:00:06 INFO   User authentication failed

    to two log entries (the blank line is dropped). Lines ahead of the first
    timestamped line are discarded, since there is no entry to attach them to.
    """
    if isinstance(time_re, str):
        time_re = re.compile(time_re)
    to_millis = TimestampParser(time_format)

    # blank lines never become content, not even continuation content
    non_blank_lines: Iterable[str] = (line for line in split_lines(text) if line.strip())

    entries = []
    for entry_number, lines in groupby(non_blank_lines, key=NewEntryDetector(time_re)):
        if entry_number == 0:
            continue

        first_line, *continuation_lines = lines
        time_text = time_re.search(first_line)[1] or ""
        entries.append(
            LogEntry(
                timestamp=to_millis(time_text),
                time_text=time_text,
                content="\n".join([first_line, *continuation_lines]),
                source_file=filename,
            )
        )

    invalid_count = sum(not entry.has_valid_timestamp for entry in entries)
    if invalid_count:
        logger.debug("%s: %d entries with unparseable timestamps", filename, invalid_count)

    return entries


def parse_log_bytes(
        content: bytes,
        filename: str,
        time_re: re.Pattern | str,
        time_format: TimestampFormatter,
        encoding: str = "utf-8",
) -> list[LogEntry]:
    """
    Decode raw file contents and parse them. Raises UnicodeDecodeError if the
    bytes are not valid for the given encoding.
    """
    text = content.decode(encoding)
    # drop a leading byte-order mark, if present
    text = text.removeprefix("\ufeff")
    return parse_entries(text, filename, time_re, time_format)
