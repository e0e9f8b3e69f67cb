from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, NamedTuple, Optional, Union

TimestampFormatter = Union[str, list[str], Callable[[str], datetime]]

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
ONE_MILLISECOND = timedelta(milliseconds=1)


def parse_time_using(ts_str: str, formats: str | list[str]) -> datetime:
    if not isinstance(formats, (list, tuple)):
        formats = [formats]
    for fmt in formats:
        try:
            return datetime.strptime(ts_str, fmt)
        except ValueError:
            pass
    raise ValueError(f"no matching format for input string {ts_str!r}")


def to_epoch_millis(dt: datetime) -> int:
    """
    Convert a datetime to integer milliseconds since the epoch. Naive datetimes
    are taken to be local time.
    """
    if dt.tzinfo is None:
        dt = dt.astimezone()
    return (dt - EPOCH) // ONE_MILLISECOND


def _syslog_time(s: str) -> datetime:
    # syslog timestamps omit the year, so assume the current one
    return datetime.strptime(f"{datetime.now().year} {s}", "%Y %b %d %H:%M:%S")


SPECIAL_FORMATS: dict[str, Callable[[str], datetime]] = {
    "epoch": lambda s: datetime.fromtimestamp(float(s), tz=timezone.utc),
    "epoch_millis": lambda s: EPOCH + int(s) * ONE_MILLISECOND,
    "syslog": _syslog_time,
}


class TimestampParser:
    """
    Converts the timestamp text captured from a log line into epoch milliseconds.

    The formatter may be a strptime format string, a list of strptime formats to
    be tried in order, one of the names in SPECIAL_FORMATS, or any callable that
    takes the captured string and returns a datetime.
    """
    def __init__(self, formatter: TimestampFormatter):
        if isinstance(formatter, str) and formatter in SPECIAL_FORMATS:
            self.str_to_time = SPECIAL_FORMATS[formatter]
        elif isinstance(formatter, (str, list, tuple)):
            self.str_to_time = lambda s: parse_time_using(s, formatter)
        else:
            self.str_to_time = formatter

    def __call__(self, ts_str: str) -> Optional[int]:
        """
        Returns None when the text does not parse; callers keep the log entry
        anyway, with an invalid timestamp.
        """
        try:
            return to_epoch_millis(self.str_to_time(ts_str.strip()))
        except (ValueError, OverflowError, OSError):
            return None


class TimestampPreset(NamedTuple):
    time_regex: str
    time_format: TimestampFormatter


TIMESTAMP_PRESETS: dict[str, TimestampPreset] = {
    # "YYYY-MM-DD HH:MM:SS", with optional ",SSS" or ".SSS" milliseconds
    "iso": TimestampPreset(
        r"(\d{4}-\d{2}-\d{2}\s\d{2}:\d{2}:\d{2}(?:[,.]\d{3})?)",
        ["%Y-%m-%d %H:%M:%S,%f", "%Y-%m-%d %H:%M:%S.%f", "%Y-%m-%d %H:%M:%S"],
    ),
    # "YYYY-MM-DDTHH:MM:SS", with optional ",SSS" or ".SSS" milliseconds
    "iso-t": TimestampPreset(
        r"(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(?:[,.]\d{3})?)",
        ["%Y-%m-%dT%H:%M:%S,%f", "%Y-%m-%dT%H:%M:%S.%f", "%Y-%m-%dT%H:%M:%S"],
    ),
    # syslog "mon day hh:mm:ss"
    "syslog": TimestampPreset(
        r"^([JFMASOND][a-z]{2}\s[\s\d]\d \d{2}:\d{2}:\d{2})",
        "syslog",
    ),
    # 91.194.60.14 - - [16/Sep/2023:19:05:06 +0000] "GET /index.html HTTP/1.1" 200 1027
    "apache": TimestampPreset(
        r"\[(\d{2}/\w{3}/\d{4}:\d{2}:\d{2}:\d{2} [+-]\d{4})\]",
        "%d/%b/%Y:%H:%M:%S %z",
    ),
    # 10-digit seconds, with optional fraction, "1694561169.550987"
    "epoch": TimestampPreset(r"^(\d{10}(?:\.\d+)?)\b", "epoch"),
    # 13-digit milliseconds, "1694561169550"
    "epoch-millis": TimestampPreset(r"^(\d{13})\b", "epoch_millis"),
}
