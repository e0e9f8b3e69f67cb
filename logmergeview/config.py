"""Merge configuration: frozen dataclass, loaded from a mapping or a JSON settings file."""
from __future__ import annotations

import codecs
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from functools import cached_property
import json
import logging
from pathlib import Path
import re
from typing import Any, Optional

from .errors import ConfigurationError
from .timestamp_parsing import TIMESTAMP_PRESETS, TimestampFormatter

logger = logging.getLogger(__name__)

PREFIX_TYPES = ("full", "short", "initial")

SETTINGS_KEY_PREFIX = "logMergerViewer."

DEFAULT_COLOR_PALETTE = (
    "#ffe4e1",
    "#e0f4e0",
    "#e0e8ff",
    "#fff6d5",
    "#f3e0f7",
    "#dff5f5",
)

DEFAULT_DARK_COLOR_PALETTE = (
    "#5a2a2a",
    "#2a4a2a",
    "#2a3560",
    "#5a5020",
    "#4a2a55",
    "#1f4f4f",
)

# camelCase names used in editor settings files
SETTINGS_KEY_ALIASES = {
    "timeFormat": "time_format",
    "timeRegex": "time_regex",
    "showTimeGaps": "show_time_gaps",
    "timeGapThresholdSeconds": "time_gap_threshold_seconds",
    "timeGapThreshold": "time_gap_threshold_seconds",
    "showFilePrefix": "show_file_prefix",
    "filePrefixType": "file_prefix_type",
    "colorPalette": "color_palette",
    "darkColorPalette": "dark_color_palette",
    "darkThemeColorPalette": "dark_color_palette",
    "mapContinuationLines": "map_continuation_lines",
    "maxWorkers": "max_workers",
}


def _parse_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


@dataclass(frozen=True)
class MergeOptions:
    time_format: TimestampFormatter = field(default_factory=lambda: list(TIMESTAMP_PRESETS["iso"].time_format))
    time_regex: str = TIMESTAMP_PRESETS["iso"].time_regex
    show_time_gaps: bool = True
    time_gap_threshold_seconds: float = 60
    show_file_prefix: bool = True
    file_prefix_type: str = "short"
    color_palette: tuple[str, ...] = DEFAULT_COLOR_PALETTE
    dark_color_palette: Optional[tuple[str, ...]] = DEFAULT_DARK_COLOR_PALETTE
    encoding: str = "utf-8"
    map_continuation_lines: bool = False
    max_workers: Optional[int] = None

    @property
    def gap_threshold_ms(self) -> float:
        return self.time_gap_threshold_seconds * 1000

    @cached_property
    def compiled_time_regex(self) -> re.Pattern:
        try:
            return re.compile(self.time_regex)
        except (re.error, TypeError) as err:
            raise ConfigurationError(f"invalid timestamp regex {self.time_regex!r}: {err}") from err

    def palette(self, dark: bool = False) -> tuple[str, ...]:
        if dark and self.dark_color_palette is not None:
            return self.dark_color_palette
        return self.color_palette

    def validate(self) -> MergeOptions:
        if not self.color_palette:
            raise ConfigurationError("color palette is not configured (empty or missing)")
        if self.dark_color_palette is not None and not self.dark_color_palette:
            raise ConfigurationError("dark color palette is configured, but is empty")

        time_re = self.compiled_time_regex
        if time_re.groups != 1:
            raise ConfigurationError(
                f"timestamp regex {self.time_regex!r} must contain exactly one capturing group,"
                f" found {time_re.groups}"
            )

        if self.time_gap_threshold_seconds is None:
            raise ConfigurationError("time gap threshold is not configured")

        time_format = self.time_format
        if isinstance(time_format, (list, tuple)):
            format_ok = bool(time_format) and all(isinstance(fmt, str) for fmt in time_format)
        else:
            format_ok = isinstance(time_format, str) or callable(time_format)
        if not format_ok:
            raise ConfigurationError(f"invalid timestamp format {time_format!r}")

        try:
            codecs.lookup(self.encoding)
        except (LookupError, TypeError):
            raise ConfigurationError(f"unknown file encoding {self.encoding!r}") from None

        if self.file_prefix_type not in PREFIX_TYPES:
            logger.debug("unknown file prefix type %r, using 'full'", self.file_prefix_type)

        return self

    def with_preset(self, preset_name: str) -> MergeOptions:
        try:
            preset = TIMESTAMP_PRESETS[preset_name]
        except KeyError:
            raise ConfigurationError(
                f"unknown timestamp preset {preset_name!r}, must be one of {', '.join(TIMESTAMP_PRESETS)}"
            ) from None
        return replace(self, time_regex=preset.time_regex, time_format=preset.time_format)

    def updated(self, **kwargs) -> MergeOptions:
        """Return a copy, with any values given as None left unchanged."""
        return replace(self, **{k: v for k, v in kwargs.items() if v is not None})


def _normalize_value(name: str, value: Any) -> Any:
    if name in ("show_time_gaps", "show_file_prefix", "map_continuation_lines"):
        return _parse_bool(value)
    if name == "time_gap_threshold_seconds":
        try:
            return float(value)
        except (TypeError, ValueError):
            raise ConfigurationError(f"invalid time gap threshold {value!r}") from None
    if name in ("color_palette", "dark_color_palette"):
        if value is None:
            return None
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, (list, tuple)) or not all(isinstance(color, str) for color in value):
            raise ConfigurationError(f"invalid color palette {value!r}, must be a list of color strings")
        return tuple(value)
    if name == "time_format" and isinstance(value, (list, tuple)):
        return list(value)
    if name == "max_workers" and value is not None:
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ConfigurationError(f"invalid number of worker threads {value!r}") from None
    return value


def load_options(settings: Mapping[str, Any], base: MergeOptions | None = None) -> MergeOptions:
    """
    Build MergeOptions from a mapping of settings. Keys may be given as the
    dataclass field names, or as camelCase settings names, optionally prefixed
    with "logMergerViewer.".
    """
    base = base or MergeOptions()
    field_names = {f.name for f in fields(MergeOptions)}

    values = {}
    for key, value in settings.items():
        key = key.removeprefix(SETTINGS_KEY_PREFIX)
        name = SETTINGS_KEY_ALIASES.get(key, key)
        if name not in field_names:
            logger.debug("ignoring unknown setting %r", key)
            continue
        values[name] = _normalize_value(name, value)

    return replace(base, **values)


def load_options_file(path: str | Path, base: MergeOptions | None = None) -> MergeOptions:
    """Read MergeOptions from a JSON settings file."""
    try:
        settings = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as err:
        raise ConfigurationError(f"cannot read settings file {str(path)!r}: {err}") from err

    if not isinstance(settings, dict):
        raise ConfigurationError(f"settings file {str(path)!r} must contain a JSON object")

    # allow settings nested under a "logMergerViewer" object, too
    nested = settings.get(SETTINGS_KEY_PREFIX.rstrip("."))
    if isinstance(nested, dict):
        settings = {**settings, **nested}

    return load_options(settings, base)
