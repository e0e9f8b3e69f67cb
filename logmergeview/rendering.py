from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
import logging
import re
from typing import NamedTuple, Optional

from .entry_parsing import LogEntry
from .merging import GapMarker, MergedItem

logger = logging.getLogger(__name__)

HEADER_TITLE = "# Log Merger Viewer - merged log file"
HEADER_GENERATED_AT = "# Generated: {:%Y-%m-%d %H:%M:%S}"
HEADER_SOURCE_FILES = "# Source files:"
HEADER_COLOR_LEGEND = "# File colors:"
HEADER_SEPARATOR = "#"
COLOR_BLOCK = "■"

# title, generated at, source files label, "#", color legend label
HEADER_BASE_LINE_COUNT = 5

LARGE_HIGHLIGHT_LINE_COUNT = 10_000


@dataclass
class FileInfo:
    """
    A parsed input file. index is the file's position in the selection order,
    and selects its palette color; color is the only field that changes after
    parsing (when the palette is switched).
    """
    filename: str
    color: str
    entries: list[LogEntry] = field(default_factory=list)
    index: int = 0


class LineOrigin(NamedTuple):
    file: str
    color: str


class LineMap(Mapping):
    """
    Read-only mapping of zero-based output line number to the LineOrigin
    (source file and color) of that line.
    """
    def __init__(self, origins: Mapping[int, LineOrigin] | Iterable[tuple[int, LineOrigin]] = ()):
        self._origins: dict[int, LineOrigin] = dict(origins)

    def __getitem__(self, line_number: int) -> LineOrigin:
        return self._origins[line_number]

    def __iter__(self) -> Iterator[int]:
        return iter(self._origins)

    def __len__(self) -> int:
        return len(self._origins)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._origins!r})"

    def file_at(self, line_number: int) -> Optional[str]:
        origin = self._origins.get(line_number)
        return origin.file if origin is not None else None

    def recolored(self, colors_by_file: Mapping[str, str]) -> LineMap:
        """
        Return a new LineMap with the same line numbers and files, with colors
        replaced from colors_by_file.
        """
        return LineMap(
            (line_number, LineOrigin(origin.file, colors_by_file.get(origin.file, origin.color)))
            for line_number, origin in self._origins.items()
        )


@dataclass(frozen=True)
class RenderOptions:
    show_file_prefix: bool = True
    file_prefix_type: str = "short"
    show_time_gaps: bool = True
    # map every physical line of a multiline entry, not just its first line
    map_continuation_lines: bool = False

    @classmethod
    def from_merge_options(cls, options) -> RenderOptions:
        return cls(
            show_file_prefix=options.show_file_prefix,
            file_prefix_type=options.file_prefix_type,
            show_time_gaps=options.show_time_gaps,
            map_continuation_lines=options.map_continuation_lines,
        )


class RenderResult(NamedTuple):
    text: str
    line_map: LineMap


def make_prefix(filename: str, prefix_type: str) -> str:
    """
    Inline marker written ahead of each entry from this file:
    - full: "[api-server.log] "
    - short: "[api-server] " (last ".ext" removed)
    - initial: "[ASL] " (first letter of each alphanumeric run, uppercased)
    Any other prefix_type is treated as full.
    """
    if prefix_type == "short":
        label = re.sub(r"\.[^/.]+$", "", filename)
    elif prefix_type == "initial":
        label = "".join(part[0].upper() for part in re.split(r"[^a-zA-Z0-9]", filename) if part)
    else:
        label = filename
    return f"[{label}] "


def header_line_count(file_count: int) -> int:
    # base header lines, one line per file, and a closing "#" line
    return HEADER_BASE_LINE_COUNT + file_count + 1


def render(
        file_infos: Sequence[FileInfo],
        merged: Iterable[MergedItem],
        options: RenderOptions = RenderOptions(),
        *,
        generated_at: datetime | None = None,
) -> RenderResult:
    """
    Serialize the merged sequence, following a header describing the source
    files, and build the line number -> (file, color) map for the output.

    Each entry registers a single line in the map, and advances the content line
    count by 1, even if the entry spans several physical lines (unless
    options.map_continuation_lines is set, in which case every physical line of
    the entry is mapped and counted). Gap markers take 3 unmapped lines.
    """
    if generated_at is None:
        generated_at = datetime.now()

    prefixes = {}
    if options.show_file_prefix:
        prefixes = {fi.filename: make_prefix(fi.filename, options.file_prefix_type) for fi in file_infos}

    files_by_name: dict[str, FileInfo] = {}
    for fi in file_infos:
        files_by_name.setdefault(fi.filename, fi)

    line_origins: dict[int, LineOrigin] = {}

    out_lines = [
        HEADER_TITLE,
        HEADER_GENERATED_AT.format(generated_at),
        HEADER_SOURCE_FILES,
        HEADER_SEPARATOR,
        HEADER_COLOR_LEGEND,
    ]
    for i, fi in enumerate(file_infos):
        legend = f"# {COLOR_BLOCK} {fi.filename} ({fi.color})"
        if options.show_file_prefix:
            legend += f" - prefix: {prefixes[fi.filename].rstrip()}"
        out_lines.append(legend)
        line_origins[HEADER_BASE_LINE_COUNT + i] = LineOrigin(fi.filename, fi.color)
    out_lines.append(HEADER_SEPARATOR)

    header_lines = header_line_count(len(file_infos))
    content_line = 0

    for item in merged:
        if isinstance(item, GapMarker):
            if not options.show_time_gaps:
                continue
            out_lines.extend(["", f"--- {item.formatted_duration} ---", ""])
            content_line += 3

        elif isinstance(item, LogEntry):
            out_lines.append(prefixes.get(item.source_file, "") + item.content)

            fi = files_by_name.get(item.source_file)
            if options.map_continuation_lines:
                line_count = len(item.lines)
            else:
                line_count = 1
            if fi is not None:
                for offset in range(line_count):
                    line_origins[header_lines + content_line + offset] = LineOrigin(fi.filename, fi.color)
            content_line += line_count

        else:
            raise TypeError(f"cannot render merged item of type {type(item).__name__}")

    text = "\n".join(out_lines) + "\n"
    return RenderResult(text, LineMap(line_origins))


def output_lines(text: str) -> list[str]:
    """
    Split rendered text into the lines numbered by the line map. Only "\\n"
    ends a line; a lone "\\r" or form feed inside an entry stays in its line.
    """
    return text.removesuffix("\n").split("\n")


class FileHighlight(NamedTuple):
    color: str
    line_numbers: list[int]


def group_lines_by_file(line_map: Mapping[int, LineOrigin]) -> dict[str, FileHighlight]:
    """
    Group mapped line numbers by source file, in order of first appearance, so
    that a highlighter can apply one decoration per file.
    """
    groups: dict[str, FileHighlight] = {}
    for line_number in sorted(line_map):
        origin = line_map[line_number]
        if origin.file not in groups:
            groups[origin.file] = FileHighlight(origin.color, [])
        groups[origin.file].line_numbers.append(line_number)

    for fname, highlight in groups.items():
        logger.debug(
            "highlighting %d lines from %s (color: %s)", len(highlight.line_numbers), fname, highlight.color
        )

    if len(line_map) > LARGE_HIGHLIGHT_LINE_COUNT:
        logger.warning("highlighting %d lines, display may be slow", len(line_map))

    return groups


def describe_line(
        line_number: int,
        line_map: Mapping[int, LineOrigin],
        file_infos: Sequence[FileInfo],
) -> Optional[str]:
    """
    Markdown description of the source file of the given output line, or None
    if the line is not mapped to a file.
    """
    origin = line_map.get(line_number)
    if origin is None:
        return None

    lines = [
        "**File information**",
        "",
        f"- **File name**: {origin.file}",
        f"- **Color**: {COLOR_BLOCK} {origin.color}",
    ]
    source = next((fi for fi in file_infos if fi.filename == origin.file), None)
    if source is not None:
        lines.append(f"- **Entries**: {len(source.entries)}")
    return "\n".join(lines)
