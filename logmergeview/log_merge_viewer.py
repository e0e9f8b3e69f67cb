#
# log_merge_viewer.py
#
# Utility for merging multiple log files into a single chronological view,
# marking each line with the file it came from.
#

import argparse
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from datetime import datetime
import logging
from pathlib import Path
import sys
from typing import Optional, Union

import littletable as lt

from .colors import ColorAssigner
from .config import PREFIX_TYPES, MergeOptions, load_options_file
from .entry_parsing import LogEntry, parse_log_bytes
from .errors import ConfigurationError, PerFileParseError
from .file_reading import FileReader
from .merging import MergedItem, entries_only, gaps_only, merge_entries
from .rendering import FileInfo, LineMap, RenderOptions, render
from .timestamp_parsing import TIMESTAMP_PRESETS

logger = logging.getLogger(__name__)

# file contents, or a function that reads them
SourceContent = Union[bytes, Callable[[], bytes]]
LogSource = tuple[str, SourceContent]


@dataclass(frozen=True)
class MergeResult:
    text: str
    line_map: LineMap
    file_infos: list[FileInfo]
    merged: list[MergedItem]
    failures: list[PerFileParseError] = field(default_factory=list)
    color_assigner: Optional[ColorAssigner] = None

    def recolored(self, palette: Sequence[str]) -> "MergeResult":
        """
        Apply a different palette (such as for a dark theme). Each file keeps its
        palette index, so only the colors change; the text and the line numbers
        in the line map are unchanged.
        """
        colors = self.color_assigner.colors(palette)
        file_infos = [replace(fi, color=colors[fi.index]) for fi in self.file_infos]

        colors_by_file = {}
        for fi in file_infos:
            colors_by_file.setdefault(fi.filename, fi.color)

        return replace(
            self,
            file_infos=file_infos,
            line_map=self.line_map.recolored(colors_by_file),
        )


def _parse_source(source: LogSource, options: MergeOptions) -> Union[list[LogEntry], PerFileParseError]:
    fname, content = source
    try:
        if callable(content):
            content = content()
        return parse_log_bytes(
            content,
            fname,
            options.compiled_time_regex,
            options.time_format,
            options.encoding,
        )
    except UnicodeDecodeError as ude:
        return PerFileParseError(fname, f"cannot decode file contents as {options.encoding}: {ude}")
    except (OSError, EOFError) as read_err:
        return PerFileParseError(fname, f"cannot read file: {read_err}")
    except Exception as exc:
        # any other failure only excludes this one file from the merge
        return PerFileParseError(fname, f"{type(exc).__name__}: {exc}")


def merge_log_sources(
        sources: Sequence[LogSource],
        options: MergeOptions,
        *,
        use_dark_palette: bool = False,
        generated_at: Optional[datetime] = None,
) -> MergeResult:
    """
    Parse, merge and render the given (filename, content) sources, given in
    selection order.

    Raises ConfigurationError before anything is parsed if the options are not
    usable. Files that cannot be decoded or parsed are left out, and reported in
    MergeResult.failures.
    """
    options.validate()

    color_assigner = ColorAssigner([fname for fname, _ in sources])
    colors = color_assigner.colors(options.palette(use_dark_palette))

    if options.max_workers and options.max_workers > 1 and len(sources) > 1:
        # executor.map returns results in selection order
        with ThreadPoolExecutor(max_workers=options.max_workers) as executor:
            parse_results = list(executor.map(lambda src: _parse_source(src, options), sources))
    else:
        parse_results = [_parse_source(src, options) for src in sources]

    file_infos: list[FileInfo] = []
    failures: list[PerFileParseError] = []
    for index, ((fname, _), parse_result) in enumerate(zip(sources, parse_results)):
        if isinstance(parse_result, PerFileParseError):
            logger.error("error parsing file %s", parse_result)
            failures.append(parse_result)
            continue
        if not parse_result:
            logger.warning("%s: no lines match the timestamp pattern", fname)
        file_infos.append(FileInfo(fname, colors[index], parse_result, index=index))

    merged = merge_entries(
        (fi.entries for fi in file_infos),
        options.gap_threshold_ms,
        show_time_gaps=options.show_time_gaps,
    )
    logger.info(
        "merged %d entries from %d files, with %d time gaps",
        len(entries_only(merged)), len(file_infos), len(gaps_only(merged)),
    )

    text, line_map = render(
        file_infos,
        merged,
        RenderOptions.from_merge_options(options),
        generated_at=generated_at,
    )

    return MergeResult(text, line_map, file_infos, merged, failures, color_assigner)


def make_argument_parser():
    epilog_notes = """
    Log entries are found using a regular expression with a single capture group
    for the timestamp (--time_regex), and the captured text is converted using
    one or more strptime formats (--time_format). Lines that do not match the
    regex are continuation lines, and are kept with the preceding entry. Predefined
    regex/format pairs can be selected with --preset.

    Settings can also be read from a JSON file (--config), using either the
    option names below or the editor settings names such as "logMergerViewer.timeFormat".
    Command line options override values from the settings file.
    """

    parser = argparse.ArgumentParser(prog="logmergeview", epilog=epilog_notes)
    parser.add_argument("files", nargs="+", help="log files to be merged")
    parser.add_argument(
        "--interactive", "-i",
        action="store_true",
        help="show output using interactive TUI browser"
    )
    parser.add_argument("--output", "-o", default="-", help="save merged log to file ('-' for stdout)")
    parser.add_argument("--csv", "-csv", help="save merged log entries to CSV file")
    parser.add_argument("--table", action="store_true", help="present merged log entries as a table")
    parser.add_argument("--config", "-c", help="JSON settings file")
    parser.add_argument("--preset", choices=list(TIMESTAMP_PRESETS), help="predefined timestamp regex and format")
    parser.add_argument(
        "--time_format",
        action="append",
        help="strptime format for log timestamps, or 'epoch' or 'epoch_millis' (may be given more than once)"
    )
    parser.add_argument("--time_regex", help="regex with a single capture group for the log timestamp")
    parser.add_argument(
        "--gap_threshold",
        type=float,
        help="report periods with no log activity longer than this many seconds (default 60)"
    )
    parser.add_argument("--no_gaps", action="store_true", help="do not report time gaps")
    parser.add_argument("--no_prefix", action="store_true", help="do not mark log lines with their source file")
    parser.add_argument("--prefix_type", choices=PREFIX_TYPES, help="style of source file marker (default 'short')")
    parser.add_argument("--dark", action="store_true", help="use the dark color palette")
    parser.add_argument(
        "--map_all_lines",
        action="store_true",
        help="map every line of a multiline log entry to its source file, not just the first"
    )
    parser.add_argument("--jobs", "-j", type=int, help="number of threads to use to parse files")
    parser.add_argument(
        "--encoding", "-enc",
        type=str,
        help="encoding to use when reading log files (defaults to UTF-8)")
    parser.add_argument("--verbose", "-v", action="store_true", help="log debugging details")

    return parser


def build_options(config: argparse.Namespace) -> MergeOptions:
    options = MergeOptions()
    if config.config:
        options = load_options_file(config.config, options)
    if config.preset:
        options = options.with_preset(config.preset)

    time_format = config.time_format
    if time_format and len(time_format) == 1:
        time_format = time_format[0]

    return options.updated(
        time_format=time_format,
        time_regex=config.time_regex,
        time_gap_threshold_seconds=config.gap_threshold,
        show_time_gaps=False if config.no_gaps else None,
        show_file_prefix=False if config.no_prefix else None,
        file_prefix_type=config.prefix_type,
        map_continuation_lines=True if config.map_all_lines else None,
        max_workers=config.jobs,
        encoding=config.encoding,
    )


class LogMergeViewerApplication:
    def __init__(self, config: argparse.Namespace):
        self.config = config

        self.fnames = config.files
        self.options = build_options(config)

        self.interactive = config.interactive
        self.table_output = config.table
        self.save_to_csv = config.csv
        self.output = config.output
        self.use_dark_palette = config.dark

    def run(self) -> int:
        readers = [FileReader.get_reader(fname) for fname in self.fnames]
        for rdr in readers:
            logger.info("merging %s", rdr.file_name)

        # files are read as they are parsed, so a file that cannot be read
        # keeps its place (and color) in the selection order
        result = merge_log_sources(
            [(rdr.display_name, rdr.read_bytes) for rdr in readers],
            self.options,
            use_dark_palette=self.use_dark_palette,
        )

        if not result.file_infos:
            logger.error("none of the given files could be merged")
            return 2

        for fi in result.file_infos:
            logger.debug("%s: %d entries, color %s", fi.filename, len(fi.entries), fi.color)

        if self.save_to_csv:
            self._entries_table(result).csv_export(self.save_to_csv)

        elif self.table_output:
            self._entries_table(result).present()

        elif self.interactive:
            self._display_merged_lines_interactively(result)

        else:
            self._write_text(result.text)

        return 0

    def _entries_table(self, result: MergeResult) -> lt.Table:
        # build a littletable Table for easy tabular output
        entries_table = lt.Table()
        entries_table.insert_many(
            {
                "timestamp": entry.time_text,
                "epoch_ms": "" if entry.timestamp is None else entry.timestamp,
                "file": entry.source_file,
                "content": entry.content,
            }
            for entry in entries_only(result.merged)
        )
        return entries_table

    def _write_text(self, text: str) -> None:
        if self.output == "-":
            sys.stdout.write(text)
        else:
            Path(self.output).write_text(text, encoding="utf-8")
            logger.info("merged log saved to %s", self.output)

    def _display_merged_lines_interactively(self, result: MergeResult) -> None:
        from .interactive_viewing import InteractiveLogMergeViewerApp

        app = InteractiveLogMergeViewerApp()
        app.config(
            result=result,
            light_palette=self.options.palette(dark=False),
            dark_palette=self.options.palette(dark=True),
            use_dark_palette=self.use_dark_palette,
        )
        app.run()


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = make_argument_parser()
    args_ns = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args_ns.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        app = LogMergeViewerApplication(args_ns)
        return app.run()
    except ConfigurationError as ce:
        logger.error("configuration error: %s", ce)
        return 2


if __name__ == '__main__':
    sys.exit(main())
