import csv
import gzip

import pytest

from logmergeview.config import DEFAULT_COLOR_PALETTE, DEFAULT_DARK_COLOR_PALETTE, MergeOptions
from logmergeview.errors import ConfigurationError
from logmergeview.interactive_viewing import InteractiveLogMergeViewerApp
from logmergeview.log_merge_viewer import merge_log_sources
from logmergeview.merging import GapMarker
from logmergeview.rendering import LineOrigin

from .merge_testing import LogMergeViewTestApp
from .util import GENERATED_AT, contains_list, log_bytes

LIGHT_A, LIGHT_B, LIGHT_C = DEFAULT_COLOR_PALETTE[:3]
DARK_A, DARK_B, DARK_C = DEFAULT_DARK_COLOR_PALETTE[:3]

A_LOG = log_bytes(
    "2023-07-14 10:00:00 INFO   service A started",
    "2023-07-14 10:00:05 INFO   service A ready",
)
B_LOG = log_bytes(
    "2023-07-14 10:00:40 WARN   service B slow to respond",
)
C_LOG = log_bytes(
    "2023-07-14 10:00:02 ERROR  service C failed",
    "Traceback (most recent call last):",
    "ZeroDivisionError: division by zero",
)


def _merge(sources, options=None, **kwargs):
    if options is None:
        options = MergeOptions(time_gap_threshold_seconds=30)
    return merge_log_sources(sources, options, generated_at=GENERATED_AT, **kwargs)


def test_merge_two_sources():
    result = _merge([("A.log", A_LOG), ("B.log", B_LOG)])

    lines = result.text.splitlines()
    assert lines[8:] == [
        "[A] 2023-07-14 10:00:00 INFO   service A started",
        "[A] 2023-07-14 10:00:05 INFO   service A ready",
        "",
        "--- 35s ---",
        "",
        "[B] 2023-07-14 10:00:40 WARN   service B slow to respond",
    ]
    assert dict(result.line_map) == {
        5: LineOrigin("A.log", LIGHT_A),
        6: LineOrigin("B.log", LIGHT_B),
        8: LineOrigin("A.log", LIGHT_A),
        9: LineOrigin("A.log", LIGHT_A),
        13: LineOrigin("B.log", LIGHT_B),
    }
    assert result.merged[2] == GapMarker(35_000)
    assert result.failures == []


def test_multiline_entries_are_merged_whole():
    result = _merge([("A.log", A_LOG), ("C.log", C_LOG)])

    assert contains_list(
        result.text.splitlines(),
        [
            "[A] 2023-07-14 10:00:00 INFO   service A started",
            "[C] 2023-07-14 10:00:02 ERROR  service C failed",
            "Traceback (most recent call last):",
            "ZeroDivisionError: division by zero",
            "[A] 2023-07-14 10:00:05 INFO   service A ready",
        ]
    )


def test_undecodable_file_is_skipped_and_keeps_colors():
    result = _merge([
        ("A.log", A_LOG),
        ("bad.log", b"2023-07-14 10:00:01 \xff\xfe garbage"),
        ("C.log", C_LOG),
    ])

    assert [fi.filename for fi in result.file_infos] == ["A.log", "C.log"]
    assert [fi.color for fi in result.file_infos] == [LIGHT_A, LIGHT_C]
    assert [f.filename for f in result.failures] == ["bad.log"]
    assert "decode" in str(result.failures[0])
    assert all(origin.file != "bad.log" for origin in result.line_map.values())


def test_unreadable_source_is_skipped():
    def read_fails():
        raise FileNotFoundError("no such file: missing.log")

    result = _merge([("missing.log", read_fails), ("B.log", lambda: B_LOG)])

    assert [fi.filename for fi in result.file_infos] == ["B.log"]
    assert result.file_infos[0].color == LIGHT_B
    assert str(result.failures[0]).startswith("missing.log: cannot read file")


def test_file_without_timestamps_contributes_nothing(caplog):
    with caplog.at_level("WARNING"):
        result = _merge([("A.log", A_LOG), ("notes.txt", log_bytes("just some notes", "more notes"))])

    assert [fi.filename for fi in result.file_infos] == ["A.log", "notes.txt"]
    assert result.file_infos[1].entries == []
    assert "notes.txt: no lines match" in caplog.text
    assert "just some notes" not in result.text


@pytest.mark.parametrize(
    "options",
    [
        MergeOptions(color_palette=()),
        MergeOptions(time_regex=r"\d{2}:\d{2}:\d{2}"),
    ]
)
def test_configuration_error_before_parsing(options):
    read_calls = []

    def reader():
        read_calls.append(1)
        return A_LOG

    with pytest.raises(ConfigurationError):
        _merge([("A.log", reader)], options)

    assert read_calls == []


def test_parallel_parsing_matches_sequential():
    sources = [("A.log", A_LOG), ("B.log", B_LOG), ("C.log", C_LOG)]

    sequential = _merge(sources)
    parallel = _merge(sources, MergeOptions(time_gap_threshold_seconds=30, max_workers=3))

    assert parallel.text == sequential.text
    assert dict(parallel.line_map) == dict(sequential.line_map)


def test_merge_with_dark_palette():
    result = _merge([("A.log", A_LOG), ("B.log", B_LOG)], use_dark_palette=True)

    assert [fi.color for fi in result.file_infos] == [DARK_A, DARK_B]
    assert "# ■ A.log (#5a2a2a) - prefix: [A]" in result.text


def test_recolored_result():
    result = _merge([("A.log", A_LOG), ("bad.log", b"\xff\xfe"), ("C.log", C_LOG)])

    dark = result.recolored(DEFAULT_DARK_COLOR_PALETTE)

    assert [fi.color for fi in dark.file_infos] == [DARK_A, DARK_C]
    assert dark.text == result.text
    assert list(dark.line_map) == list(result.line_map)
    assert {origin.color for origin in dark.line_map.values()} == {DARK_A, DARK_C}

    light_again = dark.recolored(DEFAULT_COLOR_PALETTE)
    assert dict(light_again.line_map) == dict(result.line_map)


def test_viewer_rows_match_line_map():
    result = _merge(
        [("a.log", b"2023-07-14 08:00:00 progress 10%\r50%\x0cdone\n2023-07-14 08:00:01 next\n")],
        MergeOptions(map_continuation_lines=True),
    )
    app = InteractiveLogMergeViewerApp()
    app.config(
        result=result,
        light_palette=DEFAULT_COLOR_PALETTE,
        dark_palette=DEFAULT_DARK_COLOR_PALETTE,
        use_dark_palette=False,
    )

    text_lines = result.text.split("\n")
    assert len(app.lines) == len(text_lines) - 1
    for line_number in result.line_map:
        assert app.lines[line_number] == text_lines[line_number]
    assert app.lines[7] == "[a] 2023-07-14 08:00:00 progress 10%\r50%\x0cdone"
    assert app.lines[8] == "[a] 2023-07-14 08:00:01 next"
    assert result.line_map.file_at(8) == "a.log"


class TestCommandLine:
    @pytest.fixture
    def log_files(self, tmp_path):
        a_file = tmp_path / "A.log"
        a_file.write_bytes(A_LOG)
        b_file = tmp_path / "B.log"
        b_file.write_bytes(B_LOG)
        return [a_file, b_file]

    def test_merge_to_stdout(self, log_files):
        app = LogMergeViewTestApp(log_files, "--gap_threshold", "30")

        output = app()

        assert app.exit_code == 0
        assert output[0] == "# Log Merger Viewer - merged log file"
        assert output[8:] == [
            "[A] 2023-07-14 10:00:00 INFO   service A started",
            "[A] 2023-07-14 10:00:05 INFO   service A ready",
            "",
            "--- 35s ---",
            "",
            "[B] 2023-07-14 10:00:40 WARN   service B slow to respond",
        ]

    def test_no_gaps_and_no_prefix(self, log_files):
        app = LogMergeViewTestApp(log_files, "--gap_threshold", "30", "--no_gaps", "--no_prefix")

        output = app()

        assert output[8:] == [
            "2023-07-14 10:00:00 INFO   service A started",
            "2023-07-14 10:00:05 INFO   service A ready",
            "2023-07-14 10:00:40 WARN   service B slow to respond",
        ]

    def test_initial_prefix(self, log_files):
        output = LogMergeViewTestApp(log_files, "--prefix_type", "initial")()

        assert output[5] == f"# ■ A.log ({LIGHT_A}) - prefix: [AL]"
        assert output[8] == "[AL] 2023-07-14 10:00:00 INFO   service A started"

    def test_output_file(self, log_files, tmp_path):
        out_file = tmp_path / "merged.log"
        app = LogMergeViewTestApp(log_files, "--output", str(out_file))

        output = app()

        assert app.exit_code == 0
        assert output == []
        assert out_file.read_text(encoding="utf-8").splitlines()[8] == (
            "[A] 2023-07-14 10:00:00 INFO   service A started"
        )

    def test_csv_output(self, log_files, tmp_path):
        csv_file = tmp_path / "merged.csv"
        app = LogMergeViewTestApp(log_files, "--csv", str(csv_file))

        app()

        assert app.exit_code == 0
        with csv_file.open(newline="", encoding="utf-8") as csv_in:
            rows = list(csv.DictReader(csv_in))
        assert [row["file"] for row in rows] == ["A.log", "A.log", "B.log"]
        assert rows[2]["timestamp"] == "2023-07-14 10:00:40"

    def test_gzip_input(self, log_files, tmp_path):
        gz_file = tmp_path / "C.log.gz"
        with gzip.open(gz_file, "wb") as gz_out:
            gz_out.write(C_LOG)

        output = LogMergeViewTestApp([log_files[0], gz_file])()

        assert output[6] == f"# ■ C.log ({LIGHT_B}) - prefix: [C]"
        assert "[C] 2023-07-14 10:00:02 ERROR  service C failed" in output

    def test_missing_file_is_skipped(self, log_files, tmp_path):
        app = LogMergeViewTestApp([log_files[0], tmp_path / "missing.log", log_files[1]])

        output = app()

        assert app.exit_code == 0
        # B.log keeps the color of the third selected file
        assert output[6] == f"# ■ B.log ({LIGHT_C}) - prefix: [B]"

    def test_no_files_could_be_merged(self, tmp_path):
        app = LogMergeViewTestApp([tmp_path / "missing.log", tmp_path / "also_missing.log"])

        assert app() == []
        assert app.exit_code == 2

    @pytest.mark.parametrize("time_regex", [r"(\d{4}-\d{2}", r"\d{4}-\d{2}-\d{2}"])
    def test_bad_time_regex(self, log_files, time_regex):
        app = LogMergeViewTestApp(log_files, "--time_regex", time_regex)

        assert app() == []
        assert app.exit_code == 2

    def test_custom_time_format(self, tmp_path):
        log_file = tmp_path / "custom.log"
        log_file.write_bytes(log_bytes(
            "[14/07/2023 10:00:00] first",
            "[14/07/2023 10:05:00] second",
        ))

        output = LogMergeViewTestApp(
            log_file,
            "--time_regex", r"^\[(\d{2}/\d{2}/\d{4} \d{2}:\d{2}:\d{2})\]",
            "--time_format", "%d/%m/%Y %H:%M:%S",
        )()

        assert output[7:] == [
            "[custom] [14/07/2023 10:00:00] first",
            "",
            "--- 5m 0s ---",
            "",
            "[custom] [14/07/2023 10:05:00] second",
        ]

    def test_config_file(self, log_files, tmp_path):
        settings_file = tmp_path / "settings.json"
        settings_file.write_text('{"logMergerViewer.showTimeGaps": false, "logMergerViewer.showFilePrefix": false}')

        output = LogMergeViewTestApp(log_files, "--config", str(settings_file))()

        assert output[5] == f"# ■ A.log ({LIGHT_A})"
        assert not any(line.startswith("---") for line in output)

    @pytest.mark.parametrize(
        "settings_json",
        [
            '{"logMergerViewer.maxWorkers": "four"}',
            '{"logMergerViewer.colorPalette": 5}',
            '{"logMergerViewer.timeRegex": 5}',
            '{"logMergerViewer.timeFormat": 5}',
        ]
    )
    def test_bad_config_values(self, log_files, tmp_path, settings_json):
        settings_file = tmp_path / "settings.json"
        settings_file.write_text(settings_json)
        app = LogMergeViewTestApp(log_files, "--config", str(settings_file))

        assert app() == []
        assert app.exit_code == 2

    def test_unknown_encoding(self, log_files, caplog):
        app = LogMergeViewTestApp(log_files, "--encoding", "no-such-encoding")

        assert app() == []
        assert app.exit_code == 2
        assert "unknown file encoding 'no-such-encoding'" in caplog.text

    def test_merged_files_are_logged(self, log_files, caplog):
        with caplog.at_level("DEBUG", logger="logmergeview.log_merge_viewer"):
            app = LogMergeViewTestApp(log_files)
            app()

        assert app.exit_code == 0
        assert f"A.log: 2 entries, color {LIGHT_A}" in caplog.text
        assert f"B.log: 1 entries, color {LIGHT_B}" in caplog.text
