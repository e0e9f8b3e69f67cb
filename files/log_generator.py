"""
Generate sample log files for trying out logmergeview: several files whose entries
interleave in time, some with multiline (traceback) entries, and one file with a
period of no activity long enough to be reported as a time gap.

    python files/log_generator.py --file-count 3 --output-dir sample_logs
    logmergeview sample_logs/*.log
"""
import argparse
import random
from datetime import datetime, timedelta
from pathlib import Path

DEFAULT_FILE_COUNT = 3
DEFAULT_ENTRIES_PER_FILE = 20
DEFAULT_INTERVAL_SECONDS = 5
DEFAULT_OUTPUT_DIR = "."

LEVELS = ["INFO", "DEBUG", "WARN", "ERROR"]

TRACEBACK_LINES = [
    "Traceback (most recent call last):",
    '  File "sample.py", line 32, in <module>',
    "    divide(100, 0)",
    "ZeroDivisionError: division by zero",
]


def format_time(dt: datetime) -> str:
    """'2023-01-01 10:00:00,000' - Python logging's default asctime format."""
    return f"{dt:%Y-%m-%d %H:%M:%S},{dt.microsecond // 1000:03d}"


def generate_log_lines(file_number: int, base_time: datetime, num_entries: int, interval: int) -> list[str]:
    lines = []
    for i in range(num_entries):
        # stagger each file's entries, so that the files interleave when merged
        entry_time = base_time + timedelta(seconds=file_number * 2 + i * interval)
        level = random.choice(LEVELS)
        lines.append(f"{format_time(entry_time)} [{level}] File {file_number + 1} - Log message {i + 1}")
        if level == "ERROR":
            lines.extend(TRACEBACK_LINES)
    return lines


def generate_time_gap_lines(base_time: datetime) -> list[str]:
    lines = []
    for i in range(5):
        lines.append(f"{format_time(base_time + timedelta(seconds=i * 10))} [INFO] Normal log entry {i + 1}")

    # nothing logged for a minute
    gap_time = base_time + timedelta(seconds=50 + 60)
    lines.append(f"{format_time(gap_time)} [WARN] This entry appears after a 1-minute gap")

    for i in range(5):
        lines.append(f"{format_time(gap_time + timedelta(seconds=i * 10))} [INFO] Post-gap entry {i + 1}")
    return lines


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate sample log files to be merged.")
    parser.add_argument("--file-count", type=int, default=DEFAULT_FILE_COUNT,
                        help=f"Number of interleaved log files (default: {DEFAULT_FILE_COUNT}).")
    parser.add_argument("--entries", type=int, default=DEFAULT_ENTRIES_PER_FILE,
                        help=f"Entries per file (default: {DEFAULT_ENTRIES_PER_FILE}).")
    parser.add_argument("--interval", type=int, default=DEFAULT_INTERVAL_SECONDS,
                        help=f"Seconds between entries in each file (default: {DEFAULT_INTERVAL_SECONDS}).")
    parser.add_argument("--output-dir", type=str, default=DEFAULT_OUTPUT_DIR,
                        help="Directory where the files will be written (default: current directory).")
    return parser.parse_args()


def main():
    args = parse_args()

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    base_time = datetime(2023, 1, 1, 10, 0, 0)

    for file_number in range(args.file_count):
        output_path = output_dir / f"test-log-{file_number + 1}.log"
        lines = generate_log_lines(file_number, base_time, args.entries, args.interval)
        output_path.write_text("\n".join(lines) + "\n")
        print(f"Generated {output_path} ({len(lines)} lines)")

    gap_path = output_dir / "time-gap.log"
    gap_path.write_text("\n".join(generate_time_gap_lines(base_time)) + "\n")
    print(f"Generated {gap_path}")


if __name__ == "__main__":
    main()
