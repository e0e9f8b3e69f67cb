text = r"""
# logmergeview

The `logmergeview` utility merges one or more log files into a single log, in timestamp order,
marking every entry with the file it came from. Each source file is assigned a color, and
periods with no logging activity in any file are called out as time gaps.

## How log entries are found

Each line is searched with a regular expression containing one capture group for the timestamp
(`--time_regex`). The captured text is converted using one or more `strptime` formats
(`--time_format`). Lines that do not match are continuation lines (such as a traceback), and
stay with the entry above them. Blank lines are dropped, as are lines ahead of the first
timestamped line in a file.

Predefined timestamp patterns can be selected using `--preset`:

| Preset       | Timestamp                                                  |
|--------------|------------------------------------------------------------|
| iso          | YYYY-MM-DD HH:MM:SS, with optional ,SSS or .SSS (default)  |
| iso-t        | YYYY-MM-DDTHH:MM:SS, with optional ,SSS or .SSS            |
| syslog       | Mon DD HH:MM:SS (current year is assumed)                  |
| apache       | [DD/Mon/YYYY:HH:MM:SS ±ZZZZ]                               |
| epoch        | 0000000000.000000 float seconds since epoch                |
| epoch-millis | 0000000000000 milliseconds since epoch                     |

Entries whose timestamp text does not parse are kept, and placed after all other entries.

## Interactive functions

| Key | Function                                                         |
|:---:|------------------------------------------------------------------|
| ^D  | Toggle dark/light mode (switches to the dark color palette)      |
|  F  | Prompt for search string and advance to first matching line      |
|  N  | Advance to next instance of the current search string            |
|  P  | Move back to previous instance of the current search string      |
|  L  | Prompt for line number to move cursor to                         |
|  I  | Show the source file, color, and entry count for the current line |
|  H  | Display this helpful text                                        |
|  Q  | Quit                                                             |

The subtitle shows the source file of the current line.

## Command line options

| Option              | Description                                                        |
|---------------------|--------------------------------------------------------------------|
| --output, -o        | save merged log to file ('-' for stdout, the default)              |
| --interactive, -i   | display in interactive mode                                        |
| --csv               | save merged log entries as CSV                                     |
| --table             | present merged log entries as a table                              |
| --config, -c        | JSON settings file                                                 |
| --preset            | predefined timestamp regex and format                              |
| --time_format       | strptime format for timestamps (may be repeated)                   |
| --time_regex        | regex with one capture group for the timestamp                     |
| --gap_threshold     | minimum length of a reported time gap, in seconds (default 60)     |
| --no_gaps           | do not report time gaps                                            |
| --no_prefix         | do not mark entries with their source file                         |
| --prefix_type       | full, short (file name without extension), or initial              |
| --dark              | use the dark color palette                                         |
| --map_all_lines     | map every line of a multiline entry to its source file             |
| --jobs, -j          | number of threads used to parse files                              |
| --encoding, -enc    | encoding of the log files (default UTF-8)                          |

## Known limitations

Only the first line of a multiline entry is mapped to its source file, and the following
line numbers are counted as if each entry took a single line. Use `--map_all_lines` to map
every line of the merged log exactly.

Files are identified by file name only. Two selected files with the same name (such as
`host1/app.log` and `host2/app.log`) share a prefix, and the entries of both are shown in
the color of the first one.
"""  # noqa
