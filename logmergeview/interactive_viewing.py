import asyncio
import logging
from collections.abc import Sequence
from typing import Optional

from rich.color import ColorParseError
from rich.style import Style
from rich.text import Text
from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import DataTable, Footer, Header

from .log_merge_viewer import MergeResult
from .rendering import describe_line, group_lines_by_file, output_lines
from .tui.dialogs import ModalInputDialog, ModalMarkdownDialog
from .tui.validators import LineNumberValidator

logger = logging.getLogger(__name__)


def _background_style(color: str) -> Optional[Style]:
    try:
        return Style(bgcolor=color)
    except ColorParseError:
        logger.debug("cannot display color %r", color)
        return None


class InteractiveLogMergeViewerApp(App):
    """
    Class to display the merged log using textual TUI, with each line
    highlighted in the color of its source file.
    """
    TITLE = "logmergeview"

    BINDINGS = [
        Binding(key="q", action="quit", description="Quit"),
        Binding(key="ctrl+d", action="toggle_palette", description="Toggle Dark Mode"),
        Binding(key="f", action="find", description="Find"),
        Binding(key="n", action="find_next", description="Next"),
        Binding(key="p", action="find_prev", description="Prev"),
        Binding(key="l", action="goto_line", description="Go to line"),
        Binding(key="i", action="line_info", description="Line info"),
        Binding(key="h", action="help_about", description="Help/About"),
    ]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.result: MergeResult = None  # noqa
        self.light_palette: Sequence[str] = ()
        self.dark_palette: Sequence[str] = ()
        self.use_dark_palette: bool = False
        self.lines: list[str] = []
        self.current_search_string: str = ""

    def config(
            self,
            *,
            result: MergeResult,
            light_palette: Sequence[str],
            dark_palette: Sequence[str],
            use_dark_palette: bool,
    ) -> None:
        self.result = result
        self.lines = output_lines(result.text)
        self.light_palette = light_palette
        self.dark_palette = dark_palette
        self.use_dark_palette = use_dark_palette

    def compose(self) -> ComposeResult:
        yield Header()
        yield DataTable()
        yield Footer()

    def on_mount(self) -> None:
        self.theme = "textual-dark" if self.use_dark_palette else "textual-light"

        display_table = self.query_one(DataTable)
        display_table.cursor_type = "row"
        display_table.fixed_columns = 1
        display_table.add_columns("line", "log")

        self.load_rows()

    @work(exclusive=True)
    async def load_rows(self, restore_row: int = 0):
        display_table = self.query_one(DataTable)
        display_table.clear()

        # one style per file, like one editor decoration per file
        line_styles = {}
        for highlight in group_lines_by_file(self.result.line_map).values():
            style = _background_style(highlight.color)
            line_styles.update(dict.fromkeys(highlight.line_numbers, style))

        for line_number, line in enumerate(self.lines):
            if line_number % 100 == 0:
                # give other UI tasks a chance to work
                await asyncio.sleep(0)

            display_table.add_row(
                Text(str(line_number + 1), justify="right"),
                Text(line, style=line_styles.get(line_number) or ""),
            )

        if restore_row:
            self.move_cursor_to_line_number(restore_row)

    def on_data_table_row_highlighted(self, event: DataTable.RowHighlighted) -> None:
        # show the source file of the current line, like a status bar
        fname = self.result.line_map.file_at(event.cursor_row)
        self.sub_title = fname or ""

    def get_current_cursor_line_index(self) -> int:
        dt: DataTable = self.query_one(DataTable)
        return dt.cursor_row

    #
    # light/dark palette switching
    #

    def action_toggle_palette(self) -> None:
        self.use_dark_palette = not self.use_dark_palette
        self.theme = "textual-dark" if self.use_dark_palette else "textual-light"

        palette = self.dark_palette if self.use_dark_palette else self.light_palette
        self.result = self.result.recolored(palette)
        self.load_rows(restore_row=self.get_current_cursor_line_index())

    #
    # methods to support go to find/next/prev search functions
    #

    def action_find(self) -> None:
        self.app.push_screen(
            ModalInputDialog(
                "Find:",
                initial=self.current_search_string,
            ),
            self.save_search_string_and_move_to_next
        )

    def action_find_next(self) -> None:
        self.move_to_next_search_line()

    def action_find_prev(self) -> None:
        self.move_to_prev_search_line()

    def save_search_string_and_move_to_next(self, search_str) -> None:
        if not search_str:
            return

        self.current_search_string = search_str
        self.move_to_next_search_line()

    def _move_to_relative_search_line(self, move_delta: int, limit: int) -> None:
        search_string = self.current_search_string.lower()

        cur_line_number = self.get_current_cursor_line_index() + move_delta
        while cur_line_number != limit:
            if search_string in self.lines[cur_line_number].lower():
                self.move_cursor_to_line_number(cur_line_number)
                break
            cur_line_number += move_delta
        else:
            self.bell()

    def move_to_next_search_line(self) -> None:
        if not self.current_search_string:
            self.bell()
            return
        self._move_to_relative_search_line(1, len(self.lines))

    def move_to_prev_search_line(self) -> None:
        if not self.current_search_string:
            self.bell()
            return
        self._move_to_relative_search_line(-1, -1)

    #
    # methods to support go to line function
    #

    def action_goto_line(self) -> None:
        self.app.push_screen(
            ModalInputDialog(
                "Go to line:",
                validator=LineNumberValidator(max_line=len(self.lines)),
                placeholder=f"1-{len(self.lines)}",
            ),
            self.move_cursor_to_line_number_1_based
        )

    def move_cursor_to_line_number(self, line_number: int) -> None:
        line_number = max(0, min(line_number, len(self.lines) - 1))
        dt_widget: DataTable = self.query_one(DataTable)
        dt_widget.move_cursor(row=line_number, animate=False)

    def move_cursor_to_line_number_1_based(self, line_number_str: str) -> None:
        if line_number_str:
            self.move_cursor_to_line_number(int(line_number_str) - 1)

    #
    # line origin details and help
    #

    def action_line_info(self) -> None:
        info = describe_line(
            self.get_current_cursor_line_index(),
            self.result.line_map,
            self.result.file_infos,
        )
        if info is None:
            self.bell()
            return
        line_number = self.get_current_cursor_line_index() + 1
        self.app.push_screen(ModalMarkdownDialog(content=info, title=f"Line {line_number}"))

    def action_help_about(self) -> None:
        from .about import text

        self.app.push_screen(
            ModalMarkdownDialog(content=text, title="Help/About")
        )
