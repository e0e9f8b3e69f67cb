from textual import on
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.validation import Validator
from textual.widgets import Button, Input, Label, MarkdownViewer


class ModalInputDialog(ModalScreen[str]):
    """
    Prompts for a single value (search string, line number). The dialog stays
    open while the entered value fails validation, showing the failure message
    under the input field.
    (layout adapted from https://github.com/Textualize/frogmouth/blob/main/frogmouth/dialogs/input_dialog.py)
    """

    DEFAULT_CSS = """
    ModalInputDialog {
        align: center middle;
    }

    ModalInputDialog > Vertical {
        background: $panel;
        height: auto;
        width: auto;
        border: thick $primary;
    }

    ModalInputDialog > Vertical > * {
        width: auto;
        height: auto;
    }

    ModalInputDialog Input {
        width: 48;
        margin: 1 1 0 1;
    }

    ModalInputDialog Label {
        margin-left: 2;
    }

    ModalInputDialog #error {
        color: $error;
        height: 1;
    }

    ModalInputDialog #buttons {
        width: 100%;
        align-horizontal: right;
        padding-right: 1;
        margin-top: 1;
    }

    ModalInputDialog Button {
        margin-right: 1;
    }
    """

    BINDINGS = [
        Binding("escape", "app.pop_screen", "", show=False),
    ]

    def __init__(
            self,
            prompt: str,
            initial: str | None = None,
            validator: Validator | None = None,
            placeholder: str = "",
    ) -> None:
        super().__init__()
        self._prompt = prompt
        self._initial = initial or ""
        self._validator = validator
        self._placeholder = placeholder

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Label(self._prompt)
            yield Input(
                self._initial,
                placeholder=self._placeholder,
                validators=[self._validator] if self._validator else None,
            )
            yield Label("", id="error")
            with Horizontal(id="buttons"):
                yield Button("OK", id="ok", variant="primary")
                yield Button("Cancel", id="cancel")

    def on_mount(self) -> None:
        self.query_one(Input).focus()

    def _show_error(self, message: str) -> None:
        self.query_one("#error", Label).update(message)

    @on(Input.Changed)
    def clear_error(self) -> None:
        self._show_error("")

    @on(Button.Pressed, "#cancel")
    def cancel_input(self) -> None:
        self.dismiss()

    @on(Input.Submitted)
    @on(Button.Pressed, "#ok")
    def accept_input(self) -> None:
        value = self.query_one(Input).value.strip()
        if not value:
            self.dismiss()
            return

        if self._validator is not None:
            result = self._validator.validate(value)
            if not result.is_valid:
                self._show_error("; ".join(result.failure_descriptions))
                self.app.bell()
                return

        self.dismiss(value)


class ModalMarkdownDialog(ModalScreen[type(None)]):
    """Shows a block of Markdown text, such as the help text or the origin of a line."""

    DEFAULT_CSS = """
    ModalMarkdownDialog {
        align: center middle;
    }

    ModalMarkdownDialog > Vertical {
        background: $panel;
        height: auto;
        width: auto;
        border: thick $primary;
        border-title-align: center;
    }

    ModalMarkdownDialog MarkdownViewer {
        max-height: 24;
        height: auto;
        width: 76;
    }

    ModalMarkdownDialog #buttons {
        width: 100%;
        height: auto;
        align-horizontal: center;
        margin-top: 1;
    }
    """

    BINDINGS = [
        Binding("escape", "app.pop_screen", "", show=False),
        Binding("enter", "app.pop_screen", "", show=False),
    ]

    def __init__(self, content: str, title: str = "") -> None:
        super().__init__()
        self.content = content
        self._dialog_title = title

    def compose(self) -> ComposeResult:
        with Vertical() as frame:
            frame.border_title = self._dialog_title
            yield MarkdownViewer(self.content, show_table_of_contents=False)
            with Horizontal(id="buttons"):
                yield Button("OK", id="ok", variant="primary")

    def on_mount(self) -> None:
        self.query_one(MarkdownViewer).focus()

    @on(Button.Pressed, "#ok")
    def ok_clicked(self) -> None:
        self.dismiss()
