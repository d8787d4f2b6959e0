"""Cart line note modal screen."""

from __future__ import annotations

from typing import Callable

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Static

from tableorder.models import CartLine
from tableorder.rendering import format_cart_line

_MAX_NOTE_LENGTH = 200


class NotesModal(ModalScreen[None]):
    """Centered modal to type special instructions for one cart line."""

    CSS = """
    NotesModal {
        align: center middle;
        background: $background 60%;
    }

    #notes-dialog {
        width: 64;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #notes-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #notes-body {
        margin-bottom: 1;
        color: white;
    }

    #notes-help {
        margin-top: 1;
        color: #dddddd;
    }
    """

    def __init__(self, line: CartLine, on_save: Callable[[str, str], None]) -> None:
        super().__init__()
        self.line = line
        self.on_save = on_save
        self.value = line.note

    def compose(self) -> ComposeResult:
        with Container(id="notes-dialog"):
            yield Static("Special instructions", id="notes-title")
            yield Static(id="notes-body")
            yield Static("Type text, Enter save, Ctrl+U clear, Esc cancel", id="notes-help")

    def on_mount(self) -> None:
        self._refresh_content()

    def on_key(self, event: Key) -> None:
        if event.key in {"escape", "ctrl+c"}:
            self.dismiss()
            event.stop()
            return

        if event.key == "enter":
            self.on_save(self.line.item_id, self.value.strip())
            self.dismiss()
            event.stop()
            return

        if event.key == "ctrl+u":
            self.value = ""
            self._refresh_content()
            event.stop()
            return

        if event.key == "backspace":
            if self.value:
                self.value = self.value[:-1]
            self._refresh_content()
            event.stop()
            return

        if event.is_printable and event.character:
            if len(self.value) < _MAX_NOTE_LENGTH:
                self.value += event.character
            self._refresh_content()
            event.stop()
            return

        # Ignore all non-text keys while typing.
        event.stop()

    def _refresh_content(self) -> None:
        body = self.query_one("#notes-body", Static)
        content = Text(style="white")
        content.append_text(format_cart_line(self.line))
        content.append("\n\nNote: ")
        content.append(f"{self.value}|", style="bold white")
        body.update(content)
