"""Transfer receipt entry modal screen."""

from __future__ import annotations

from urllib.parse import urlparse

from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Key, Paste
from textual.screen import ModalScreen
from textual.widgets import Static

from tableorder.models import PaymentMethodInfo
from tableorder.rendering import format_money


def receipt_url_problem(value: str) -> str | None:
    """Why ``value`` cannot be a receipt link, or ``None`` when it looks usable."""
    text = value.strip()
    if not text:
        return "Receipt URL is required."
    if any(char.isspace() for char in text):
        return "Receipt URL cannot contain spaces."
    parsed = urlparse(text)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        return "Receipt URL must start with http:// or https:// and name a host."
    return None


class ReceiptModal(ModalScreen[str | None]):
    """Prompt for the URL of an uploaded bank transfer receipt."""

    CSS = """
    ReceiptModal {
        align: center middle;
        background: $background 60%;
    }

    #receipt-dialog {
        width: 72;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #receipt-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #receipt-prompt {
        color: white;
        margin-bottom: 1;
    }

    #receipt-value {
        border: heavy $secondary;
        padding: 0 1;
        color: white;
        margin-bottom: 1;
    }

    #receipt-error {
        color: #ffb3b3;
        margin-bottom: 1;
    }

    #receipt-error.ok {
        color: #b3ffb3;
    }

    #receipt-help {
        color: #dddddd;
    }
    """

    def __init__(self, method: PaymentMethodInfo | None, amount: int) -> None:
        super().__init__()
        self.method = method
        self.amount = amount
        self.value = ""
        self.error = ""

    def compose(self) -> ComposeResult:
        with Container(id="receipt-dialog"):
            yield Static("Upload Transfer Receipt", id="receipt-title")
            yield Static(self._prompt_text(), id="receipt-prompt")
            yield Static(id="receipt-value")
            yield Static(id="receipt-error")
            yield Static(
                "Paste the receipt image URL. Enter confirm. Backspace delete. Ctrl+U clear. Esc cancel.",
                id="receipt-help",
            )

    def on_mount(self) -> None:
        self._refresh_content()

    def on_key(self, event: Key) -> None:
        if event.key in {"escape", "ctrl+c"}:
            self.dismiss(None)
            event.stop()
            return

        if event.key == "enter":
            self._confirm()
            event.stop()
            return

        if event.key == "ctrl+u":
            self.value = ""
            self.error = ""
            self._refresh_content()
            event.stop()
            return

        if event.key == "backspace":
            if self.value:
                self.value = self.value[:-1]
                self.error = ""
                self._refresh_content()
            event.stop()
            return

        if event.is_printable and event.character:
            self.value += event.character
            self.error = ""
            self._refresh_content()
            event.stop()

    def on_paste(self, event: Paste) -> None:
        self.value += event.text.strip()
        self.error = ""
        self._refresh_content()
        event.stop()

    def _prompt_text(self) -> str:
        lines = [f"Amount: {format_money(self.amount)}"]
        if self.method is not None:
            lines.append(f"Bank: {self.method.bank_name or '-'}")
            lines.append(f"Account: {self.method.account_number or '-'}")
            lines.append(f"Name: {self.method.account_name or '-'}")
        return "\n".join(lines)

    def _confirm(self) -> None:
        problem = receipt_url_problem(self.value)
        if problem is not None:
            self.error = problem
            self._refresh_content()
            return
        self.dismiss(self.value.strip())

    def _refresh_content(self) -> None:
        value_widget = self.query_one("#receipt-value", Static)
        error_widget = self.query_one("#receipt-error", Static)
        value_widget.update(self.value or "")
        if self.error:
            error_widget.remove_class("ok")
            error_widget.update(self.error)
        elif self.value and receipt_url_problem(self.value) is None:
            error_widget.add_class("ok")
            error_widget.update("Looks like a receipt link.")
        else:
            error_widget.remove_class("ok")
            error_widget.update("")
