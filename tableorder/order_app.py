"""Main Textual app class."""

from __future__ import annotations

import logging

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.css.query import NoMatches
from textual.events import Key
from textual.reactive import reactive
from textual.widgets import Header, Static

from tableorder.api import ApiClient
from tableorder.checkout import CheckoutOrchestrator, CheckoutStage
from tableorder.errors import TableOrderError
from tableorder.models import MenuCategory, MenuItem, Order, Table
from tableorder.notes_modal import NotesModal
from tableorder.receipt_modal import ReceiptModal
from tableorder.rendering import (
    format_cart_line,
    format_menu_item,
    format_money,
    format_payment_method,
    format_progress,
    format_status_badge,
    format_table_label,
    payment_status_style,
)
from tableorder.session import SessionContext
from tableorder.tracker import OrderTracker, Phase, status_message

logger = logging.getLogger(__name__)


class TableOrderApp(App):
    """A Textual app for browsing the menu, checking out and following an order."""

    TITLE = "Table Order"
    SUB_TITLE = "Scan · Order · Pay"

    CSS = """
    Screen {
        layout: vertical;
    }

    #main-layout {
        height: 1fr;
    }

    #cart-pane {
        width: 3fr;
        border: round $primary;
        padding: 1;
    }

    #menu-pane {
        width: 3fr;
        border: round $secondary;
        padding: 1;
    }

    #status-pane {
        width: 2fr;
        border: round $accent;
        padding: 1;
    }

    #search-bar {
        border: heavy $secondary;
        padding: 0 1;
        margin-bottom: 1;
        height: 4;
    }

    #results {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    #cart-list {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    #checkout {
        height: auto;
        padding: 0 1;
        margin-top: 1;
    }

    .pane-title {
        text-style: bold;
        margin-bottom: 1;
    }
    """

    input_state = reactive("normal")
    category_index = reactive(0)
    search_query = reactive("")
    selected_index = reactive(0)
    cart_selected_index = reactive(None)

    BINDINGS = [
        ("tab", "cycle_results(1)", "Next result"),
        ("up", "cycle_results(-1)", "Previous result"),
        ("down", "cycle_results(1)", "Next result"),
        ("enter", "add_selected", "Add to cart"),
        ("backspace", "backspace_query", "Delete query char"),
        Binding("ctrl+s", "advance_checkout", "Checkout step", priority=True),
        ("ctrl+c", "cancel_active_mode", "Exit search"),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self, api: ApiClient | None = None, table: Table | None = None) -> None:
        super().__init__()
        self.api = api or ApiClient()
        self.session = SessionContext().initialize()
        if table is not None:
            self.session.set_table(table)
        self.menu: list[MenuCategory] = []
        self.checkout = CheckoutOrchestrator(self.session, self.api, on_complete=self._on_checkout_complete)
        self.tracker = OrderTracker(self.session, self.api, on_update=lambda _tracker: self._refresh_status())
        self.system_status = ""
        logger.debug("app_init table_id=%s", table.id if table else None)

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main-layout"):
            with Vertical(id="cart-pane"):
                yield Static("Cart", classes="pane-title", id="cart-title")
                yield Static("(cart is empty)", id="cart-list")
                yield Static(id="checkout")
            with Vertical(id="menu-pane"):
                yield Static(id="search-bar")
                yield Static(id="results")
            with Vertical(id="status-pane"):
                yield Static("Order Status", classes="pane-title")
                yield Static("(no order yet)", id="order-status")

    async def on_mount(self) -> None:
        if self.session.table is None:
            self.system_status = "Table information not found. Please scan the QR code again."
            self._refresh_all()
            return
        self.sub_title = format_table_label(self.session.table)
        self._refresh_all()
        await self._load_restaurant()
        await self._load_menu()
        await self._load_payment_methods()
        self._refresh_all()

    async def on_unmount(self) -> None:
        self.tracker.detach()
        await self.api.aclose()

    async def _load_restaurant(self) -> None:
        try:
            restaurant = await self.api.get_restaurant()
        except TableOrderError as exc:
            logger.info("restaurant_load_failed error=%r", exc)
            return
        if restaurant.name:
            self.title = restaurant.name

    async def _load_menu(self) -> None:
        try:
            self.menu = await self.api.get_menu()
        except TableOrderError as exc:
            self.system_status = f"Failed to load menu: {exc}"
            logger.warning("menu_load_failed error=%r", exc)
            return
        if not self.menu:
            self.system_status = "No menu categories available."
        logger.info("menu_loaded categories=%d", len(self.menu))

    async def _load_payment_methods(self) -> None:
        try:
            await self.checkout.load_payment_methods()
        except TableOrderError as exc:
            logger.warning("payment_methods_load_failed error=%r", exc)

    def on_key(self, event: Key) -> None:
        if isinstance(self.screen, (NotesModal, ReceiptModal)):
            return

        if not event.is_printable or len(event.character) != 1 or not event.character.isalnum():
            return

        key = event.character.lower()
        if self.input_state == "normal":
            if key.isdigit() and key != "0":
                self._enter_category(int(key) - 1)
                event.stop()
                return

            handlers = {
                "j": lambda: self._move_cart_selection(1),
                "k": lambda: self._move_cart_selection(-1),
                "a": lambda: self._change_selected_quantity(1),
                "x": lambda: self._change_selected_quantity(-1),
                "d": self._delete_selected_line,
                "n": self._open_notes_for_selected_line,
                "p": self._cycle_payment_method,
                "r": self._start_new_order,
            }
            handler = handlers.get(key)
            if handler is None:
                return
            handler()
            event.stop()
            return

        self.search_query += event.character
        self.selected_index = 0
        self._refresh_search()
        event.stop()

    def action_cancel_active_mode(self) -> None:
        if isinstance(self.screen, (NotesModal, ReceiptModal)):
            return
        if self.input_state == "normal":
            return

        self.input_state = "normal"
        self.search_query = ""
        self.selected_index = 0
        self._refresh_search()

    def action_cycle_results(self, delta: int) -> None:
        if self.input_state != "active":
            return

        results = self._filtered_results()
        if not results:
            self.selected_index = 0
            self._refresh_results(results)
            return
        self.selected_index = (self.selected_index + delta) % len(results)
        self._refresh_results(results)

    def action_add_selected(self) -> None:
        if self.input_state != "active":
            return

        results = self._filtered_results()
        if not results:
            return

        item = results[self.selected_index]
        self.session.add_to_cart(item)
        self.cart_selected_index = self.session.cart.lines.index(self.session.cart.get(item.id))
        logger.debug("cart_add item_id=%s count=%d", item.id, self.session.cart_item_count())
        self._refresh_cart()
        self._refresh_results(results)

    def action_backspace_query(self) -> None:
        if self.input_state != "active":
            return

        if not self.search_query:
            return
        self.search_query = self.search_query[:-1]
        self.selected_index = 0
        self._refresh_search()

    async def action_advance_checkout(self) -> None:
        if isinstance(self.screen, (NotesModal, ReceiptModal)):
            return
        if self.input_state != "normal":
            self.system_status = "Checkout only in NORMAL mode (Ctrl+C to exit search)"
            self._refresh_search()
            return

        stage = self.checkout.stage
        try:
            if stage is CheckoutStage.CART:
                order = await self.checkout.submit()
                self.cart_selected_index = None
                self.system_status = f"Order {order.order_number} placed. Ctrl+S to pay."
            elif stage is CheckoutStage.PAYMENT:
                await self.checkout.initiate_payment()
                if self.checkout.awaiting_receipt:
                    self._open_receipt_modal()
            elif stage is CheckoutStage.AWAITING_RECEIPT:
                self._open_receipt_modal()
            else:
                self.system_status = "Order complete. Press R to start a new order."
        except TableOrderError as exc:
            self.system_status = str(exc)
            logger.info("checkout_step_failed stage=%s error=%r", stage.value, exc)
        self._refresh_all()

    def _open_receipt_modal(self) -> None:
        order = self.checkout.order
        amount = order.total_amount if order is not None else 0
        self.push_screen(
            ReceiptModal(self.session.selected_payment_method, amount),
            callback=self._on_receipt_entered,
        )

    def _on_receipt_entered(self, reference: str | None) -> None:
        if reference is None:
            self.system_status = "Receipt upload pending. Ctrl+S to upload."
            self._refresh_search()
            return
        self.run_worker(self._upload_receipt(reference), exclusive=True, group="checkout")

    async def _upload_receipt(self, reference: str) -> None:
        try:
            await self.checkout.upload_receipt(reference)
        except TableOrderError as exc:
            self.system_status = f"Failed to upload receipt: {exc}"
            logger.info("receipt_upload_failed error=%r", exc)
        self._refresh_all()

    def _on_checkout_complete(self, order: Order) -> None:
        self.system_status = f"Payment submitted for order {order.order_number}"
        self.run_worker(self._track_order(order.id), exclusive=True, group="tracker")

    async def _track_order(self, order_id: str) -> None:
        try:
            await self.tracker.bind(order_id)
        except TableOrderError as exc:
            self.system_status = f"Failed to load order: {exc}"
            self._refresh_search()
            return
        self.tracker.start_polling()
        self._refresh_status()

    def _start_new_order(self) -> None:
        if not self.checkout.is_complete:
            return
        self.tracker.detach()
        self.checkout.reset()
        self.system_status = "Ready for a new order"
        self._refresh_all()

    def _enter_category(self, index: int) -> None:
        if not (0 <= index < len(self.menu)):
            return
        self.category_index = index
        self.input_state = "active"
        self.search_query = ""
        self.selected_index = 0
        self._refresh_search()

    def _filtered_results(self) -> list[MenuItem]:
        if not self.menu:
            return []
        source = [item for item in self.menu[self.category_index].menu_items if item.is_available]
        if not self.search_query:
            return source
        q = self.search_query.lower()
        return [item for item in source if q in item.name.lower()]

    def _cycle_payment_method(self) -> None:
        methods = self.session.payment_methods
        if not methods:
            self.system_status = "No payment methods available"
            self._refresh_search()
            return
        current = self.session.selected_payment_method
        ids = [method.id for method in methods]
        next_index = 0 if current is None or current.id not in ids else (ids.index(current.id) + 1) % len(ids)
        try:
            self.checkout.select_payment_method(ids[next_index])
        except TableOrderError as exc:
            self.system_status = str(exc)
        self._refresh_all()

    def _move_cart_selection(self, delta: int) -> None:
        lines = self.session.cart.lines
        if not lines:
            return

        if self.cart_selected_index is None:
            self.cart_selected_index = 0 if delta > 0 else len(lines) - 1
        else:
            self.cart_selected_index = (self.cart_selected_index + delta) % len(lines)
        self._refresh_cart()

    def _selected_line_id(self) -> str | None:
        lines = self.session.cart.lines
        if self.cart_selected_index is None or not (0 <= self.cart_selected_index < len(lines)):
            return None
        return lines[self.cart_selected_index].item_id

    def _change_selected_quantity(self, delta: int) -> None:
        item_id = self._selected_line_id()
        if item_id is None:
            return
        self.session.update_cart_quantity(item_id, self.session.cart.quantity_of(item_id) + delta)
        self._refresh_cart()

    def _delete_selected_line(self) -> None:
        item_id = self._selected_line_id()
        if item_id is None:
            return
        self.session.remove_from_cart(item_id)
        self._refresh_cart()

    def _open_notes_for_selected_line(self) -> None:
        item_id = self._selected_line_id()
        if item_id is None:
            return
        line = self.session.cart.get(item_id)
        self.push_screen(NotesModal(line, on_save=self._save_note))

    def _save_note(self, item_id: str, text: str) -> None:
        self.session.update_cart_note(item_id, text)
        self._refresh_cart()

    def _visible_rows(self, widget: Static) -> int:
        height = widget.size.height
        if height <= 0:
            return 8
        return max(1, height)

    def _window_bounds(self, total: int, rows: int, selected: int | None) -> tuple[int, int]:
        if total <= 0:
            return (0, 0)

        rows = max(1, rows)
        if total <= rows:
            return (0, total)

        if selected is None:
            start = 0
        else:
            half = rows // 2
            start = selected - half
            start = max(0, start)
            start = min(start, total - rows)

        return (start, start + rows)

    def _refresh_all(self) -> None:
        self._refresh_cart()
        self._refresh_search()
        self._refresh_status()

    def _refresh_cart(self) -> None:
        try:
            cart_widget = self.query_one("#cart-list", Static)
            title_widget = self.query_one("#cart-title", Static)
        except NoMatches:
            return
        lines = self.session.cart.lines
        title_widget.update(f"Cart ({self.session.cart_item_count()})")
        self._refresh_checkout()
        if not lines:
            self.cart_selected_index = None
            cart_widget.update("(cart is empty)")
            return

        if self.cart_selected_index is not None and self.cart_selected_index >= len(lines):
            self.cart_selected_index = len(lines) - 1

        visible_rows = self._visible_rows(cart_widget)
        start, end = self._window_bounds(len(lines), visible_rows, self.cart_selected_index)

        text = Text()
        if start > 0:
            text.append("⋮\n", style="dim")

        for idx in range(start, end):
            if idx > start:
                text.append("\n")
            pointer = "➤ " if idx == self.cart_selected_index else "  "
            text.append(pointer)
            text.append_text(format_cart_line(lines[idx]))

        if end < len(lines):
            text.append("\n⋮", style="dim")

        cart_widget.update(text)

    def _refresh_checkout(self) -> None:
        try:
            checkout_widget = self.query_one("#checkout", Static)
        except NoMatches:
            return
        text = Text()
        text.append(f"Total: {format_money(self.session.cart_total())}\n", style="bold")
        text.append(f"Step: {self.checkout.stage.value}\n", style="dim")
        selected = self.session.selected_payment_method
        for method in self.session.payment_methods:
            text.append_text(format_payment_method(method, selected is not None and method.id == selected.id))
            text.append("\n")
        if not self.session.payment_methods:
            text.append("(no payment methods)", style="dim")
        checkout_widget.update(text)

    def _refresh_search(self) -> None:
        self._refresh_search_bar()
        if self.input_state == "normal":
            self._refresh_results([])
            return
        self._refresh_results(self._filtered_results())

    def _refresh_search_bar(self) -> None:
        try:
            bar = self.query_one("#search-bar", Static)
        except NoMatches:
            return
        if self.input_state == "normal":
            categories = "  ".join(f"{idx + 1}:{category.name}" for idx, category in enumerate(self.menu[:9]))
            status = self.system_status or "Ready"
            bar.update(f"{categories or 'Menu loading...'}\nP payment, Ctrl+S checkout step.\n{status}")
            return

        text = Text()
        text.append(f" {self.menu[self.category_index].name} ", style="bold #ffffff on #2f6db5")
        text.append(f": {self.search_query}")
        bar.update(text)

    def _refresh_results(self, results: list[MenuItem]) -> None:
        try:
            results_widget = self.query_one("#results", Static)
        except NoMatches:
            return
        if self.input_state == "normal":
            results_widget.update("")
            return

        if not results:
            results_widget.update("No results")
            return

        if self.selected_index >= len(results):
            self.selected_index = 0

        visible_rows = self._visible_rows(results_widget)
        start, end = self._window_bounds(len(results), visible_rows, self.selected_index)

        text = Text()
        if start > 0:
            text.append("⋮\n", style="dim")

        for idx in range(start, end):
            if idx > start:
                text.append("\n")
            pointer = "➤ " if idx == self.selected_index else "  "
            text.append(pointer)
            text.append_text(format_menu_item(results[idx], self.session.cart.quantity_of(results[idx].id)))

        if end < len(results):
            text.append("\n⋮", style="dim")

        results_widget.update(text)

    def _refresh_status(self) -> None:
        try:
            status_widget = self.query_one("#order-status", Static)
        except NoMatches:
            return
        order = self.tracker.snapshot or self.session.active_order
        if order is None:
            status_widget.update("(no order yet)")
            return

        text = Text()
        text.append(f"Order {order.order_number} ", style="bold")
        text.append_text(format_status_badge(order.status))
        text.append(f"\n{status_message(order.status)}\n")
        if self.tracker.polling and self.tracker.phase is Phase.ACTIVE:
            text.append("Live updates enabled\n", style="dim")
        if self.tracker.stale:
            text.append("Connection problem, showing last known status\n", style="bold #ffb3b3")
        text.append("\n")
        checklist = self.tracker.progress()
        if checklist is not None:
            text.append_text(format_progress(checklist))
            text.append("\n\n")
        for item in order.items:
            text.append(f"{item.quantity} x {item.display_name}  {format_money(item.subtotal)}\n")
            if item.special_instructions:
                text.append(f"    [{item.special_instructions}]\n", style="dim")
        text.append(f"Total: {format_money(order.total_amount)}\n", style="bold")
        text.append("Payment: ")
        text.append(order.payment_status.value, style=payment_status_style(order.payment_status.value))
        status_widget.update(text)
