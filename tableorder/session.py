"""Session context shared by the cart, checkout and tracker."""

from __future__ import annotations

import logging
from urllib.parse import parse_qs, urlparse

from tableorder.cart import Cart
from tableorder.errors import StateError, ValidationError
from tableorder.models import CartLine, MenuItem, Order, PaymentMethodInfo, Table

logger = logging.getLogger(__name__)


def table_from_scan(scanned: str) -> Table:
    """Build a table reference from the query parameters of a scanned QR URL.

    Accepts a full URL or a bare query string. ``tableId`` is required; the other
    attributes fall back to placeholders when absent.
    """
    parsed = urlparse(scanned)
    query = parsed.query if parsed.query else scanned.lstrip("?")
    params = {key: values[0] for key, values in parse_qs(query).items() if values}

    table_id = params.get("tableId", "").strip()
    if not table_id:
        raise ValidationError("Table information not found. Please scan the QR code again.")

    raw_capacity = params.get("capacity", "")
    try:
        capacity = int(raw_capacity) if raw_capacity else 0
    except ValueError:
        capacity = 0

    return Table(
        id=table_id,
        table_number=params.get("tableNumber") or "Unknown",
        table_name=params.get("tableName") or "Table",
        capacity=capacity,
        location=params.get("location") or "Unknown",
    )


class SessionContext:
    """Holder of one customer's table, cart, order and payment selection.

    Construct one per session and call ``initialize()`` before use.
    """

    def __init__(self) -> None:
        self._initialized = False
        self._table: Table | None = None
        self._cart = Cart()
        self._active_order: Order | None = None
        self._payment_methods: list[PaymentMethodInfo] = []
        self._selected_payment_method: PaymentMethodInfo | None = None

    def initialize(self) -> SessionContext:
        self._initialized = True
        logger.debug("session_initialized")
        return self

    def reset(self) -> None:
        """Return every slot to its empty post-initialisation state."""
        self._require_initialized()
        self._table = None
        self._cart = Cart()
        self._active_order = None
        self._payment_methods = []
        self._selected_payment_method = None
        logger.debug("session_reset")

    @property
    def initialized(self) -> bool:
        return self._initialized

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise StateError("Session context used before initialize()")

    @property
    def table(self) -> Table | None:
        self._require_initialized()
        return self._table

    def set_table(self, table: Table | None) -> None:
        # Cart and active order survive a table change.
        self._require_initialized()
        self._table = table
        logger.info("session_table_bound table_id=%s", table.id if table else None)

    @property
    def cart(self) -> Cart:
        self._require_initialized()
        return self._cart

    @property
    def active_order(self) -> Order | None:
        self._require_initialized()
        return self._active_order

    def set_active_order(self, order: Order | None) -> None:
        self._require_initialized()
        self._active_order = order

    @property
    def payment_methods(self) -> list[PaymentMethodInfo]:
        self._require_initialized()
        return list(self._payment_methods)

    def set_payment_methods(self, methods: list[PaymentMethodInfo]) -> None:
        self._require_initialized()
        self._payment_methods = list(methods)

    @property
    def selected_payment_method(self) -> PaymentMethodInfo | None:
        self._require_initialized()
        return self._selected_payment_method

    def set_selected_payment_method(self, method: PaymentMethodInfo | None) -> None:
        self._require_initialized()
        self._selected_payment_method = method

    def add_to_cart(self, item: MenuItem, quantity: int = 1) -> CartLine:
        return self.cart.add(item, quantity)

    def remove_from_cart(self, item_id: str) -> None:
        self.cart.remove(item_id)

    def update_cart_quantity(self, item_id: str, quantity: int) -> None:
        self.cart.set_quantity(item_id, quantity)

    def update_cart_note(self, item_id: str, text: str) -> None:
        self.cart.set_note(item_id, text)

    def clear_cart(self) -> None:
        self.cart.clear()

    def cart_total(self) -> int:
        return self.cart.total()

    def cart_item_count(self) -> int:
        return self.cart.item_count()
