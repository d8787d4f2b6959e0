"""In-memory cart of selected menu items."""

from __future__ import annotations

from typing import Any, Iterator

from tableorder.errors import ValidationError
from tableorder.models import CartLine, MenuItem
from tableorder.payloads import submission_items


class Cart:
    """Cart lines keyed by menu item id, kept in insertion order.

    Totals use integer arithmetic; prices are whole currency units.
    """

    def __init__(self) -> None:
        self._lines: dict[str, CartLine] = {}

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[CartLine]:
        return iter(list(self._lines.values()))

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines.values())

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def get(self, item_id: str) -> CartLine | None:
        return self._lines.get(item_id)

    def add(self, item: MenuItem, quantity: int = 1) -> CartLine:
        """Add ``quantity`` of ``item``, merging into an existing line."""
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValidationError(f"Quantity must be a positive integer, got {quantity!r}")
        line = self._lines.get(item.id)
        if line is None:
            line = CartLine(menu_item=item, quantity=quantity)
            self._lines[item.id] = line
        else:
            line.quantity += quantity
        return line

    def set_quantity(self, item_id: str, quantity: int) -> None:
        """Replace a line's quantity; zero or less removes the line."""
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValidationError(f"Quantity must be an integer, got {quantity!r}")
        if quantity <= 0:
            self.remove(item_id)
            return
        line = self._lines.get(item_id)
        if line is None:
            return
        line.quantity = quantity

    def remove(self, item_id: str) -> None:
        self._lines.pop(item_id, None)

    def set_note(self, item_id: str, text: str) -> None:
        line = self._lines.get(item_id)
        if line is None:
            return
        line.note = text

    def clear(self) -> None:
        self._lines.clear()

    def quantity_of(self, item_id: str) -> int:
        line = self._lines.get(item_id)
        return line.quantity if line is not None else 0

    def total(self) -> int:
        return sum((line.line_total for line in self._lines.values()), 0)

    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines.values())

    def to_submission_items(self) -> list[dict[str, Any]]:
        return submission_items(self._lines.values())
