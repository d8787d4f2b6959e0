"""Conversion between collaborator JSON records and domain models."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable

from tableorder.models import (
    CartLine,
    MenuCategory,
    MenuItem,
    Order,
    OrderedItemSnapshot,
    OrderItem,
    OrderStatus,
    Payment,
    PaymentMethodInfo,
    PaymentMethodType,
    PaymentStatus,
    Restaurant,
    Table,
    TableSummary,
)


def to_amount(value: Any) -> int:
    """Coerce a JSON number or numeric string to whole currency units."""
    if value is None or value == "":
        return 0
    try:
        # str() keeps float inputs like 1200.0 exact before quantizing.
        amount = Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Not a currency amount: {value!r}") from exc
    return int(amount.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return str(value)


def _optional_text(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def restaurant_from_payload(data: dict[str, Any]) -> Restaurant:
    contact = data.get("contactInfo") or {}
    return Restaurant(
        id=_text(data.get("id")),
        name=_text(data.get("name")),
        phone=_text(contact.get("phone")),
        email=_text(contact.get("email")),
        address=_text(contact.get("address")),
        logo_url=_text(data.get("logoUrl")),
        is_active=bool(data.get("isActive", True)),
    )


def table_from_payload(data: dict[str, Any]) -> Table:
    return Table(
        id=_text(data.get("id")),
        table_number=_text(data.get("tableNumber"), "Unknown"),
        table_name=_text(data.get("tableName"), "Table"),
        capacity=int(data.get("capacity") or 0),
        location=_text(data.get("location"), "Unknown"),
        qr_code_url=_optional_text(data.get("qrCodeUrl")),
        qr_code_data=_optional_text(data.get("qrCodeData")),
        order_website_url=_optional_text(data.get("orderWebsiteUrl")),
        is_active=bool(data.get("isActive", True)),
    )


def menu_item_from_payload(data: dict[str, Any]) -> MenuItem:
    return MenuItem(
        id=_text(data.get("id")),
        name=_text(data.get("name")),
        price=to_amount(data.get("price")),
        description=_text(data.get("description")),
        image_url=_text(data.get("imageUrl")),
        is_available=bool(data.get("isAvailable", True)),
        preparation_time=int(data.get("preparationTime") or 0),
        category_id=_text(data.get("categoryId")),
    )


def category_from_payload(data: dict[str, Any]) -> MenuCategory:
    raw_items = data.get("menuItems")
    if raw_items is None:
        raw_items = data.get("items")
    if not isinstance(raw_items, list):
        raw_items = []
    return MenuCategory(
        id=_text(data.get("id")),
        name=_text(data.get("name")),
        description=_text(data.get("description")),
        display_order=int(data.get("displayOrder") or 0),
        is_active=bool(data.get("isActive", True)),
        menu_items=tuple(menu_item_from_payload(item) for item in raw_items),
    )


def menu_from_payload(data: Iterable[dict[str, Any]]) -> list[MenuCategory]:
    """Parse the menu, dropping inactive categories and sorting by display order."""
    categories = [category_from_payload(raw) for raw in data]
    active = [category for category in categories if category.is_active]
    return sorted(active, key=lambda category: category.display_order)


def _ordered_item_from_payload(data: dict[str, Any]) -> OrderItem:
    raw_menu_item = data.get("menuItem")
    snapshot = None
    if raw_menu_item:
        snapshot = OrderedItemSnapshot(
            id=_text(raw_menu_item.get("id")),
            name=_text(raw_menu_item.get("name")),
            price=to_amount(raw_menu_item.get("price")),
            description=_text(raw_menu_item.get("description")),
            image_url=_text(raw_menu_item.get("imageUrl")),
        )
    return OrderItem(
        id=_text(data.get("id")),
        menu_item_id=_text(data.get("menuItemId")),
        quantity=int(data.get("quantity") or 0),
        price=to_amount(data.get("price")),
        subtotal=to_amount(data.get("subtotal")),
        menu_item=snapshot,
        special_instructions=_optional_text(data.get("specialInstructions")),
    )


def order_from_payload(data: dict[str, Any]) -> Order:
    raw_table = data.get("table")
    table = None
    if raw_table:
        table = TableSummary(
            id=_text(raw_table.get("id")),
            table_number=_text(raw_table.get("tableNumber")),
            location=_text(raw_table.get("location")),
        )
    return Order(
        id=_text(data.get("id")),
        order_number=_text(data.get("orderNumber")),
        table_id=_text(data.get("tableId")),
        status=OrderStatus(data.get("status", "pending")),
        total_amount=to_amount(data.get("totalAmount")),
        payment_method=_text(data.get("paymentMethod")),
        payment_status=PaymentStatus(data.get("paymentStatus", "pending")),
        items=tuple(_ordered_item_from_payload(item) for item in data.get("items") or []),
        table=table,
        special_instructions=_optional_text(data.get("specialInstructions")),
        created_at=_text(data.get("createdAt")),
        updated_at=_text(data.get("updatedAt")),
    )


def payment_method_from_payload(data: dict[str, Any]) -> PaymentMethodInfo:
    method_type = PaymentMethodType(data.get("type"))
    is_transfer = method_type is PaymentMethodType.TRANSFER
    return PaymentMethodInfo(
        id=_text(data.get("id")),
        type=method_type,
        name=_text(data.get("name")),
        is_active=bool(data.get("isActive", False)),
        bank_name=_optional_text(data.get("bankName")) if is_transfer else None,
        account_number=_optional_text(data.get("accountNumber")) if is_transfer else None,
        account_name=_optional_text(data.get("accountName")) if is_transfer else None,
    )


def payment_from_payload(data: dict[str, Any]) -> Payment:
    return Payment(
        id=_text(data.get("id")),
        order_id=_text(data.get("orderId")),
        payment_method=_text(data.get("paymentMethod")),
        status=PaymentStatus(data.get("status", "pending")),
        amount=to_amount(data.get("amount")),
        receipt_image_url=_optional_text(data.get("receiptImageUrl")),
        created_at=_text(data.get("createdAt")),
        updated_at=_text(data.get("updatedAt")),
    )


def submission_items(lines: Iterable[CartLine]) -> list[dict[str, Any]]:
    """Build the ``items`` array of an order creation request."""
    items: list[dict[str, Any]] = []
    for line in lines:
        item: dict[str, Any] = {"menuItemId": line.item_id, "quantity": line.quantity}
        if line.note:
            item["specialInstructions"] = line.note
        items.append(item)
    return items


def create_order_payload(
    table_id: str,
    lines: Iterable[CartLine],
    payment_method: PaymentMethodType,
    order_note: str | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "tableId": table_id,
        "items": submission_items(lines),
        "paymentMethod": payment_method.value,
    }
    if order_note:
        payload["specialInstructions"] = order_note
    return payload
