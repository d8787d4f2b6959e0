"""Rendering helpers for menu, cart, payment and order status."""

from __future__ import annotations

from rich.text import Text

from tableorder.config import CURRENCY_SYMBOL
from tableorder.constant import (
    DEFAULT_STATUS_BADGE_STYLE,
    PAYMENT_METHOD_LABELS,
    PAYMENT_STATUS_STYLES,
    STATUS_BADGE_STYLES,
    STEP_ACTIVE,
    STEP_COMPLETED,
)
from tableorder.models import CartLine, MenuItem, OrderStatus, PaymentMethodInfo, ProgressChecklist, Table


def format_money(amount: int) -> str:
    """Format whole currency units with thousands separators."""
    return f"{CURRENCY_SYMBOL}{amount:,}"


def status_badge_style(status: OrderStatus) -> str:
    return STATUS_BADGE_STYLES.get(status.value, DEFAULT_STATUS_BADGE_STYLE)


def format_status_badge(status: OrderStatus) -> Text:
    return Text(f" {status.value.upper()} ", style=status_badge_style(status))


def format_table_label(table: Table | None) -> str:
    if table is None:
        return "No table"
    return f"Table {table.table_number} · {table.location}"


def format_menu_item(item: MenuItem, in_cart: int = 0) -> Text:
    text = Text()
    text.append(item.name)
    text.append(f"  {format_money(item.price)}", style="dim")
    if in_cart:
        text.append(f"  x{in_cart}", style="bold #5fbf72")
    return text


def format_cart_line(line: CartLine) -> Text:
    """Render a cart row with its quantity, line total and optional note."""
    text = Text()
    text.append(f"{line.quantity} x ", style="bold")
    text.append(line.menu_item.name)
    text.append(f"  {format_money(line.line_total)}", style="dim")
    if line.note:
        text.append("\n      ")
        text.append(f"[{line.note}]", style="white")
    return text


def payment_method_label(method: PaymentMethodInfo) -> str:
    return method.name or PAYMENT_METHOD_LABELS.get(method.type.value, method.type.value)


def format_payment_method(method: PaymentMethodInfo, selected: bool = False) -> Text:
    text = Text()
    text.append("(•) " if selected else "( ) ")
    text.append(payment_method_label(method), style="bold" if selected else "")
    if method.bank_name or method.account_number:
        text.append(f"\n      Bank: {method.bank_name or '-'}", style="dim")
        text.append(f"\n      Account: {method.account_number or '-'}", style="dim")
        text.append(f"\n      Name: {method.account_name or '-'}", style="dim")
    return text


def format_progress(checklist: ProgressChecklist) -> Text:
    text = Text()
    if checklist.rejected:
        text.append("✗ Order rejected", style="bold #ff6b6b")
        return text
    for idx, step in enumerate(checklist.steps):
        if idx > 0:
            text.append("\n")
        if step.state == STEP_COMPLETED:
            text.append(f"✓ {step.label}", style="bold #5fbf72")
        elif step.state == STEP_ACTIVE:
            text.append(f"➤ {step.label}", style="bold #f3a04f")
            text.append("  in progress", style="dim")
        else:
            text.append(f"  {step.label}", style="dim")
    return text


def payment_status_style(status: str) -> str:
    return PAYMENT_STATUS_STYLES.get(status, "")
