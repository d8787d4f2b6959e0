"""Editable display text for statuses, steps and payment methods."""

from __future__ import annotations

STEP_COMPLETED = "completed"
STEP_ACTIVE = "active"
STEP_PENDING = "pending"

PROGRESS_STEP_LABELS: dict[str, str] = {
    "pending": "Order Placed",
    "accepted": "Order Accepted",
    "preparing": "Preparing",
    "ready": "Ready",
    "completed": "Completed",
}

STATUS_MESSAGES: dict[str, str] = {
    "pending": "Your order is pending confirmation",
    "accepted": "Your order has been accepted",
    "preparing": "Your order is being prepared",
    "ready": "Your order is ready!",
    "completed": "Your order has been completed",
    "rejected": "Your order was rejected",
}

DEFAULT_STATUS_MESSAGE = "Processing your order"

STATUS_BADGE_STYLES: dict[str, str] = {
    "completed": "bold #0b1f0f on #5fbf72",
    "rejected": "bold #ffffff on #b23a48",
    "preparing": "bold #1f1200 on #f3a04f",
    "ready": "bold #ffffff on #2f6db5",
}

DEFAULT_STATUS_BADGE_STYLE = "bold #1f1a00 on #e8d36a"

PAYMENT_METHOD_LABELS: dict[str, str] = {
    "cash": "Cash",
    "pos": "Card (POS)",
    "transfer": "Bank Transfer",
}

PAYMENT_STATUS_STYLES: dict[str, str] = {
    "completed": "bold #5fbf72",
    "failed": "bold #ff6b6b",
    "pending": "bold #e8d36a",
}
