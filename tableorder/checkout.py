"""Checkout pipeline: cart -> order -> payment method -> payment -> receipt."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable

from tableorder.api import ApiClient
from tableorder.errors import StateError, ValidationError
from tableorder.models import Order, Payment, PaymentMethodInfo
from tableorder.payloads import create_order_payload
from tableorder.session import SessionContext

logger = logging.getLogger(__name__)


class CheckoutStage(str, Enum):
    CART = "cart"
    PAYMENT = "payment"
    AWAITING_RECEIPT = "awaiting_receipt"
    COMPLETE = "complete"


class CheckoutOrchestrator:
    """Forward-only checkout flow for one session.

    Each stage can be retried after a failure. Retrying payment initiation or
    receipt upload never re-issues order creation.
    """

    def __init__(
        self,
        session: SessionContext,
        api: ApiClient,
        on_complete: Callable[[Order], None] | None = None,
    ) -> None:
        self.session = session
        self.api = api
        self.on_complete = on_complete
        self.stage = CheckoutStage.CART
        self.order: Order | None = None
        self.payment: Payment | None = None

    @property
    def is_complete(self) -> bool:
        return self.stage is CheckoutStage.COMPLETE

    @property
    def awaiting_receipt(self) -> bool:
        return self.stage is CheckoutStage.AWAITING_RECEIPT

    async def load_payment_methods(self) -> list[PaymentMethodInfo]:
        """Fetch payment methods and keep only the active ones."""
        methods = [method for method in await self.api.get_payment_methods() if method.is_active]
        self.session.set_payment_methods(methods)
        selected = self.session.selected_payment_method
        if selected is not None and selected.id not in {method.id for method in methods}:
            self.session.set_selected_payment_method(None)
        logger.info("checkout_payment_methods_loaded count=%d", len(methods))
        return methods

    def select_payment_method(self, method_id: str) -> PaymentMethodInfo:
        if self.stage not in {CheckoutStage.CART, CheckoutStage.PAYMENT}:
            raise StateError("Payment method cannot change after payment was initiated")
        for method in self.session.payment_methods:
            if method.id == method_id and method.is_active:
                self.session.set_selected_payment_method(method)
                logger.info("checkout_method_selected method_id=%s type=%s", method.id, method.type.value)
                return method
        raise ValidationError(f"Payment method {method_id!r} is not available")

    async def submit(self, order_note: str | None = None) -> Order:
        """Create the order from the cart; the cart is cleared only on success."""
        if self.stage is not CheckoutStage.CART:
            raise StateError("Order already submitted for this checkout")
        cart = self.session.cart
        if cart.is_empty:
            raise ValidationError("Cart is empty")
        table = self.session.table
        if table is None:
            raise ValidationError("No table bound to this session")
        method = self.session.selected_payment_method
        if method is None:
            raise ValidationError("Select a payment method before placing the order")

        note = order_note.strip() if order_note else None
        payload = create_order_payload(table.id, cart.lines, method.type, note or None)
        logger.info("checkout_submit table_id=%s lines=%d", table.id, len(cart))
        order = await self.api.create_order(payload)

        self.order = order
        self.session.clear_cart()
        self.session.set_active_order(order)
        self.stage = CheckoutStage.PAYMENT
        logger.info("checkout_order_created order_id=%s number=%s", order.id, order.order_number)
        return order

    async def initiate_payment(self) -> Payment:
        if self.stage is not CheckoutStage.PAYMENT:
            raise StateError(f"Cannot initiate payment in stage {self.stage.value!r}")
        order = self.order
        if order is None:
            raise StateError("No active order to pay for")
        method = self.session.selected_payment_method
        if method is None:
            raise ValidationError("Select a payment method")

        payment = await self.api.initiate_payment(order.id, method.type)
        self.payment = payment
        logger.info(
            "checkout_payment_initiated order_id=%s payment_id=%s type=%s", order.id, payment.id, method.type.value
        )
        if method.type.needs_receipt:
            self.stage = CheckoutStage.AWAITING_RECEIPT
        else:
            self._complete(order)
        return payment

    async def upload_receipt(self, reference: str) -> Payment:
        """Attach a transfer receipt URL to the pending payment."""
        if not reference or not reference.strip():
            raise ValidationError("Receipt reference is required")
        if self.stage is not CheckoutStage.AWAITING_RECEIPT or self.payment is None or self.order is None:
            raise StateError("No transfer payment is awaiting a receipt")

        payment = await self.api.upload_transfer_receipt(self.payment.id, reference.strip())
        self.payment = payment
        logger.info("checkout_receipt_uploaded payment_id=%s", payment.id)
        self._complete(self.order)
        return payment

    def reset(self) -> None:
        """Start a fresh checkout for the next order."""
        self.stage = CheckoutStage.CART
        self.order = None
        self.payment = None

    def _complete(self, order: Order) -> None:
        self.stage = CheckoutStage.COMPLETE
        logger.info("checkout_complete order_id=%s", order.id)
        if self.on_complete is not None:
            self.on_complete(order)
