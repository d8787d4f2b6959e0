"""Pytest configuration and fixtures."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from tableorder.errors import NotFoundError
from tableorder.models import (
    MenuCategory,
    MenuItem,
    Order,
    OrderStatus,
    Payment,
    PaymentMethodInfo,
    PaymentMethodType,
    PaymentStatus,
    Restaurant,
    Table,
)
from tableorder.session import SessionContext


def make_order(order_id: str = "order-1", status: OrderStatus = OrderStatus.PENDING, total: int = 2700) -> Order:
    return Order(
        id=order_id,
        order_number="ORD-001",
        table_id="table-1",
        status=status,
        total_amount=total,
        payment_method="cash",
        payment_status=PaymentStatus.PENDING,
    )


class FakeApi:
    """In-memory stand-in for the ordering service that records every call."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []
        self.payment_methods = [
            PaymentMethodInfo(id="pm-cash", type=PaymentMethodType.CASH, name="Cash"),
            PaymentMethodInfo(id="pm-pos", type=PaymentMethodType.POS, name="Card"),
            PaymentMethodInfo(
                id="pm-transfer",
                type=PaymentMethodType.TRANSFER,
                name="Bank Transfer",
                bank_name="First Bank",
                account_number="0123456789",
                account_name="Chop House",
            ),
            PaymentMethodInfo(id="pm-old", type=PaymentMethodType.CASH, name="Old", is_active=False),
        ]
        self.created_order = make_order()
        self.orders: dict[str, Order] = {}
        self.errors: dict[str, Exception] = {}
        self.pending_orders: list[asyncio.Future[Order]] | None = None

    def _record(self, name: str, payload: Any = None) -> None:
        self.calls.append((name, payload))
        error = self.errors.pop(name, None)
        if error is not None:
            raise error

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    async def aclose(self) -> None:
        self.calls.append(("aclose", None))

    async def get_restaurant(self) -> Restaurant:
        self._record("get_restaurant")
        return Restaurant(id="r1", name="Chop House")

    async def get_menu(self) -> list[MenuCategory]:
        self._record("get_menu")
        return [
            MenuCategory(
                id="c1",
                name="Mains",
                menu_items=(
                    MenuItem(id="item-jollof", name="Jollof Rice", price=500),
                    MenuItem(id="item-suya", name="Beef Suya", price=1200),
                ),
            )
        ]

    async def get_payment_methods(self) -> list[PaymentMethodInfo]:
        self._record("get_payment_methods")
        return list(self.payment_methods)

    async def create_order(self, payload: dict[str, Any]) -> Order:
        self._record("create_order", payload)
        self.orders[self.created_order.id] = self.created_order
        return self.created_order

    async def get_order(self, order_id: str) -> Order:
        self._record("get_order", order_id)
        if self.pending_orders is not None:
            future: asyncio.Future[Order] = asyncio.get_running_loop().create_future()
            self.pending_orders.append(future)
            return await future
        if order_id not in self.orders:
            raise NotFoundError("Order not found", 404, "Not Found")
        return self.orders[order_id]

    async def initiate_payment(self, order_id: str, payment_method: PaymentMethodType) -> Payment:
        self._record("initiate_payment", (order_id, payment_method))
        return Payment(
            id="pay-1",
            order_id=order_id,
            payment_method=payment_method.value,
            status=PaymentStatus.PENDING,
            amount=self.created_order.total_amount,
        )

    async def upload_transfer_receipt(self, payment_id: str, receipt_url: str) -> Payment:
        self._record("upload_transfer_receipt", (payment_id, receipt_url))
        return Payment(
            id=payment_id,
            order_id=self.created_order.id,
            payment_method="transfer",
            status=PaymentStatus.PENDING,
            amount=self.created_order.total_amount,
            receipt_image_url=receipt_url,
        )


@pytest.fixture
def jollof() -> MenuItem:
    return MenuItem(id="item-jollof", name="Jollof Rice", price=500)


@pytest.fixture
def suya() -> MenuItem:
    return MenuItem(id="item-suya", name="Beef Suya", price=1200)


@pytest.fixture
def table() -> Table:
    return Table(id="table-1", table_number="7", table_name="Window", capacity=4, location="Main Hall")


@pytest.fixture
def session(table: Table) -> SessionContext:
    ctx = SessionContext().initialize()
    ctx.set_table(table)
    return ctx


@pytest.fixture
def fake_api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def order_factory():
    return make_order
