"""Domain models for table ordering."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class OrderStatus(str, Enum):
    """Server-owned order status.

    The progression statuses carry a total order; ``REJECTED`` sits outside it.
    """

    PENDING = "pending"
    ACCEPTED = "accepted"
    PREPARING = "preparing"
    READY = "ready"
    COMPLETED = "completed"
    REJECTED = "rejected"

    @property
    def rank(self) -> int | None:
        if self is OrderStatus.REJECTED:
            return None
        return STATUS_SEQUENCE.index(self)

    def is_after(self, other: OrderStatus) -> bool:
        """True if this status is strictly later than ``other`` in the sequence."""
        if self.rank is None or other.rank is None:
            return False
        return self.rank > other.rank


STATUS_SEQUENCE: tuple[OrderStatus, ...] = (
    OrderStatus.PENDING,
    OrderStatus.ACCEPTED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.COMPLETED,
)


class PaymentMethodType(str, Enum):
    CASH = "cash"
    POS = "pos"
    TRANSFER = "transfer"

    @property
    def needs_receipt(self) -> bool:
        return self is PaymentMethodType.TRANSFER


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class Restaurant:
    """Branding and contact details."""

    id: str
    name: str
    phone: str = ""
    email: str = ""
    address: str = ""
    logo_url: str = ""
    is_active: bool = True


@dataclass(frozen=True)
class Table:
    """A table reference bound to a session by a QR scan or a lookup."""

    id: str
    table_number: str = "Unknown"
    table_name: str = "Table"
    capacity: int = 0
    location: str = "Unknown"
    qr_code_url: str | None = None
    qr_code_data: str | None = None
    order_website_url: str | None = None
    is_active: bool = True


@dataclass(frozen=True)
class MenuItem:
    """An orderable dish. ``price`` is in whole currency units."""

    id: str
    name: str
    price: int
    description: str = ""
    image_url: str = ""
    is_available: bool = True
    preparation_time: int = 0
    category_id: str = ""


@dataclass(frozen=True)
class MenuCategory:
    id: str
    name: str
    description: str = ""
    display_order: int = 0
    is_active: bool = True
    menu_items: tuple[MenuItem, ...] = ()


@dataclass
class CartLine:
    """A cart row keyed by menu item id."""

    menu_item: MenuItem
    quantity: int
    note: str = ""

    @property
    def item_id(self) -> str:
        return self.menu_item.id

    @property
    def line_total(self) -> int:
        return self.menu_item.price * self.quantity


@dataclass(frozen=True)
class OrderedItemSnapshot:
    """Menu item details embedded in an order line."""

    id: str
    name: str
    price: int
    description: str = ""
    image_url: str = ""


@dataclass(frozen=True)
class OrderItem:
    id: str
    menu_item_id: str
    quantity: int
    price: int
    subtotal: int
    menu_item: OrderedItemSnapshot | None = None
    special_instructions: str | None = None

    @property
    def display_name(self) -> str:
        if self.menu_item is not None:
            return self.menu_item.name
        return self.menu_item_id


@dataclass(frozen=True)
class TableSummary:
    id: str
    table_number: str
    location: str = ""


@dataclass(frozen=True)
class Order:
    """Immutable order snapshot as reported by the collaborator."""

    id: str
    order_number: str
    table_id: str
    status: OrderStatus
    total_amount: int
    payment_method: str
    payment_status: PaymentStatus
    items: tuple[OrderItem, ...] = ()
    table: TableSummary | None = None
    special_instructions: str | None = None
    created_at: str = ""
    updated_at: str = ""


@dataclass(frozen=True)
class PaymentMethodInfo:
    """A payment option; bank fields are only set for transfers."""

    id: str
    type: PaymentMethodType
    name: str
    is_active: bool = True
    bank_name: str | None = None
    account_number: str | None = None
    account_name: str | None = None


@dataclass(frozen=True)
class Payment:
    id: str
    order_id: str
    payment_method: str
    status: PaymentStatus
    amount: int
    receipt_image_url: str | None = None
    created_at: str = ""
    updated_at: str = ""


@dataclass
class ProgressStep:
    """One row of the order progress checklist."""

    status: OrderStatus
    label: str
    state: str


@dataclass
class ProgressChecklist:
    steps: list[ProgressStep] = field(default_factory=list)
    rejected: bool = False
