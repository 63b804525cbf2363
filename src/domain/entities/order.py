"""Order domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import StrEnum
from uuid import UUID, uuid4


class OrderStatus(StrEnum):
    """Commercial status of an order."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class DeliveryStatus(StrEnum):
    """Shipping progress shown to the buyer."""

    PROCESSING = "processing"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# Allowed forward moves; anything not listed is rejected.
ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

_DELIVERY_FOR_STATUS: dict[OrderStatus, DeliveryStatus] = {
    OrderStatus.PENDING: DeliveryStatus.PROCESSING,
    OrderStatus.CONFIRMED: DeliveryStatus.PROCESSING,
    OrderStatus.SHIPPED: DeliveryStatus.IN_TRANSIT,
    OrderStatus.DELIVERED: DeliveryStatus.DELIVERED,
    OrderStatus.CANCELLED: DeliveryStatus.CANCELLED,
}


@dataclass(frozen=True)
class OrderItem:
    """A line of an order. ``price`` is the unit price captured at order time."""

    product_id: UUID
    quantity: int
    price: Decimal

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity


def order_total(items: list[OrderItem]) -> Decimal:
    return sum((item.subtotal for item in items), Decimal("0"))


@dataclass
class Order:
    """Domain entity for an order aggregate (header plus items)."""

    buyer_id: UUID
    seller_id: UUID
    shipping_address: str
    total_amount: Decimal
    id: UUID = field(default_factory=uuid4)
    items: list[OrderItem] = field(default_factory=list)
    status: OrderStatus = OrderStatus.PENDING
    delivery_status: DeliveryStatus = DeliveryStatus.PROCESSING
    tracking_number: str | None = None
    estimated_delivery: datetime | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def can_transition_to(self, status: OrderStatus) -> bool:
        return status in ORDER_TRANSITIONS[self.status]

    def transition_to(self, status: OrderStatus) -> None:
        """Move to ``status`` and keep the delivery status in step."""
        self.status = status
        self.delivery_status = _DELIVERY_FOR_STATUS[status]
        self.updated_at = datetime.utcnow()

    def __post_init__(self) -> None:
        """Ensure updated_at is always at least as recent as created_at."""
        if self.updated_at < self.created_at:
            self.updated_at = self.created_at
