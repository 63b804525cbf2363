"""Order repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.order import Order, OrderItem


class IOrderRepository(Protocol):
    """Repository interface for the Order aggregate.

    Header and items are written by separate calls.
    """

    async def create_header(self, order: Order) -> Order:
        """Persist the order header (without items)."""
        ...

    async def insert_items(self, order_id: UUID, items: list[OrderItem]) -> None:
        """Persist the line items of an existing order."""
        ...

    async def get(self, id: UUID) -> Order | None:
        """Get an order with its items."""
        ...

    async def list_for_buyer(self, buyer_id: UUID) -> list[Order]:
        """Get all orders placed by a buyer, newest first."""
        ...

    async def list_for_seller(self, seller_id: UUID) -> list[Order]:
        """Get all orders addressed to a seller, newest first."""
        ...

    async def update(self, order: Order) -> Order:
        """Update status and tracking fields of an order header."""
        ...
