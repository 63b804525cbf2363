"""Order service layer: submission, tracking and status updates."""

import secrets
from collections.abc import Callable
from datetime import datetime, timedelta
from uuid import UUID

import structlog

from core.exceptions import (
    AppException,
    EmptyOrderError,
    InsufficientRoleError,
    InvalidOrderStatusError,
    MixedSellerOrderError,
    OrderCreateError,
    OrderNotFoundError,
    PartialOrderFailureError,
    ProductNotFoundError,
)
from domain.entities.order import Order, OrderItem, OrderStatus, order_total
from domain.entities.profile import UserRole
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.cart_service import CartStore
from domain.services.notifier import Notifier

logger = structlog.get_logger()

DEFAULT_DELIVERY_DAYS = 5


def generate_tracking_number(now: datetime | None = None) -> str:
    """Tracking numbers look like ``FF20260114-3F9A2C``."""
    stamp = (now or datetime.utcnow()).strftime("%Y%m%d")
    return f"FF{stamp}-{secrets.token_hex(3).upper()}"


class OrderService:
    """Service layer for Order business logic."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        notifier: Notifier | None = None,
        delivery_days: int = DEFAULT_DELIVERY_DAYS,
    ) -> None:
        self._uow_factory = uow_factory
        self._notifier = notifier
        self._delivery_days = delivery_days

    async def create_order(
        self,
        buyer_id: UUID,
        items: list[OrderItem],
        shipping_address: str,
        seller_id: UUID | None = None,
    ) -> Order:
        """Persist an order header and its items.

        Item prices are taken as given; live product prices are never read.
        The header and the items are written in separate transactions; if
        the items fail the header stays in place and
        ``PartialOrderFailureError`` is raised with its id. Every item must
        belong to the same seller.
        """
        if not items:
            raise EmptyOrderError()

        if seller_id is None:
            seller_id = await self._resolve_seller(items)

        now = datetime.utcnow()
        order = Order(
            buyer_id=buyer_id,
            seller_id=seller_id,
            shipping_address=shipping_address,
            total_amount=order_total(items),
            tracking_number=generate_tracking_number(now),
            estimated_delivery=now + timedelta(days=self._delivery_days),
            created_at=now,
            updated_at=now,
        )

        try:
            async with self._uow_factory() as uow:
                header = await uow.orders.create_header(order)
                await uow.commit()
        except AppException:
            raise
        except Exception as exc:
            logger.error("order_header_persist_failed", buyer_id=str(buyer_id), error=str(exc))
            raise OrderCreateError(str(exc)) from exc

        try:
            async with self._uow_factory() as uow:
                await uow.orders.insert_items(header.id, items)
                await uow.commit()
        except Exception as exc:
            logger.error(
                "order_items_persist_failed",
                order_id=str(header.id),
                error=str(exc),
            )
            raise PartialOrderFailureError(str(header.id), str(exc)) from exc

        header.items = list(items)
        logger.info(
            "order_created",
            order_id=str(header.id),
            buyer_id=str(buyer_id),
            item_count=len(items),
            total_amount=str(header.total_amount),
        )
        return header

    async def checkout(self, cart: CartStore, buyer_id: UUID, shipping_address: str) -> Order:
        """Submit the cart as an order and clear it on success."""
        try:
            seller_ids = cart.seller_ids()
            if len(seller_ids) > 1:
                raise MixedSellerOrderError(sorted(str(s) for s in seller_ids))
            order = await self.create_order(
                buyer_id=buyer_id,
                items=cart.to_order_items(),
                shipping_address=shipping_address,
                seller_id=cart.seller_id(),
            )
        except AppException as exc:
            if self._notifier:
                self._notifier.error("Failed to place order", exc.message)
            raise

        cart.clear()
        if self._notifier:
            self._notifier.success(
                "Order placed successfully",
                f"Your order #{order.tracking_number} has been placed.",
            )
        return order

    async def get_by_id(self, order_id: UUID, user_id: UUID, role: UserRole) -> Order:
        """Get an order visible to the user (buyer, seller or admin)."""
        async with self._uow_factory() as uow:
            order = await uow.orders.get(order_id)
        if not order or not self._can_view(order, user_id, role):
            raise OrderNotFoundError(str(order_id))
        return order

    async def list_for_buyer(self, buyer_id: UUID) -> list[Order]:
        async with self._uow_factory() as uow:
            return await uow.orders.list_for_buyer(buyer_id)  # type: ignore[no-any-return]

    async def list_for_seller(self, seller_id: UUID) -> list[Order]:
        async with self._uow_factory() as uow:
            return await uow.orders.list_for_seller(seller_id)  # type: ignore[no-any-return]

    async def update_status(
        self,
        order_id: UUID,
        status: OrderStatus,
        user_id: UUID,
        role: UserRole,
    ) -> Order:
        """Move an order along its lifecycle. Seller of the order or admin only."""
        async with self._uow_factory() as uow:
            order = await uow.orders.get(order_id)
            if not order or not self._can_view(order, user_id, role):
                raise OrderNotFoundError(str(order_id))
            if role != UserRole.ADMIN and order.seller_id != user_id:
                raise InsufficientRoleError([UserRole.SELLER.value, UserRole.ADMIN.value])
            if not order.can_transition_to(status):
                raise InvalidOrderStatusError(order.status.value, status.value)

            order.transition_to(status)
            updated = await uow.orders.update(order)
            await uow.commit()

        logger.info("order_status_updated", order_id=str(order_id), status=status.value)
        return updated

    async def _resolve_seller(self, items: list[OrderItem]) -> UUID:
        """Single seller owning every item; mixed-seller orders are rejected."""
        seller_ids: list[UUID] = []
        async with self._uow_factory() as uow:
            for product_id in dict.fromkeys(item.product_id for item in items):
                product = await uow.products.get(product_id)
                if not product:
                    raise ProductNotFoundError(str(product_id))
                if product.seller_id not in seller_ids:
                    seller_ids.append(product.seller_id)
        if len(seller_ids) > 1:
            raise MixedSellerOrderError([str(s) for s in seller_ids])
        return seller_ids[0]

    @staticmethod
    def _can_view(order: Order, user_id: UUID, role: UserRole) -> bool:
        return role == UserRole.ADMIN or user_id in (order.buyer_id, order.seller_id)
