"""SQLAlchemy implementation of Order repository."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from domain.entities.order import DeliveryStatus, Order, OrderItem, OrderStatus
from infrastructure.database.models import OrderItemModel, OrderModel


class SQLAlchemyOrderRepository:
    """SQLAlchemy implementation of IOrderRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create_header(self, order: Order) -> Order:
        """Persist the order header without its items."""
        model = OrderModel(
            id=order.id,
            buyer_id=order.buyer_id,
            seller_id=order.seller_id,
            total_amount=order.total_amount,
            status=order.status.value,
            shipping_address=order.shipping_address,
            delivery_status=order.delivery_status.value,
            tracking_number=order.tracking_number,
            estimated_delivery=order.estimated_delivery,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )
        self._session.add(model)
        await self._session.flush()
        return self._to_entity(model, items=[])

    async def insert_items(self, order_id: UUID, items: list[OrderItem]) -> None:
        """Persist the line items of an existing order."""
        for position, item in enumerate(items):
            self._session.add(
                OrderItemModel(
                    order_id=order_id,
                    product_id=item.product_id,
                    position=position,
                    quantity=item.quantity,
                    price=item.price,
                )
            )
        await self._session.flush()

    async def get(self, id: UUID) -> Order | None:
        """Get an order with its items."""
        stmt = select(OrderModel).options(selectinload(OrderModel.items)).where(OrderModel.id == id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def list_for_buyer(self, buyer_id: UUID) -> list[Order]:
        """Get all orders placed by a buyer, newest first."""
        stmt = (
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .where(OrderModel.buyer_id == buyer_id)
            .order_by(OrderModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def list_for_seller(self, seller_id: UUID) -> list[Order]:
        """Get all orders addressed to a seller, newest first."""
        stmt = (
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .where(OrderModel.seller_id == seller_id)
            .order_by(OrderModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def update(self, order: Order) -> Order:
        """Update status and tracking fields. Items and amounts are immutable."""
        stmt = (
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .where(OrderModel.id == order.id)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            raise ValueError(f"Order {order.id} not found")

        model.status = order.status.value
        model.delivery_status = order.delivery_status.value
        model.tracking_number = order.tracking_number
        model.estimated_delivery = order.estimated_delivery
        model.updated_at = order.updated_at

        await self._session.flush()
        return self._to_entity(model)

    @staticmethod
    def _to_entity(model: OrderModel, items: list[OrderItem] | None = None) -> Order:
        """Convert ORM model to domain entity."""
        if items is None:
            items = [
                OrderItem(product_id=item.product_id, quantity=item.quantity, price=item.price)
                for item in model.items
            ]
        return Order(
            id=model.id,
            buyer_id=model.buyer_id,
            seller_id=model.seller_id,
            items=items,
            total_amount=model.total_amount,
            status=OrderStatus(model.status),
            shipping_address=model.shipping_address,
            delivery_status=DeliveryStatus(model.delivery_status),
            tracking_number=model.tracking_number,
            estimated_delivery=model.estimated_delivery,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
