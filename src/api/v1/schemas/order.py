"""Pydantic schemas for Order API."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from domain.entities.order import DeliveryStatus, OrderStatus


class OrderItemSchema(BaseModel):
    """One order line; ``price`` is the unit price the buyer saw."""

    model_config = ConfigDict(from_attributes=True)

    product_id: UUID
    quantity: int = Field(..., ge=1)
    price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)


class OrderCreate(BaseModel):
    """Schema for submitting an Order.

    An empty ``items`` list is accepted here and rejected by the service
    with ``EMPTY_ORDER``.
    """

    items: list[OrderItemSchema]
    shipping_address: str = Field(..., min_length=1, max_length=1000)
    seller_id: UUID | None = None


class OrderStatusUpdate(BaseModel):
    """Schema for moving an Order along its lifecycle."""

    status: OrderStatus


class OrderResponse(BaseModel):
    """Schema for Order response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    buyer_id: UUID
    seller_id: UUID
    items: list[OrderItemSchema]
    total_amount: Decimal
    status: OrderStatus
    delivery_status: DeliveryStatus
    shipping_address: str
    tracking_number: str | None = None
    estimated_delivery: datetime | None = None
    created_at: datetime
    updated_at: datetime


class OrderListResponse(BaseModel):
    """Schema for list of Orders."""

    data: list[OrderResponse]


class OrderDetailResponse(BaseModel):
    """Wrapper for single Order response."""

    data: OrderResponse
