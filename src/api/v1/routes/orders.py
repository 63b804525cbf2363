"""Order API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from api.dependencies.auth import CurrentProfile, SellerOrAdminProfile
from api.v1.dependencies import get_order_service
from api.v1.schemas.common import ErrorResponse
from api.v1.schemas.order import (
    OrderCreate,
    OrderDetailResponse,
    OrderListResponse,
    OrderResponse,
    OrderStatusUpdate,
)
from core.rate_limit import limiter
from domain.entities.order import OrderItem
from domain.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post(
    "",
    response_model=OrderDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Place an order",
    responses={
        201: {"description": "Order placed"},
        400: {"model": ErrorResponse, "description": "Order has no items"},
        404: {"model": ErrorResponse, "description": "Seller could not be resolved"},
        500: {"model": ErrorResponse, "description": "Order saved without its items"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def create_order(
    request: Request,
    body: OrderCreate,
    profile: CurrentProfile,
    service: OrderService = Depends(get_order_service),
) -> OrderDetailResponse:
    """Place an order at the prices the buyer saw.

    The total is computed from the submitted item prices.
    """
    order = await service.create_order(
        buyer_id=profile.id,
        items=[
            OrderItem(product_id=item.product_id, quantity=item.quantity, price=item.price)
            for item in body.items
        ],
        shipping_address=body.shipping_address,
        seller_id=body.seller_id,
    )
    return OrderDetailResponse(data=OrderResponse.model_validate(order))


@router.get(
    "",
    response_model=OrderListResponse,
    summary="List the caller's purchases",
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_my_orders(
    request: Request,
    profile: CurrentProfile,
    service: OrderService = Depends(get_order_service),
) -> OrderListResponse:
    orders = await service.list_for_buyer(profile.id)
    return OrderListResponse(data=[OrderResponse.model_validate(o) for o in orders])


@router.get(
    "/selling",
    response_model=OrderListResponse,
    summary="List orders placed with the seller",
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_selling_orders(
    request: Request,
    profile: SellerOrAdminProfile,
    service: OrderService = Depends(get_order_service),
) -> OrderListResponse:
    orders = await service.list_for_seller(profile.id)
    return OrderListResponse(data=[OrderResponse.model_validate(o) for o in orders])


@router.get(
    "/{order_id}",
    response_model=OrderDetailResponse,
    summary="Get an order",
    responses={404: {"model": ErrorResponse, "description": "Order not found"}},
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_order(
    request: Request,
    order_id: UUID,
    profile: CurrentProfile,
    service: OrderService = Depends(get_order_service),
) -> OrderDetailResponse:
    """Visible to the buyer, the seller and admins."""
    order = await service.get_by_id(order_id, profile.id, profile.role)
    return OrderDetailResponse(data=OrderResponse.model_validate(order))


@router.patch(
    "/{order_id}/status",
    response_model=OrderDetailResponse,
    summary="Update an order's status",
    responses={
        400: {"model": ErrorResponse, "description": "Transition not allowed"},
        403: {"model": ErrorResponse, "description": "Caller is not the order's seller"},
        404: {"model": ErrorResponse, "description": "Order not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def update_order_status(
    request: Request,
    order_id: UUID,
    body: OrderStatusUpdate,
    profile: SellerOrAdminProfile,
    service: OrderService = Depends(get_order_service),
) -> OrderDetailResponse:
    order = await service.update_status(order_id, body.status, profile.id, profile.role)
    return OrderDetailResponse(data=OrderResponse.model_validate(order))
