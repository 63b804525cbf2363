"""Product API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from api.dependencies.auth import AdminProfile, SellerProfile
from api.v1.dependencies import get_product_service
from api.v1.schemas.common import ErrorResponse
from api.v1.schemas.product import (
    ProductCreate,
    ProductDetailResponse,
    ProductListResponse,
    ProductResponse,
)
from core.rate_limit import limiter
from domain.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["products"])


@router.get(
    "",
    response_model=ProductListResponse,
    summary="List approved products",
)
@limiter.limit("60/minute")  # type: ignore[untyped-decorator]
async def list_products(
    request: Request,
    service: ProductService = Depends(get_product_service),
) -> ProductListResponse:
    """Public catalogue: only approved products are listed."""
    products = await service.list_approved()
    return ProductListResponse(data=[ProductResponse.model_validate(p) for p in products])


@router.get(
    "/mine",
    response_model=ProductListResponse,
    summary="List the seller's own products",
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_my_products(
    request: Request,
    seller: SellerProfile,
    service: ProductService = Depends(get_product_service),
) -> ProductListResponse:
    products = await service.list_for_seller(seller.id)
    return ProductListResponse(data=[ProductResponse.model_validate(p) for p in products])


@router.get(
    "/pending",
    response_model=ProductListResponse,
    summary="List products awaiting review",
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_pending_products(
    request: Request,
    admin: AdminProfile,
    service: ProductService = Depends(get_product_service),
) -> ProductListResponse:
    products = await service.list_pending()
    return ProductListResponse(data=[ProductResponse.model_validate(p) for p in products])


@router.get(
    "/{product_id}",
    response_model=ProductDetailResponse,
    summary="Get a product",
    responses={404: {"model": ErrorResponse, "description": "Product not found"}},
)
@limiter.limit("60/minute")  # type: ignore[untyped-decorator]
async def get_product(
    request: Request,
    product_id: UUID,
    service: ProductService = Depends(get_product_service),
) -> ProductDetailResponse:
    product = await service.get(product_id)
    return ProductDetailResponse(data=ProductResponse.model_validate(product))


@router.post(
    "",
    response_model=ProductDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="List a product for sale",
    responses={
        201: {"description": "Product submitted for review"},
        403: {"model": ErrorResponse, "description": "Caller is not a seller"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def create_product(
    request: Request,
    body: ProductCreate,
    seller: SellerProfile,
    service: ProductService = Depends(get_product_service),
) -> ProductDetailResponse:
    """Submit a product. It stays pending until an admin approves it."""
    product = await service.create(
        seller=seller,
        name=body.name,
        price=body.price,
        description=body.description,
        category=body.category,
        images=body.images,
    )
    return ProductDetailResponse(data=ProductResponse.model_validate(product))


@router.post(
    "/{product_id}/approve",
    response_model=ProductDetailResponse,
    summary="Approve a pending product",
    responses={
        404: {"model": ErrorResponse, "description": "Product not found"},
        400: {"model": ErrorResponse, "description": "Product is not pending"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def approve_product(
    request: Request,
    product_id: UUID,
    admin: AdminProfile,
    service: ProductService = Depends(get_product_service),
) -> ProductDetailResponse:
    product = await service.approve(product_id)
    return ProductDetailResponse(data=ProductResponse.model_validate(product))


@router.post(
    "/{product_id}/reject",
    response_model=ProductDetailResponse,
    summary="Reject a pending product",
    responses={
        404: {"model": ErrorResponse, "description": "Product not found"},
        400: {"model": ErrorResponse, "description": "Product is not pending"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def reject_product(
    request: Request,
    product_id: UUID,
    admin: AdminProfile,
    service: ProductService = Depends(get_product_service),
) -> ProductDetailResponse:
    product = await service.reject(product_id)
    return ProductDetailResponse(data=ProductResponse.model_validate(product))
