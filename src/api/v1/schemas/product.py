"""Pydantic schemas for Product API."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from domain.entities.product import ProductStatus


class ProductCreate(BaseModel):
    """Schema for listing a Product."""

    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=5000)
    category: str = Field("", max_length=50)
    price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    images: list[str] = Field(default_factory=list, max_length=5)

    @field_validator("name", "category")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        return v.strip()


class ProductResponse(BaseModel):
    """Schema for Product response."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": "456e4567-e89b-12d3-a456-426614174000",
                "seller_id": "123e4567-e89b-12d3-a456-426614174000",
                "seller_name": "Farmer Singh",
                "name": "Fresh Organic Tomatoes",
                "description": "Locally grown organic tomatoes.",
                "category": "Vegetable",
                "price": "50.00",
                "images": [],
                "status": "approved",
                "created_at": "2026-01-28T10:00:00",
                "updated_at": "2026-01-28T10:00:00",
            }
        },
    )

    id: UUID
    seller_id: UUID
    seller_name: str
    name: str
    description: str
    category: str
    price: Decimal
    images: list[str]
    status: ProductStatus
    created_at: datetime
    updated_at: datetime


class ProductListResponse(BaseModel):
    """Schema for list of Products."""

    data: list[ProductResponse]


class ProductDetailResponse(BaseModel):
    """Wrapper for single Product response."""

    data: ProductResponse
