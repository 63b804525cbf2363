"""Product repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.product import Product, ProductStatus


class IProductRepository(Protocol):
    """Repository interface for Product entities."""

    async def get(self, id: UUID) -> Product | None:
        """Get a product by ID."""
        ...

    async def list_by_status(self, status: ProductStatus) -> list[Product]:
        """Get all products with the given status, newest first."""
        ...

    async def list_for_seller(self, seller_id: UUID) -> list[Product]:
        """Get all products listed by a seller."""
        ...

    async def create(self, product: Product) -> Product:
        """Create a new product."""
        ...

    async def update(self, product: Product) -> Product:
        """Update an existing product."""
        ...
