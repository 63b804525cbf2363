"""Product service layer: listings and the admin approval workflow."""

from collections.abc import Callable
from decimal import Decimal
from uuid import UUID

import structlog

from core.exceptions import InvalidProductStatusError, ProductNotFoundError
from domain.entities.product import Product, ProductStatus
from domain.entities.profile import Profile
from domain.repositories.unit_of_work import IUnitOfWork

logger = structlog.get_logger()


class ProductService:
    """Service layer for Product business logic.

    Role checks happen at the API boundary; this layer enforces the
    listing lifecycle (new listings start pending, only pending listings
    can be approved or rejected).
    """

    def __init__(self, uow_factory: Callable[[], IUnitOfWork]) -> None:
        self._uow_factory = uow_factory

    async def list_approved(self) -> list[Product]:
        """Products visible to buyers."""
        async with self._uow_factory() as uow:
            return await uow.products.list_by_status(ProductStatus.APPROVED)  # type: ignore[no-any-return]

    async def list_pending(self) -> list[Product]:
        """Products awaiting admin review."""
        async with self._uow_factory() as uow:
            return await uow.products.list_by_status(ProductStatus.PENDING)  # type: ignore[no-any-return]

    async def list_for_seller(self, seller_id: UUID) -> list[Product]:
        async with self._uow_factory() as uow:
            return await uow.products.list_for_seller(seller_id)  # type: ignore[no-any-return]

    async def get(self, product_id: UUID) -> Product:
        async with self._uow_factory() as uow:
            product = await uow.products.get(product_id)
        if not product:
            raise ProductNotFoundError(str(product_id))
        return product

    async def create(
        self,
        seller: Profile,
        name: str,
        price: Decimal,
        description: str = "",
        category: str = "",
        images: list[str] | None = None,
    ) -> Product:
        """List a new product for review."""
        product = Product(
            seller_id=seller.id,
            seller_name=seller.name,
            name=name,
            price=price,
            description=description,
            category=category,
            images=images or [],
        )
        async with self._uow_factory() as uow:
            created = await uow.products.create(product)
            await uow.commit()
        logger.info("product_submitted", product_id=str(created.id), seller_id=str(seller.id))
        return created

    async def approve(self, product_id: UUID) -> Product:
        return await self._review(product_id, ProductStatus.APPROVED)

    async def reject(self, product_id: UUID) -> Product:
        return await self._review(product_id, ProductStatus.REJECTED)

    async def _review(self, product_id: UUID, target: ProductStatus) -> Product:
        async with self._uow_factory() as uow:
            product = await uow.products.get(product_id)
            if not product:
                raise ProductNotFoundError(str(product_id))
            if product.status != ProductStatus.PENDING:
                raise InvalidProductStatusError(str(product_id), product.status.value, target.value)
            product.set_status(target)
            updated = await uow.products.update(product)
            await uow.commit()
        logger.info("product_reviewed", product_id=str(product_id), status=target.value)
        return updated
