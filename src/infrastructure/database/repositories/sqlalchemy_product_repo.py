"""SQLAlchemy implementation of Product repository."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.product import Product, ProductStatus
from infrastructure.database.models import ProductModel


class SQLAlchemyProductRepository:
    """SQLAlchemy implementation of IProductRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> Product | None:
        """Get a product by ID."""
        stmt = select(ProductModel).where(ProductModel.id == id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def list_by_status(self, status: ProductStatus) -> list[Product]:
        """Get all products with the given status, newest first."""
        stmt = (
            select(ProductModel)
            .where(ProductModel.status == status.value)
            .order_by(ProductModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def list_for_seller(self, seller_id: UUID) -> list[Product]:
        """Get all products listed by a seller."""
        stmt = (
            select(ProductModel)
            .where(ProductModel.seller_id == seller_id)
            .order_by(ProductModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def create(self, product: Product) -> Product:
        """Create a new product."""
        model = self._to_model(product)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def update(self, product: Product) -> Product:
        """Update listing fields and status."""
        stmt = select(ProductModel).where(ProductModel.id == product.id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            raise ValueError(f"Product {product.id} not found")

        model.name = product.name
        model.description = product.description
        model.category = product.category
        model.price = product.price
        model.images = list(product.images)
        model.status = product.status.value
        model.updated_at = product.updated_at

        await self._session.flush()
        return self._to_entity(model)

    @staticmethod
    def _to_entity(model: ProductModel) -> Product:
        """Convert ORM model to domain entity."""
        return Product(
            id=model.id,
            seller_id=model.seller_id,
            seller_name=model.seller_name,
            name=model.name,
            description=model.description,
            category=model.category,
            price=model.price,
            images=list(model.images or []),
            status=ProductStatus(model.status),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    @staticmethod
    def _to_model(entity: Product) -> ProductModel:
        """Convert domain entity to ORM model."""
        return ProductModel(
            id=entity.id,
            seller_id=entity.seller_id,
            seller_name=entity.seller_name,
            name=entity.name,
            description=entity.description,
            category=entity.category,
            price=entity.price,
            images=list(entity.images),
            status=entity.status.value,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )
