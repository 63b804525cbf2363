"""Dependency injection factories for API v1."""

from functools import lru_cache

from api.dependencies.services import get_profile_sync, get_uow_factory
from core.config import settings
from domain.services.order_service import OrderService
from domain.services.product_service import ProductService

__all__ = ["get_order_service", "get_product_service", "get_profile_sync", "get_uow_factory"]


@lru_cache
def get_product_service() -> ProductService:
    """Get Product service instance."""
    return ProductService(get_uow_factory())


@lru_cache
def get_order_service() -> OrderService:
    """Get Order service instance."""
    return OrderService(get_uow_factory(), delivery_days=settings.delivery_estimate_days)
