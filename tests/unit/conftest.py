"""Shared fixtures for unit tests."""

from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest

from domain.entities.principal import AuthSession, Principal
from domain.entities.product import Product, ProductStatus
from domain.entities.profile import Profile, UserRole


class FakeUnitOfWork:
    """Fake Unit of Work with all 3 repository mocks for unit testing."""

    def __init__(self) -> None:
        self.profiles = AsyncMock()
        self.products = AsyncMock()
        self.orders = AsyncMock()
        self.commits = 0
        self.rolled_back = False

    @property
    def committed(self) -> bool:
        return self.commits > 0

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        self.rolled_back = True

    async def __aenter__(self) -> "FakeUnitOfWork":
        return self

    async def __aexit__(self, *args: Any) -> None:
        pass


@pytest.fixture
def uow() -> FakeUnitOfWork:
    """Create a fresh FakeUnitOfWork."""
    return FakeUnitOfWork()


@pytest.fixture
def user_id() -> UUID:
    """A random user ID."""
    return uuid4()


@pytest.fixture
def seller_id() -> UUID:
    """A random seller ID (distinct from user_id)."""
    return uuid4()


def make_principal(
    principal_id: UUID | None = None,
    email: str = "alex@example.com",
    **metadata: Any,
) -> Principal:
    return Principal(id=principal_id or uuid4(), email=email, metadata=metadata)


def make_session(principal: Principal | None = None, token: str = "access-token") -> AuthSession:
    return AuthSession(
        principal=principal or make_principal(),
        access_token=token,
        refresh_token="refresh-token",
    )


def make_profile(principal: Principal, role: UserRole = UserRole.BUYER) -> Profile:
    return Profile(id=principal.id, email=principal.email, name="Alex", role=role)


def make_product(
    price: str = "10.00",
    seller_id: UUID | None = None,
    status: ProductStatus = ProductStatus.APPROVED,
) -> Product:
    return Product(
        seller_id=seller_id or uuid4(),
        name="Tomatoes",
        price=Decimal(price),
        seller_name="Farmer Singh",
        status=status,
    )
