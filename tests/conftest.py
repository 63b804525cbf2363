"""Pytest configuration and fixtures."""

import os
from collections.abc import AsyncGenerator, Callable
from typing import Any
from uuid import uuid4

# Disable rate limiting in tests
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.pool import StaticPool

from domain.entities.principal import Principal
from infrastructure.auth.jwt_provider import JWTAuthProvider
from infrastructure.database.models import Base
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork


# Compile JSONB as JSON for SQLite (used in tests)
@compiles(JSONB, "sqlite")
def _compile_jsonb_sqlite(type_: Any, compiler: Any, **kw: Any) -> str:
    return "JSON"


# Test database URL (SQLite in memory)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh in-memory database with all tables."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create session factory."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def uow_factory(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[[], SQLAlchemyUnitOfWork]:
    """UoW factory bound to the test database."""

    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(session_factory)

    return factory


# --- Principals ---


@pytest.fixture
def buyer_principal() -> Principal:
    return Principal(
        id=uuid4(),
        email="buyer@example.com",
        metadata={"name": "Bina Buyer", "role": "buyer"},
    )


@pytest.fixture
def seller_principal() -> Principal:
    return Principal(
        id=uuid4(),
        email="farmer@example.com",
        metadata={"name": "Farmer Singh", "role": "seller"},
    )


@pytest.fixture
def admin_principal() -> Principal:
    return Principal(
        id=uuid4(),
        email="admin@example.com",
        metadata={"name": "Ada Admin", "role": "admin"},
    )


@pytest.fixture
def auth_provider() -> JWTAuthProvider:
    """Create auth provider for testing."""
    return JWTAuthProvider(
        secret_key="test-secret-key",
        algorithm="HS256",
        expire_minutes=30,
    )


@pytest.fixture
def auth_headers(auth_provider: JWTAuthProvider, buyer_principal: Principal) -> dict[str, str]:
    """Authorization headers for the buyer."""
    return {"Authorization": f"Bearer {auth_provider.create_token(buyer_principal)}"}


# --- HTTP clients ---


class ActingAs:
    """Dependency override returning whichever principal a test switches to."""

    def __init__(self, principal: Principal) -> None:
        self.principal = principal

    async def __call__(self) -> Principal:
        return self.principal


@pytest.fixture
def acting_as(buyer_principal: Principal) -> ActingAs:
    return ActingAs(buyer_principal)


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create async test client (no auth)."""
    from main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
async def authenticated_client(
    uow_factory: Callable[[], SQLAlchemyUnitOfWork],
    acting_as: ActingAs,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create authenticated test client with database and auth overrides.

    This client:
    - Uses an in-memory SQLite database
    - Authenticates as ``acting_as.principal`` (switchable mid-test)
    - Lets profiles self-heal from the principal's metadata on first request
    """
    from api.dependencies.auth import get_current_principal
    from api.v1.dependencies import get_order_service, get_product_service, get_profile_sync
    from domain.services.notifier import Notifier
    from domain.services.order_service import OrderService
    from domain.services.product_service import ProductService
    from domain.services.profile_sync import ProfileSync
    from domain.services.session_store import SessionStore
    from main import create_app

    app = create_app()

    profile_sync = ProfileSync(store=SessionStore(), uow_factory=uow_factory, notifier=Notifier())
    product_service = ProductService(uow_factory)
    order_service = OrderService(uow_factory)

    app.dependency_overrides[get_current_principal] = acting_as
    app.dependency_overrides[get_profile_sync] = lambda: profile_sync
    app.dependency_overrides[get_product_service] = lambda: product_service
    app.dependency_overrides[get_order_service] = lambda: order_service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
