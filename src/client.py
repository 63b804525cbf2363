"""Client core composition root.

Wires the session lifecycle, cart, checkout, routing and realtime feed for
one signed-in user of the marketplace::

    async with MarketplaceClient.from_settings() as client:
        await client.auth.sign_in(email, password)
        await client.profile_sync.drain()
        client.cart.add(product)
        order = await client.checkout("12 Farm Road")
"""

from collections.abc import Callable
from typing import Any

import structlog

from core.config import Settings, get_settings
from core.exceptions import AuthenticationError, ProfileNotReadyError
from domain.entities.order import Order
from domain.entities.profile import parse_role
from domain.repositories.realtime import ChangeCallback, Subscription
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.auth_service import AuthService
from domain.services.cart_service import CartStore
from domain.services.notifier import Notifier
from domain.services.order_service import OrderService
from domain.services.product_service import ProductService
from domain.services.profile_sync import ProfileSync
from domain.services.routing import RoleRouter, RouteDecision
from domain.services.session_store import AuthState, SessionSnapshot, SessionStore
from infrastructure.auth.supabase_gateway import SupabaseAuthGateway
from infrastructure.auth.token_store import FileTokenStore
from infrastructure.realtime.supabase_realtime import SupabaseRealtimeClient

logger = structlog.get_logger()


class MarketplaceClient:
    """Owns the client-side services and their lifecycle."""

    def __init__(
        self,
        gateway: SupabaseAuthGateway,
        uow_factory: Callable[[], IUnitOfWork],
        realtime: SupabaseRealtimeClient | None = None,
        settings: Settings | None = None,
    ) -> None:
        settings = settings or get_settings()
        self.gateway = gateway
        self.realtime = realtime
        self.notifier = Notifier()
        self.store = SessionStore()
        self.profile_sync = ProfileSync(
            store=self.store,
            uow_factory=uow_factory,
            notifier=self.notifier,
            gateway=gateway,
            default_role=parse_role(settings.default_role),
            restore_timeout=settings.session_restore_timeout_seconds,
        )
        self.auth = AuthService(gateway, self.store, self.profile_sync, self.notifier)
        self.cart = CartStore()
        self.orders = OrderService(
            uow_factory,
            notifier=self.notifier,
            delivery_days=settings.delivery_estimate_days,
        )
        self.products = ProductService(uow_factory)
        self.router = RoleRouter()
        self._unsubscribe_store: Callable[[], None] | None = None

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "MarketplaceClient":
        """Build a client talking to the configured Supabase project."""
        from infrastructure.database.session import async_session_factory
        from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork

        settings = settings or get_settings()
        gateway = SupabaseAuthGateway(
            FileTokenStore(settings.session_file),
            supabase_url=settings.supabase_url,
            anon_key=settings.supabase_anon_key,
            timeout=settings.http_timeout_seconds,
        )
        realtime = SupabaseRealtimeClient(
            url=settings.supabase_realtime_url,
            api_key=settings.supabase_anon_key,
        )
        return cls(
            gateway=gateway,
            uow_factory=lambda: SQLAlchemyUnitOfWork(async_session_factory),
            realtime=realtime,
            settings=settings,
        )

    @property
    def snapshot(self) -> SessionSnapshot:
        return self.store.snapshot

    # --- Lifecycle ---

    async def start(self) -> SessionSnapshot:
        if self.realtime is not None and self._unsubscribe_store is None:
            self._unsubscribe_store = self.store.subscribe(self._sync_realtime_token)
            await self.realtime.start()
        snapshot = await self.auth.start()
        logger.info("client_started", state=snapshot.state.value)
        return snapshot

    async def close(self) -> None:
        await self.auth.close()
        if self._unsubscribe_store is not None:
            self._unsubscribe_store()
            self._unsubscribe_store = None
        if self.realtime is not None:
            await self.realtime.stop()
        await self.gateway.aclose()

    async def __aenter__(self) -> "MarketplaceClient":
        await self.start()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    # --- Operations ---

    def route(self, path: str) -> RouteDecision:
        return self.router.resolve(self.store.snapshot, path)

    async def checkout(self, shipping_address: str) -> Order:
        """Submit the cart for the signed-in buyer."""
        snapshot = self.store.snapshot
        if snapshot.principal is None:
            raise AuthenticationError("Sign in to place an order")
        if snapshot.state != AuthState.PROFILE_READY:
            raise ProfileNotReadyError(str(snapshot.principal.id))
        return await self.orders.checkout(self.cart, snapshot.principal.id, shipping_address)

    def watch_my_orders(self, callback: ChangeCallback) -> Subscription:
        """Follow status changes of the signed-in buyer's orders."""
        principal = self.store.snapshot.principal
        if self.realtime is None or principal is None:
            raise AuthenticationError("Sign in to follow orders")
        return self.realtime.subscribe("orders", f"buyer_id=eq.{principal.id}", callback)

    def _sync_realtime_token(self, snapshot: SessionSnapshot) -> None:
        if self.realtime is None:
            return
        session = snapshot.session
        self.realtime.set_access_token(session.access_token if session else None)
