"""Unit tests for SupabaseAuthGateway against a mocked GoTrue server."""

from collections.abc import Callable
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any
from uuid import uuid4

import httpx
import pytest

from core.exceptions import InvalidCredentialsError, NetworkError, RegistrationFailedError
from domain.entities.principal import AuthSession
from domain.repositories.auth_gateway import SessionEvent
from infrastructure.auth.supabase_gateway import SupabaseAuthGateway
from infrastructure.auth.token_store import FileTokenStore
from tests.unit.conftest import make_principal

SUPABASE_URL = "https://example.supabase.co"

Handler = Callable[[httpx.Request], httpx.Response]


def _user(**metadata: Any) -> dict[str, Any]:
    return {"id": str(uuid4()), "email": "alex@example.com", "user_metadata": metadata}


def _token_payload(user: dict[str, Any] | None = None, token: str = "access-1") -> dict[str, Any]:
    return {
        "access_token": token,
        "refresh_token": "refresh-1",
        "expires_in": 3600,
        "user": user or _user(),
    }


@pytest.fixture
def token_store(tmp_path: Path) -> FileTokenStore:
    return FileTokenStore(tmp_path / "session.json")


@pytest.fixture
def make_gateway(token_store: FileTokenStore) -> Callable[[Handler], SupabaseAuthGateway]:
    def factory(handler: Handler) -> SupabaseAuthGateway:
        gateway = SupabaseAuthGateway(
            token_store,
            supabase_url=SUPABASE_URL,
            anon_key="anon-key",
            timeout=5,
            transport=httpx.MockTransport(handler),
        )
        return gateway

    return factory


def _record(gateway: SupabaseAuthGateway) -> list[tuple[SessionEvent, AuthSession | None]]:
    events: list[tuple[SessionEvent, AuthSession | None]] = []
    gateway.on_session_change(lambda event, session: events.append((event, session)))
    return events


class TestAuthenticate:
    async def test_success_saves_session_and_emits_signed_in(
        self, make_gateway, token_store: FileTokenStore
    ):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_token_payload(_user(name="Alex", role="buyer")))

        gateway = make_gateway(handler)
        events = _record(gateway)

        session = await gateway.authenticate("alex@example.com", "secret1")

        assert seen[0].url.path == "/auth/v1/token"
        assert seen[0].url.params["grant_type"] == "password"
        assert seen[0].headers["apikey"] == "anon-key"
        assert session.principal.display_name == "Alex"
        assert session.expires_at is not None
        assert events == [(SessionEvent.SIGNED_IN, session)]
        stored = token_store.load()
        assert stored is not None
        assert stored.access_token == "access-1"

    async def test_rejected_credentials(self, make_gateway, token_store: FileTokenStore):
        gateway = make_gateway(
            lambda request: httpx.Response(
                400,
                json={"error": "invalid_grant", "error_description": "Invalid login credentials"},
            )
        )
        events = _record(gateway)

        with pytest.raises(InvalidCredentialsError) as exc_info:
            await gateway.authenticate("alex@example.com", "wrong")

        assert exc_info.value.message == "Invalid login credentials"
        assert events == []
        assert token_store.load() is None

    async def test_server_error_is_a_network_error(self, make_gateway):
        gateway = make_gateway(lambda request: httpx.Response(503, text="unavailable"))

        with pytest.raises(NetworkError):
            await gateway.authenticate("alex@example.com", "secret1")

    async def test_unreachable_server(self, make_gateway):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        gateway = make_gateway(handler)

        with pytest.raises(NetworkError):
            await gateway.authenticate("alex@example.com", "secret1")


class TestRegisterPrincipal:
    async def test_sends_metadata_and_returns_principal(self, make_gateway):
        user = _user(name="Alex", role="seller")
        bodies: list[bytes] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(request.content)
            return httpx.Response(200, json=user)

        gateway = make_gateway(handler)
        events = _record(gateway)

        principal = await gateway.register_principal(
            "alex@example.com", "secret1", {"name": "Alex", "role": "seller"}
        )

        assert str(principal.id) == user["id"]
        assert principal.requested_role == "seller"
        assert b'"data"' in bodies[0]
        assert events == []

    async def test_sign_up_with_session_signs_in(self, make_gateway):
        gateway = make_gateway(lambda request: httpx.Response(200, json=_token_payload()))
        events = _record(gateway)

        principal = await gateway.register_principal("alex@example.com", "secret1", {})

        assert [event for event, _ in events] == [SessionEvent.SIGNED_IN]
        assert gateway.current_session is not None
        assert gateway.current_session.principal == principal

    async def test_already_registered(self, make_gateway):
        gateway = make_gateway(
            lambda request: httpx.Response(422, json={"msg": "User already registered"})
        )

        with pytest.raises(RegistrationFailedError, match="already registered"):
            await gateway.register_principal("alex@example.com", "secret1", {})


class TestGetSession:
    async def test_no_stored_session(self, make_gateway):
        gateway = make_gateway(lambda request: httpx.Response(500))

        assert await gateway.get_session() is None

    async def test_resumes_valid_stored_session(self, make_gateway, token_store: FileTokenStore):
        stored = AuthSession(
            principal=make_principal(),
            access_token="stored",
            refresh_token="r",
            expires_at=datetime.utcnow() + timedelta(hours=1),
        )
        token_store.save(stored)
        gateway = make_gateway(lambda request: httpx.Response(500))
        events = _record(gateway)

        session = await gateway.get_session()

        assert session is not None
        assert session.access_token == "stored"
        assert [event for event, _ in events] == [SessionEvent.INITIAL_SESSION]

    async def test_refreshes_expired_session(self, make_gateway, token_store: FileTokenStore):
        principal = make_principal()
        token_store.save(
            AuthSession(
                principal=principal,
                access_token="old",
                refresh_token="r",
                expires_at=datetime.utcnow() - timedelta(minutes=1),
            )
        )
        user = {"id": str(principal.id), "email": principal.email, "user_metadata": {}}
        gateway = make_gateway(
            lambda request: httpx.Response(200, json=_token_payload(user, token="new"))
        )
        events = _record(gateway)

        session = await gateway.get_session()

        assert session is not None
        assert session.access_token == "new"
        assert [event for event, _ in events] == [
            SessionEvent.TOKEN_REFRESHED,
            SessionEvent.INITIAL_SESSION,
        ]

    async def test_rejected_refresh_drops_session(
        self, make_gateway, token_store: FileTokenStore
    ):
        token_store.save(
            AuthSession(
                principal=make_principal(),
                access_token="old",
                refresh_token="r",
                expires_at=datetime.utcnow() - timedelta(minutes=1),
            )
        )
        gateway = make_gateway(lambda request: httpx.Response(400, json={"error": "invalid_grant"}))

        assert await gateway.get_session() is None
        assert token_store.load() is None


class TestSignOut:
    async def test_clears_and_emits_signed_out(self, make_gateway, token_store: FileTokenStore):
        gateway = make_gateway(lambda request: httpx.Response(200, json=_token_payload()))
        await gateway.authenticate("alex@example.com", "secret1")
        events = _record(gateway)

        await gateway.sign_out()

        assert events == [(SessionEvent.SIGNED_OUT, None)]
        assert gateway.current_session is None
        assert token_store.load() is None

    async def test_transport_failure_still_signs_out_locally(
        self, make_gateway, token_store: FileTokenStore
    ):
        calls = {"n": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["n"] += 1
            if request.url.path.endswith("/logout"):
                raise httpx.ConnectError("Connection refused", request=request)
            return httpx.Response(200, json=_token_payload())

        gateway = make_gateway(handler)
        await gateway.authenticate("alex@example.com", "secret1")
        events = _record(gateway)

        with pytest.raises(NetworkError):
            await gateway.sign_out()

        assert events == [(SessionEvent.SIGNED_OUT, None)]
        assert token_store.load() is None
        assert calls["n"] == 2

    async def test_expired_server_session_is_not_an_error(self, make_gateway):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/logout"):
                return httpx.Response(401)
            return httpx.Response(200, json=_token_payload())

        gateway = make_gateway(handler)
        await gateway.authenticate("alex@example.com", "secret1")

        await gateway.sign_out()

        assert gateway.current_session is None
