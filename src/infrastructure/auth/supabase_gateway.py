"""Supabase GoTrue implementation of the auth gateway.

Talks to ``{SUPABASE_URL}/auth/v1`` over httpx and keeps the session in a
``FileTokenStore`` so a restarted client can resume it. Session transitions
are pushed to listeners synchronously, the way supabase-js does.
"""

from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

import httpx
import structlog

from core.config import settings
from core.exceptions import InvalidCredentialsError, NetworkError, RegistrationFailedError
from domain.entities.principal import AuthSession, Principal
from domain.repositories.auth_gateway import SessionEvent, SessionListener, Unsubscribe
from infrastructure.auth.jwt_provider import read_expiry
from infrastructure.auth.token_store import FileTokenStore

logger = structlog.get_logger()

# Refresh a little before the provider would reject the token.
EXPIRY_MARGIN = timedelta(seconds=30)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if not isinstance(body, dict):
        return str(body)
    return (
        body.get("msg")
        or body.get("error_description")
        or body.get("message")
        or body.get("error")
        or f"HTTP {response.status_code}"
    )


def _principal_from_user(user: dict[str, Any]) -> Principal:
    return Principal(
        id=UUID(user["id"]),
        email=user.get("email") or "",
        metadata=dict(user.get("user_metadata") or {}),
    )


def _session_from_payload(payload: dict[str, Any]) -> AuthSession:
    access_token = payload["access_token"]
    expires_at: datetime | None = None
    if payload.get("expires_at"):
        expires_at = datetime.utcfromtimestamp(int(payload["expires_at"]))
    elif payload.get("expires_in"):
        expires_at = datetime.utcnow() + timedelta(seconds=int(payload["expires_in"]))
    else:
        expires_at = read_expiry(access_token)
    return AuthSession(
        principal=_principal_from_user(payload["user"]),
        access_token=access_token,
        refresh_token=payload.get("refresh_token"),
        expires_at=expires_at,
    )


class SupabaseAuthGateway:
    """IAuthGateway backed by Supabase GoTrue."""

    def __init__(
        self,
        token_store: FileTokenStore,
        supabase_url: str = settings.supabase_url,
        anon_key: str = settings.supabase_anon_key,
        timeout: float = settings.http_timeout_seconds,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._store = token_store
        self._anon_key = anon_key
        self._client = httpx.AsyncClient(
            base_url=f"{supabase_url.rstrip('/')}/auth/v1",
            headers={"apikey": anon_key, "Authorization": f"Bearer {anon_key}"},
            timeout=timeout,
            transport=transport,
        )
        self._listeners: list[SessionListener] = []
        self._session: AuthSession | None = None

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "SupabaseAuthGateway":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    @property
    def current_session(self) -> AuthSession | None:
        return self._session

    # --- Listeners ---

    def on_session_change(self, listener: SessionListener) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: SessionEvent, session: AuthSession | None) -> None:
        for listener in list(self._listeners):
            listener(event, session)

    # --- Operations ---

    async def authenticate(self, email: str, password: str) -> AuthSession:
        response = await self._post(
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        if response.status_code in (400, 401, 422):
            raise InvalidCredentialsError(_error_message(response))
        self._raise_for_upstream(response)

        session = _session_from_payload(response.json())
        self._install(session)
        logger.info("gotrue_signed_in", principal_id=str(session.principal.id))
        self._emit(SessionEvent.SIGNED_IN, session)
        return session

    async def register_principal(
        self, email: str, password: str, metadata: dict[str, Any]
    ) -> Principal:
        response = await self._post(
            "/signup",
            json={"email": email, "password": password, "data": metadata},
        )
        if 400 <= response.status_code < 500:
            raise RegistrationFailedError(_error_message(response))
        self._raise_for_upstream(response)

        payload = response.json()
        if "access_token" in payload:
            # Email confirmation is off: sign-up also signs in.
            session = _session_from_payload(payload)
            self._install(session)
            self._emit(SessionEvent.SIGNED_IN, session)
            return session.principal
        user = payload.get("user") or payload
        return _principal_from_user(user)

    async def get_session(self) -> AuthSession | None:
        session = self._session or self._store.load()
        if session is None:
            return None

        if session.expires_at and session.is_expired(datetime.utcnow() + EXPIRY_MARGIN):
            session = await self._refresh(session)
            if session is None:
                return None
        else:
            self._session = session

        self._emit(SessionEvent.INITIAL_SESSION, session)
        return session

    async def sign_out(self) -> None:
        session = self._session
        self._session = None
        self._store.clear()
        try:
            if session is not None:
                response = await self._post(
                    "/logout",
                    headers={"Authorization": f"Bearer {session.access_token}"},
                )
                # 401/404: the token is already gone server-side
                if response.status_code not in (401, 403, 404):
                    self._raise_for_upstream(response)
        finally:
            self._emit(SessionEvent.SIGNED_OUT, None)

    # --- Internals ---

    async def _refresh(self, session: AuthSession) -> AuthSession | None:
        if not session.refresh_token:
            self._drop()
            return None
        response = await self._post(
            "/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": session.refresh_token},
        )
        if 400 <= response.status_code < 500:
            logger.info("gotrue_refresh_rejected", status_code=response.status_code)
            self._drop()
            return None
        self._raise_for_upstream(response)

        refreshed = _session_from_payload(response.json())
        self._install(refreshed)
        self._emit(SessionEvent.TOKEN_REFRESHED, refreshed)
        return refreshed

    def _install(self, session: AuthSession) -> None:
        self._session = session
        self._store.save(session)

    def _drop(self) -> None:
        self._session = None
        self._store.clear()

    async def _post(self, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._client.post(path, **kwargs)
        except httpx.TransportError as exc:
            logger.warning("gotrue_unreachable", path=path, error=str(exc))
            raise NetworkError(f"Could not reach the auth server: {exc}") from exc

    @staticmethod
    def _raise_for_upstream(response: httpx.Response) -> None:
        if response.status_code >= 400:
            raise NetworkError(
                f"Auth server error ({response.status_code}): {_error_message(response)}"
            )
