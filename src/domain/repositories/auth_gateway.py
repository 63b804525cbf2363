"""Auth backend protocol.

Implemented by the hosted auth provider adapter. Failures are raised as
``InvalidCredentialsError``, ``RegistrationFailedError`` or
``NetworkError`` from ``core.exceptions``.
"""

from collections.abc import Callable
from enum import StrEnum
from typing import Any, Protocol

from domain.entities.principal import AuthSession, Principal


class SessionEvent(StrEnum):
    """Session transitions pushed by the auth provider."""

    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"


SessionListener = Callable[[SessionEvent, AuthSession | None], None]
Unsubscribe = Callable[[], None]


class IAuthGateway(Protocol):
    """Interface to the hosted auth provider."""

    async def authenticate(self, email: str, password: str) -> AuthSession:
        """Sign in with email and password."""
        ...

    async def register_principal(
        self, email: str, password: str, metadata: dict[str, Any]
    ) -> Principal:
        """Register a new principal carrying identity metadata."""
        ...

    async def get_session(self) -> AuthSession | None:
        """Resume the persisted session, if any."""
        ...

    async def sign_out(self) -> None:
        """Invalidate the current session with the provider."""
        ...

    def on_session_change(self, listener: SessionListener) -> Unsubscribe:
        """Register a listener for session transitions."""
        ...
