"""In-memory holder of the current session and profile.

The store has a single writer (``ProfileSync`` and ``AuthService``) and any
number of readers, which observe immutable ``SessionSnapshot`` values.

State machine::

    UNAUTHENTICATED -> AUTHENTICATING -> AUTHENTICATED_NO_PROFILE
        -> PROFILE_LOADING -> PROFILE_READY
                           \\-> PROFILE_ERROR

Every new session bumps ``generation``. Writes tagged with an older
generation are dropped, so results of requests issued for a previous
session never land in the current one.
"""

from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import StrEnum

import structlog

from core.exceptions import ProfileError
from domain.entities.principal import AuthSession, Principal
from domain.entities.profile import Profile, UserRole

logger = structlog.get_logger()


class AuthState(StrEnum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED_NO_PROFILE = "authenticated_no_profile"
    PROFILE_LOADING = "profile_loading"
    PROFILE_READY = "profile_ready"
    PROFILE_ERROR = "profile_error"


_AUTHENTICATED_STATES = frozenset(
    {
        AuthState.AUTHENTICATED_NO_PROFILE,
        AuthState.PROFILE_LOADING,
        AuthState.PROFILE_READY,
        AuthState.PROFILE_ERROR,
    }
)


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of the store at one point in time."""

    state: AuthState = AuthState.UNAUTHENTICATED
    session: AuthSession | None = None
    profile: Profile | None = None
    error: ProfileError | None = None
    generation: int = 0

    @property
    def principal(self) -> Principal | None:
        return self.session.principal if self.session else None

    @property
    def is_authenticated(self) -> bool:
        return self.state in _AUTHENTICATED_STATES

    @property
    def role(self) -> UserRole | None:
        return self.profile.role if self.profile else None

    @property
    def is_settling(self) -> bool:
        """True while a decision about the user is still pending."""
        return self.state in (
            AuthState.AUTHENTICATING,
            AuthState.AUTHENTICATED_NO_PROFILE,
            AuthState.PROFILE_LOADING,
        )


SnapshotListener = Callable[[SessionSnapshot], None]


class SessionStore:
    """Holds the current ``SessionSnapshot`` and notifies listeners on change."""

    def __init__(self) -> None:
        self._snapshot = SessionSnapshot()
        self._listeners: list[SnapshotListener] = []

    @property
    def snapshot(self) -> SessionSnapshot:
        return self._snapshot

    @property
    def generation(self) -> int:
        return self._snapshot.generation

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # --- Writers ---

    def begin_authenticating(self) -> None:
        if self._snapshot.state == AuthState.UNAUTHENTICATED:
            self._publish(replace(self._snapshot, state=AuthState.AUTHENTICATING))

    def abort_authenticating(self) -> None:
        if self._snapshot.state == AuthState.AUTHENTICATING:
            self._publish(replace(self._snapshot, state=AuthState.UNAUTHENTICATED))

    def set_session(self, session: AuthSession) -> int:
        """Install ``session`` and return its generation.

        A refreshed token for the principal already signed in keeps the
        current generation and profile.
        """
        current = self._snapshot
        if current.session and current.session.principal.id == session.principal.id:
            self._publish(replace(current, session=session))
            return current.generation

        generation = current.generation + 1
        self._publish(
            SessionSnapshot(
                state=AuthState.AUTHENTICATED_NO_PROFILE,
                session=session,
                generation=generation,
            )
        )
        return generation

    def mark_profile_loading(self, generation: int) -> bool:
        if not self._is_current(generation):
            return False
        self._publish(replace(self._snapshot, state=AuthState.PROFILE_LOADING, error=None))
        return True

    def set_profile(self, generation: int, profile: Profile) -> bool:
        if not self._is_current(generation):
            return False
        self._publish(
            replace(self._snapshot, state=AuthState.PROFILE_READY, profile=profile, error=None)
        )
        return True

    def set_profile_error(self, generation: int, error: ProfileError) -> bool:
        if not self._is_current(generation):
            return False
        self._publish(
            replace(self._snapshot, state=AuthState.PROFILE_ERROR, profile=None, error=error)
        )
        return True

    def clear(self) -> None:
        """Drop session and profile; pending writes become stale."""
        self._publish(SessionSnapshot(generation=self._snapshot.generation + 1))

    # --- Internals ---

    def _is_current(self, generation: int) -> bool:
        current = self._snapshot
        if generation != current.generation or current.session is None:
            logger.debug(
                "session_store_stale_write_dropped",
                generation=generation,
                current_generation=current.generation,
            )
            return False
        return True

    def _publish(self, snapshot: SessionSnapshot) -> None:
        self._snapshot = snapshot
        for listener in list(self._listeners):
            listener(snapshot)
