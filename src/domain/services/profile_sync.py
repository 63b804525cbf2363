"""Reconciles the authenticated principal with its application profile."""

import asyncio
from collections.abc import Callable

import structlog

from core.exceptions import (
    ProfileConflictError,
    ProfileCreateError,
    ProfileError,
    ProfileFetchError,
)
from domain.entities.principal import AuthSession, Principal
from domain.entities.profile import Profile, UserRole, parse_role
from domain.repositories.auth_gateway import IAuthGateway, SessionEvent, Unsubscribe
from domain.repositories.profile_repository import (
    ProfileFetchFailed,
    ProfileFetchResult,
    ProfileFound,
    ProfileInsertConflict,
    ProfileInserted,
    ProfileInsertFailed,
    ProfileInsertResult,
    ProfileNotFound,
)
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.notifier import Notifier
from domain.services.session_store import AuthState, SessionSnapshot, SessionStore

logger = structlog.get_logger()

DEFAULT_RESTORE_TIMEOUT_SECONDS = 5.0


def synthesize_profile(principal: Principal, default_role: UserRole = UserRole.BUYER) -> Profile:
    """Build a profile for ``principal`` from its identity metadata."""
    name = principal.display_name or principal.email.split("@", 1)[0]
    return Profile(
        id=principal.id,
        email=principal.email,
        name=name,
        role=parse_role(principal.requested_role, default_role),
    )


class ProfileSync:
    """Keeps the ``SessionStore`` profile in line with the session.

    ``resolve`` is the stateless core (fetch, self-heal on absence) and is
    also used server-side. ``load`` wraps it with store transitions and user
    notifications. Session-change events from the gateway are handled by
    ``handle_session_change``, which defers the actual fetch to the next
    loop iteration.
    """

    def __init__(
        self,
        store: SessionStore,
        uow_factory: Callable[[], IUnitOfWork],
        notifier: Notifier,
        gateway: IAuthGateway | None = None,
        default_role: UserRole = UserRole.BUYER,
        restore_timeout: float = DEFAULT_RESTORE_TIMEOUT_SECONDS,
    ) -> None:
        self._store = store
        self._uow_factory = uow_factory
        self._notifier = notifier
        self._gateway = gateway
        self._default_role = default_role
        self._restore_timeout = restore_timeout
        self._tasks: set[asyncio.Task[Profile | None]] = set()
        self._scheduled = 0
        self._unsubscribe: Unsubscribe | None = None
        self._started = False

    # --- Lifecycle ---

    async def start(self) -> SessionSnapshot:
        """Wire the session listener and resume a persisted session once.

        Settles within ``restore_timeout`` seconds; a failed or slow resume
        leaves the store unauthenticated.
        """
        if self._started:
            return self._store.snapshot
        self._started = True

        if self._gateway is None:
            return self._store.snapshot

        self._unsubscribe = self._gateway.on_session_change(self.handle_session_change)

        self._store.begin_authenticating()
        session: AuthSession | None = None
        try:
            session = await asyncio.wait_for(
                self._gateway.get_session(), timeout=self._restore_timeout
            )
        except TimeoutError:
            logger.warning("session_restore_timed_out", timeout=self._restore_timeout)
        except Exception as exc:
            logger.warning("session_restore_failed", error=str(exc))

        if session is None:
            self._store.abort_authenticating()
        elif self._store.snapshot.session is None:
            # The listener may already have delivered this session.
            self._accept_session(session)

        return self._store.snapshot

    async def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def drain(self) -> None:
        """Wait until every scheduled profile load has finished."""
        while self._scheduled or self._tasks:
            await asyncio.sleep(0)
            if self._tasks:
                await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # --- Session events ---

    def handle_session_change(self, event: SessionEvent, session: AuthSession | None) -> None:
        """Gateway callback. Never does I/O inline."""
        logger.info("session_changed", session_event=event.value)
        if event == SessionEvent.SIGNED_OUT or session is None:
            self._store.clear()
            return
        self._accept_session(session)

    def _accept_session(self, session: AuthSession) -> None:
        previous = self._store.snapshot
        generation = self._store.set_session(session)
        if previous.session is not None and generation == previous.generation:
            # Token refresh for the same principal.
            return
        self.schedule_load(session.principal, generation)

    def schedule_load(self, principal: Principal, generation: int) -> None:
        """Queue a profile load for the next loop turn."""
        loop = asyncio.get_running_loop()
        self._scheduled += 1
        loop.call_soon(self._spawn_load, principal, generation)

    def _spawn_load(self, principal: Principal, generation: int) -> None:
        self._scheduled -= 1
        task = asyncio.create_task(self._run_load(principal, generation))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_load(self, principal: Principal, generation: int) -> Profile | None:
        try:
            return await self.load(principal, generation)
        except ProfileError:
            # Already published to the store and the notifier by ``load``.
            return None

    def retry(self) -> bool:
        """Re-run the profile load after an error. Returns False if nothing to retry."""
        snapshot = self._store.snapshot
        if snapshot.state != AuthState.PROFILE_ERROR or snapshot.principal is None:
            return False
        # Leaves PROFILE_ERROR at once so a second retry is refused.
        self._store.mark_profile_loading(snapshot.generation)
        self.schedule_load(snapshot.principal, snapshot.generation)
        return True

    # --- Profile loading ---

    async def load(self, principal: Principal, generation: int) -> Profile | None:
        """Resolve the profile and publish it into the store.

        Returns None when the session changed before the load finished.
        Raises ``ProfileError`` after publishing the error state.
        """
        if not self._store.mark_profile_loading(generation):
            return None
        try:
            profile = await self.resolve(principal)
        except ProfileError as exc:
            self._publish_error(generation, exc)
            raise
        except Exception as exc:
            logger.exception("profile_load_failed", principal_id=str(principal.id))
            error = ProfileFetchError(str(principal.id), str(exc) or type(exc).__name__)
            self._publish_error(generation, error)
            raise error from exc
        if not self._store.set_profile(generation, profile):
            return None
        return profile

    def _publish_error(self, generation: int, error: ProfileError) -> None:
        if self._store.set_profile_error(generation, error):
            self._notifier.error("Could not load your profile", error.message)

    async def resolve(self, principal: Principal) -> Profile:
        """Fetch the profile of ``principal``, creating it when absent."""
        result = await self.fetch(principal)
        match result:
            case ProfileFound(profile=profile):
                return profile
            case ProfileFetchFailed(reason=reason):
                logger.warning(
                    "profile_fetch_failed", principal_id=str(principal.id), reason=reason
                )
                raise ProfileFetchError(str(principal.id), reason)
        return await self._self_heal(principal)

    async def fetch(self, principal: Principal) -> ProfileFetchResult:
        async with self._uow_factory() as uow:
            return await uow.profiles.fetch(principal.id)

    async def insert(self, profile: Profile) -> ProfileInsertResult:
        async with self._uow_factory() as uow:
            result = await uow.profiles.insert(profile)
            if isinstance(result, ProfileInserted):
                await uow.commit()
            return result

    async def _self_heal(self, principal: Principal) -> Profile:
        profile = synthesize_profile(principal, self._default_role)
        logger.info(
            "profile_self_heal_started",
            principal_id=str(principal.id),
            role=profile.role.value,
        )
        result = await self.insert(profile)
        match result:
            case ProfileInserted(profile=created):
                return created
            case ProfileInsertFailed(reason=reason):
                raise ProfileCreateError(str(principal.id), reason)
            case ProfileInsertConflict(reason=reason):
                logger.info(
                    "profile_insert_conflict", principal_id=str(principal.id), reason=reason
                )

        # Another path (sign-up, a database trigger) may have created it.
        refetched = await self.fetch(principal)
        match refetched:
            case ProfileFound(profile=existing):
                return existing
            case ProfileFetchFailed(reason=reason):
                raise ProfileFetchError(str(principal.id), reason)
        raise ProfileConflictError(str(principal.id))
