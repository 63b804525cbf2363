"""Auth facade: sign-in, sign-up and sign-out for the client.

Failures are raised to the caller and also pushed to the notifier; callers
must branch on the exception, the notification is only for the user.
"""

import asyncio
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

import structlog

from core.exceptions import AppException, AuthError, NetworkError, RegistrationFailedError
from domain.entities.principal import AuthSession
from domain.entities.profile import Profile, UserRole
from domain.repositories.auth_gateway import IAuthGateway
from domain.repositories.profile_repository import (
    ProfileFound,
    ProfileInsertConflict,
    ProfileInserted,
    ProfileInsertFailed,
)
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.notifier import Notifier
from domain.services.profile_sync import ProfileSync
from domain.services.session_store import SessionSnapshot, SessionStore

logger = structlog.get_logger()


class AuthService:
    """Asynchronous auth operations layered on ``SessionStore`` and ``ProfileSync``.

    Navigation is not performed here; observers of the store react to its
    state transitions instead.

    Overlapping ``sign_in`` calls are cancel-and-replace: a new attempt
    cancels the one still in flight, whose caller gets ``CancelledError``.
    """

    def __init__(
        self,
        gateway: IAuthGateway,
        store: SessionStore,
        profile_sync: ProfileSync,
        notifier: Notifier,
    ) -> None:
        self._gateway = gateway
        self._store = store
        self._sync = profile_sync
        self._notifier = notifier
        self._loading_depth = 0
        self._sign_in_task: asyncio.Task[AuthSession] | None = None

    @property
    def is_loading(self) -> bool:
        return self._loading_depth > 0

    @property
    def snapshot(self) -> SessionSnapshot:
        return self._store.snapshot

    @asynccontextmanager
    async def _loading(self) -> AsyncIterator[None]:
        self._loading_depth += 1
        try:
            yield
        finally:
            self._loading_depth -= 1

    async def start(self) -> SessionSnapshot:
        """Resume a persisted session, if any. Safe to call more than once."""
        return await self._sync.start()

    async def close(self) -> None:
        if self._sign_in_task is not None and not self._sign_in_task.done():
            self._sign_in_task.cancel()
        await self._sync.close()

    # --- Sign in ---

    async def sign_in(self, email: str, password: str) -> AuthSession:
        """Authenticate with email and password.

        Raises:
            InvalidCredentialsError: the provider rejected the credentials
            NetworkError: the provider could not be reached
        """
        previous = self._sign_in_task
        if previous is not None and not previous.done():
            logger.info("sign_in_superseded")
            previous.cancel()

        task = asyncio.create_task(self._sign_in(email, password))
        self._sign_in_task = task
        try:
            return await task
        finally:
            if self._sign_in_task is task:
                self._sign_in_task = None

    async def _sign_in(self, email: str, password: str) -> AuthSession:
        async with self._loading():
            self._store.begin_authenticating()
            try:
                session = await self._gateway.authenticate(email, password)
            except AppException as exc:
                self._store.abort_authenticating()
                logger.info("sign_in_failed", error_code=exc.error_code.value)
                self._notifier.error("Sign in failed", exc.message)
                raise
            except asyncio.CancelledError:
                self._store.abort_authenticating()
                raise
            logger.info("sign_in_succeeded", principal_id=str(session.principal.id))
            return session

    # --- Sign up ---

    async def sign_up(self, name: str, email: str, password: str, role: str) -> Profile:
        """Register a principal, then create its profile.

        The principal is registered with ``name``/``role`` metadata so a later
        profile fetch can self-heal if the profile write fails. The principal is
        not rolled back on profile failure.

        Raises:
            RegistrationFailedError: either phase failed
        """
        async with self._loading():
            try:
                user_role = UserRole(role)
            except ValueError:
                error = RegistrationFailedError(f"Unknown role: {role}")
                self._notifier.error("Registration failed", error.message)
                raise error from None

            try:
                principal = await self._gateway.register_principal(
                    email, password, {"name": name, "role": user_role.value}
                )
            except (AuthError, NetworkError) as exc:
                logger.info("sign_up_registration_failed", error_code=exc.error_code.value)
                self._notifier.error("Registration failed", exc.message)
                raise RegistrationFailedError(exc.message) from exc

            profile = Profile(id=principal.id, email=email, name=name, role=user_role)
            result = await self._sync.insert(profile)

            match result:
                case ProfileInserted(profile=created):
                    self._notifier.success("Registration successful", f"Welcome, {name}!")
                    return created
                case ProfileInsertConflict(reason=reason):
                    # Self-heal or a database trigger may have written it first.
                    logger.info(
                        "sign_up_profile_conflict",
                        principal_id=str(principal.id),
                        reason=reason,
                    )
                    existing = await self._sync.fetch(principal)
                    if isinstance(existing, ProfileFound):
                        self._notifier.success("Registration successful", f"Welcome, {name}!")
                        return existing.profile
                    message = "Your account was created but your profile could not be saved"
                case ProfileInsertFailed(reason=reason):
                    logger.warning(
                        "sign_up_profile_failed",
                        principal_id=str(principal.id),
                        reason=reason,
                    )
                    message = f"Your account was created but your profile could not be saved: {reason}"

            self._notifier.error("Registration incomplete", message)
            raise RegistrationFailedError(message, principal_id=str(principal.id))

    # --- Sign out ---

    async def sign_out(self) -> None:
        """Invalidate the backend session and clear local state.

        Local state is cleared even if the backend call fails; only the
        notification differs.
        """
        failure: AppException | None = None
        try:
            await self._gateway.sign_out()
        except AppException as exc:
            logger.warning("sign_out_backend_failed", error=exc.message)
            failure = exc
        finally:
            self._store.clear()

        if failure is not None:
            self._notifier.warning("Signed out locally", failure.message)
        else:
            self._notifier.success("Signed out", "You have been signed out")
