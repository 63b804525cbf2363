"""Dependency factories shared outside the API v1 package."""

from functools import lru_cache
from typing import Callable

from core.config import settings
from domain.entities.profile import parse_role
from domain.services.notifier import Notifier
from domain.services.profile_sync import ProfileSync
from domain.services.session_store import SessionStore
from infrastructure.database.session import async_session_factory
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork


def get_uow_factory() -> Callable[[], SQLAlchemyUnitOfWork]:
    """Factory for creating Unit of Work instances."""

    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(async_session_factory)

    return factory


@lru_cache
def get_profile_sync() -> ProfileSync:
    """Get ProfileSync for server-side profile resolution.

    Only ``resolve`` is used here, so the store and notifier stay private
    to this instance.
    """
    return ProfileSync(
        store=SessionStore(),
        uow_factory=get_uow_factory(),
        notifier=Notifier(),
        default_role=parse_role(settings.default_role),
    )
