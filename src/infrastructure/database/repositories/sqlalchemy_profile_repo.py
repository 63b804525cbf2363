"""SQLAlchemy implementation of Profile repository."""

from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.profile import Profile, parse_role
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
from infrastructure.database.models import ProfileModel

logger = structlog.get_logger()

# Postgres raises insufficient_privilege when a row-level-security policy
# rejects a write.
RLS_VIOLATION_SQLSTATE = "42501"


def _sqlstate(exc: DBAPIError) -> str | None:
    orig = exc.orig
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


class SQLAlchemyProfileRepository:
    """SQLAlchemy implementation of IProfileRepository.

    Database errors are reported through the result types instead of
    raised.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def fetch(self, principal_id: UUID) -> ProfileFetchResult:
        """Look up the profile of a principal."""
        stmt = select(ProfileModel).where(ProfileModel.id == principal_id)
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as exc:
            return ProfileFetchFailed(principal_id, str(exc))
        model = result.scalar_one_or_none()
        if model is None:
            return ProfileNotFound(principal_id)
        return ProfileFound(self._to_entity(model))

    async def insert(self, profile: Profile) -> ProfileInsertResult:
        """Create a profile record; the caller commits."""
        model = self._to_model(profile)
        self._session.add(model)
        try:
            await self._session.flush()
        except IntegrityError as exc:
            await self._session.rollback()
            return ProfileInsertConflict(profile.id, str(exc.orig))
        except DBAPIError as exc:
            await self._session.rollback()
            if _sqlstate(exc) == RLS_VIOLATION_SQLSTATE:
                return ProfileInsertConflict(profile.id, str(exc.orig))
            return ProfileInsertFailed(profile.id, str(exc.orig))
        except SQLAlchemyError as exc:
            await self._session.rollback()
            return ProfileInsertFailed(profile.id, str(exc))
        await self._session.refresh(model)
        return ProfileInserted(self._to_entity(model))

    @staticmethod
    def _to_entity(model: ProfileModel) -> Profile:
        """Convert ORM model to domain entity."""
        return Profile(
            id=model.id,
            email=model.email,
            name=model.name,
            role=parse_role(model.role),
            avatar_url=model.avatar_url,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    @staticmethod
    def _to_model(entity: Profile) -> ProfileModel:
        """Convert domain entity to ORM model."""
        return ProfileModel(
            id=entity.id,
            email=entity.email,
            name=entity.name,
            role=entity.role.value,
            avatar_url=entity.avatar_url,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )
