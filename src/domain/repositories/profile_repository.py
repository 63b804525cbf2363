"""Profile repository protocol and its tagged results.

Lookups distinguish "record absent" from "lookup failed" through the
result type rather than through exceptions.
"""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from domain.entities.profile import Profile


@dataclass(frozen=True)
class ProfileFound:
    profile: Profile


@dataclass(frozen=True)
class ProfileNotFound:
    principal_id: UUID


@dataclass(frozen=True)
class ProfileFetchFailed:
    principal_id: UUID
    reason: str


ProfileFetchResult = ProfileFound | ProfileNotFound | ProfileFetchFailed


@dataclass(frozen=True)
class ProfileInserted:
    profile: Profile


@dataclass(frozen=True)
class ProfileInsertConflict:
    """Uniqueness or row-level-security rejection on insert."""

    principal_id: UUID
    reason: str


@dataclass(frozen=True)
class ProfileInsertFailed:
    principal_id: UUID
    reason: str


ProfileInsertResult = ProfileInserted | ProfileInsertConflict | ProfileInsertFailed


class IProfileRepository(Protocol):
    """Repository interface for Profile records."""

    async def fetch(self, principal_id: UUID) -> ProfileFetchResult:
        """Look up the profile of a principal."""
        ...

    async def insert(self, profile: Profile) -> ProfileInsertResult:
        """Create a profile record."""
        ...
