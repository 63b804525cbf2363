"""Profile domain entity."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID


class UserRole(StrEnum):
    """Marketplace roles. Fixed when the profile is created."""

    SELLER = "seller"
    BUYER = "buyer"
    ADMIN = "admin"


def parse_role(value: str | None, default: UserRole = UserRole.BUYER) -> UserRole:
    """Map a free-form role string onto a known role, falling back to ``default``."""
    if not value:
        return default
    try:
        return UserRole(value.strip().lower())
    except ValueError:
        return default


@dataclass
class Profile:
    """Domain entity for the application-level user record.

    Keyed by the auth provider's principal id.
    """

    id: UUID
    email: str
    name: str
    role: UserRole = UserRole.BUYER
    avatar_url: str | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self) -> None:
        """Ensure updated_at is always at least as recent as created_at."""
        if self.updated_at < self.created_at:
            self.updated_at = self.created_at
