"""Principal and auth session entities issued by the auth provider."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID


@dataclass(frozen=True)
class Principal:
    """Identity issued by the auth provider.

    ``metadata`` carries the identity metadata attached at sign-up
    (``name`` and ``role``), used to self-heal a missing profile.
    """

    id: UUID
    email: str
    metadata: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def display_name(self) -> str | None:
        return (
            self.metadata.get("name")
            or self.metadata.get("display_name")
            or self.metadata.get("full_name")
        )

    @property
    def requested_role(self) -> str | None:
        return self.metadata.get("role")


@dataclass
class AuthSession:
    """A live session token pair for one principal."""

    principal: Principal
    access_token: str
    refresh_token: str | None = None
    expires_at: datetime | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or datetime.utcnow()) >= self.expires_at
