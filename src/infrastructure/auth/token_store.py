"""File-backed persistence of the client's auth session."""

from datetime import datetime
from pathlib import Path
from typing import Any
from uuid import UUID

import orjson
import structlog

from domain.entities.principal import AuthSession, Principal

logger = structlog.get_logger()


def session_to_dict(session: AuthSession) -> dict[str, Any]:
    principal = session.principal
    return {
        "access_token": session.access_token,
        "refresh_token": session.refresh_token,
        "expires_at": session.expires_at.isoformat() if session.expires_at else None,
        "user": {
            "id": str(principal.id),
            "email": principal.email,
            "user_metadata": dict(principal.metadata),
        },
    }


def session_from_dict(data: dict[str, Any]) -> AuthSession:
    user = data["user"]
    expires_at = data.get("expires_at")
    return AuthSession(
        principal=Principal(
            id=UUID(user["id"]),
            email=user["email"],
            metadata=dict(user.get("user_metadata") or {}),
        ),
        access_token=data["access_token"],
        refresh_token=data.get("refresh_token"),
        expires_at=datetime.fromisoformat(expires_at) if expires_at else None,
    )


class FileTokenStore:
    """Stores one session as JSON at ``path``."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> AuthSession | None:
        """Return the stored session, or None if absent or unreadable."""
        if not self._path.exists():
            return None
        try:
            return session_from_dict(orjson.loads(self._path.read_bytes()))
        except (orjson.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("session_file_corrupt", path=str(self._path), error=str(exc))
            self.clear()
            return None

    def save(self, session: AuthSession) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_bytes(orjson.dumps(session_to_dict(session)))
        tmp.replace(self._path)
        self._path.chmod(0o600)

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)
