"""Role-gated routing decisions for the client views."""

from dataclasses import dataclass
from enum import StrEnum

from domain.entities.profile import UserRole
from domain.services.session_store import AuthState, SessionSnapshot

LOGIN_PATH = "/login"
HOME_PATH = "/dashboard"

PUBLIC_PATHS = frozenset({"/", "/login", "/register", "/products"})
PUBLIC_PREFIXES = ("/product/",)
GUEST_ONLY_PATHS = frozenset({"/login", "/register"})

ROLE_PATHS: dict[str, frozenset[UserRole]] = {
    "/admin": frozenset({UserRole.ADMIN}),
    "/add-product": frozenset({UserRole.SELLER}),
}


class RouteOutcome(StrEnum):
    ALLOW = "allow"
    REDIRECT = "redirect"
    PENDING = "pending"


@dataclass(frozen=True)
class RouteDecision:
    outcome: RouteOutcome
    target: str | None = None

    @classmethod
    def allow(cls) -> "RouteDecision":
        return cls(RouteOutcome.ALLOW)

    @classmethod
    def redirect(cls, target: str) -> "RouteDecision":
        return cls(RouteOutcome.REDIRECT, target)

    @classmethod
    def pending(cls) -> "RouteDecision":
        return cls(RouteOutcome.PENDING)


def _normalize(path: str) -> str:
    path = path.split("?", 1)[0].split("#", 1)[0]
    if len(path) > 1:
        path = path.rstrip("/")
    return path or "/"


class RoleRouter:
    """Admits or redirects a requested path for the current session snapshot."""

    def __init__(
        self,
        role_paths: dict[str, frozenset[UserRole]] | None = None,
        login_path: str = LOGIN_PATH,
        home_path: str = HOME_PATH,
    ) -> None:
        self._role_paths = role_paths if role_paths is not None else ROLE_PATHS
        self._login_path = login_path
        self._home_path = home_path

    def is_public(self, path: str) -> bool:
        return path in PUBLIC_PATHS or path.startswith(PUBLIC_PREFIXES)

    def resolve(self, snapshot: SessionSnapshot, path: str) -> RouteDecision:
        path = _normalize(path)

        if path in GUEST_ONLY_PATHS and snapshot.state == AuthState.PROFILE_READY:
            return RouteDecision.redirect(self._home_path)

        if self.is_public(path):
            return RouteDecision.allow()

        if snapshot.state == AuthState.AUTHENTICATING:
            return RouteDecision.pending()
        if not snapshot.is_authenticated:
            return RouteDecision.redirect(self._login_path)

        required = self._role_paths.get(path)
        if required is None:
            return RouteDecision.allow()

        # Role-gated views need the profile; an errored profile has no role.
        if snapshot.is_settling:
            return RouteDecision.pending()
        if snapshot.role in required:
            return RouteDecision.allow()
        return RouteDecision.redirect(self._home_path)
