"""Authentication and role dependencies for FastAPI."""

from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from api.dependencies.services import get_profile_sync
from core.exceptions import AuthenticationError, ErrorCode, InsufficientRoleError
from domain.entities.principal import Principal
from domain.entities.profile import Profile, UserRole
from domain.services.profile_sync import ProfileSync
from infrastructure.auth.jwt_provider import JWTAuthProvider
from infrastructure.auth.provider import IAuthProvider

# Security scheme for OpenAPI docs
security = HTTPBearer(auto_error=False)

# Singleton auth provider
_auth_provider: JWTAuthProvider | None = None


def get_auth_provider() -> IAuthProvider:
    """Get or create the auth provider singleton."""
    global _auth_provider
    if _auth_provider is None:
        _auth_provider = JWTAuthProvider()
    return _auth_provider


async def get_current_principal(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None,
        Depends(security),
    ],
    auth_provider: IAuthProvider = Depends(get_auth_provider),
) -> Principal:
    """
    Dependency to get the authenticated principal from the bearer token.

    Raises:
        AuthenticationError: If no token provided or token is invalid
    """
    if not credentials:
        raise AuthenticationError(
            message="Authorization header required",
            error_code=ErrorCode.UNAUTHORIZED,
        )

    principal = await auth_provider.validate_token(credentials.credentials)

    if not principal:
        raise AuthenticationError(
            message="Invalid or expired token",
            error_code=ErrorCode.INVALID_TOKEN,
        )

    return principal


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]


async def get_current_profile(
    principal: CurrentPrincipal,
    profile_sync: ProfileSync = Depends(get_profile_sync),
) -> Profile:
    """
    Dependency to get the caller's profile, creating it if it is missing.

    Raises:
        ProfileError: If the profile can neither be read nor created
    """
    return await profile_sync.resolve(principal)


CurrentProfile = Annotated[Profile, Depends(get_current_profile)]


def require_role(*roles: UserRole) -> Callable[[Profile], Awaitable[Profile]]:
    """Build a dependency admitting only profiles with one of ``roles``."""

    async def dependency(profile: CurrentProfile) -> Profile:
        if profile.role not in roles:
            raise InsufficientRoleError([role.value for role in roles])
        return profile

    return dependency


SellerProfile = Annotated[Profile, Depends(require_role(UserRole.SELLER))]
AdminProfile = Annotated[Profile, Depends(require_role(UserRole.ADMIN))]
SellerOrAdminProfile = Annotated[Profile, Depends(require_role(UserRole.SELLER, UserRole.ADMIN))]
