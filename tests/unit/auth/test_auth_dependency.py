"""Unit tests for authentication and role dependencies."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from fastapi.security import HTTPAuthorizationCredentials

from api.dependencies.auth import get_current_principal, get_current_profile, require_role
from core.exceptions import AuthenticationError, ErrorCode, InsufficientRoleError
from domain.entities.principal import Principal
from domain.entities.profile import Profile, UserRole
from infrastructure.auth.jwt_provider import JWTAuthProvider


@pytest.fixture
def mock_auth_provider() -> JWTAuthProvider:
    return JWTAuthProvider(secret_key="test-secret", algorithm="HS256", expire_minutes=30)


@pytest.fixture
def test_principal() -> Principal:
    return Principal(
        id=uuid4(),
        email="test@example.com",
        metadata={"name": "Test User", "role": "seller"},
    )


def _profile(principal: Principal, role: UserRole) -> Profile:
    return Profile(id=principal.id, email=principal.email, name="Test User", role=role)


# --- get_current_principal ---


class TestGetCurrentPrincipal:
    @pytest.mark.asyncio
    async def test_returns_principal_with_valid_token(
        self, mock_auth_provider: JWTAuthProvider, test_principal: Principal
    ):
        token = mock_auth_provider.create_token(test_principal)
        credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)

        result = await get_current_principal(credentials, mock_auth_provider)

        assert result.email == test_principal.email
        assert result.id == test_principal.id
        assert result.requested_role == "seller"
        assert result.display_name == "Test User"

    @pytest.mark.asyncio
    async def test_raises_when_no_credentials(self, mock_auth_provider: JWTAuthProvider):
        with pytest.raises(AuthenticationError) as exc_info:
            await get_current_principal(None, mock_auth_provider)

        assert exc_info.value.error_code == ErrorCode.UNAUTHORIZED

    @pytest.mark.asyncio
    async def test_raises_when_invalid_token(self, mock_auth_provider: JWTAuthProvider):
        credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials="invalid.jwt.token")

        with pytest.raises(AuthenticationError) as exc_info:
            await get_current_principal(credentials, mock_auth_provider)

        assert exc_info.value.error_code == ErrorCode.INVALID_TOKEN

    @pytest.mark.asyncio
    async def test_raises_when_expired_token(self, test_principal: Principal):
        provider = JWTAuthProvider(secret_key="test-secret", algorithm="HS256", expire_minutes=-1)
        token = provider.create_token(test_principal)
        credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)

        normal_provider = JWTAuthProvider(
            secret_key="test-secret", algorithm="HS256", expire_minutes=30
        )

        with pytest.raises(AuthenticationError) as exc_info:
            await get_current_principal(credentials, normal_provider)

        assert exc_info.value.error_code == ErrorCode.INVALID_TOKEN


# --- get_current_profile ---


class TestGetCurrentProfile:
    @pytest.mark.asyncio
    async def test_resolves_profile_through_profile_sync(self, test_principal: Principal):
        profile = _profile(test_principal, UserRole.SELLER)
        profile_sync = AsyncMock()
        profile_sync.resolve.return_value = profile

        result = await get_current_profile(test_principal, profile_sync)

        assert result is profile
        profile_sync.resolve.assert_awaited_once_with(test_principal)


# --- require_role ---


class TestRequireRole:
    @pytest.mark.asyncio
    async def test_admits_matching_role(self, test_principal: Principal):
        profile = _profile(test_principal, UserRole.SELLER)
        dependency = require_role(UserRole.SELLER)

        assert await dependency(profile) is profile

    @pytest.mark.asyncio
    async def test_admits_any_of_several_roles(self, test_principal: Principal):
        profile = _profile(test_principal, UserRole.ADMIN)
        dependency = require_role(UserRole.SELLER, UserRole.ADMIN)

        assert await dependency(profile) is profile

    @pytest.mark.asyncio
    async def test_rejects_other_roles(self, test_principal: Principal):
        profile = _profile(test_principal, UserRole.BUYER)
        dependency = require_role(UserRole.ADMIN)

        with pytest.raises(InsufficientRoleError) as exc_info:
            await dependency(profile)

        assert exc_info.value.status_code == 403
        assert exc_info.value.details == {"required_roles": ["admin"]}
