"""JWT authentication provider implementation.

Validates Supabase-issued access tokens (ES256 via JWKS) and locally-created
tokens (HS256, used in tests and for the legacy shared secret).

Supabase JWT payload structure:
    {
        "sub": "user-uuid",
        "email": "user@example.com",
        "role": "authenticated",
        "aud": "authenticated",
        "user_metadata": { "name": "Farmer Singh", "role": "seller" },
        "exp": 1234567890
    }

``user_metadata`` is what sign-up attached; ``role`` at the top level is the
Postgres role and is not the marketplace role.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Optional
from uuid import UUID

import httpx
from jose import JWTError, jwt
from jose.backends import ECKey

from core.config import settings
from domain.entities.principal import Principal

logger = logging.getLogger(__name__)

# Module-level JWKS cache (fetched once, reused across requests)
_jwks_cache: dict[str, Any] | None = None


async def _get_jwks_keys() -> dict[str, Any]:
    """Fetch and cache JWKS keys from Supabase."""
    global _jwks_cache
    if _jwks_cache is not None:
        return _jwks_cache

    jwks_url = settings.supabase_jwks_url
    if not jwks_url:
        return {}

    try:
        async with httpx.AsyncClient() as client:
            response = await client.get(jwks_url, timeout=settings.http_timeout_seconds)
            response.raise_for_status()
            jwks_data = response.json()
    except httpx.HTTPError:
        logger.exception("Failed to fetch JWKS from %s", jwks_url)
        return {}

    _jwks_cache = {
        key_data["kid"]: key_data for key_data in jwks_data.get("keys", []) if key_data.get("kid")
    }
    logger.info("Fetched %d JWKS keys from Supabase", len(_jwks_cache))
    return _jwks_cache


def principal_from_claims(payload: dict[str, Any]) -> Optional[Principal]:
    """Build a Principal from decoded token claims; None if claims are missing."""
    user_id = payload.get("sub")
    email = payload.get("email")
    if not user_id or not email:
        return None
    try:
        principal_id = UUID(user_id)
    except ValueError:
        return None
    metadata = dict(payload.get("user_metadata") or {})
    return Principal(id=principal_id, email=email, metadata=metadata)


class JWTAuthProvider:
    """JWT-based authentication provider."""

    def __init__(
        self,
        secret_key: str = settings.jwt_secret_key,
        algorithm: str = settings.jwt_algorithm,
        expire_minutes: int = settings.jwt_expire_minutes,
    ) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expire_minutes = expire_minutes

    async def validate_token(self, token: str) -> Optional[Principal]:
        """
        Validate a JWT and extract the principal.

        Detects the signing algorithm from the token header:
        - ES256 (Supabase): validates via JWKS public key
        - HS256 (local/test): validates via shared secret

        Args:
            token: The JWT to validate

        Returns:
            Principal if valid, None if invalid or expired
        """
        try:
            header = jwt.get_unverified_header(token)
            alg = header.get("alg", self._algorithm)

            if alg == "ES256":
                payload = await self._validate_es256(token, header)
            else:
                payload = jwt.decode(
                    token,
                    self._secret_key,
                    algorithms=[self._algorithm],
                    options={"verify_aud": False},
                )
        except JWTError:
            return None

        if payload is None:
            return None
        return principal_from_claims(payload)

    async def _validate_es256(self, token: str, header: dict) -> Optional[dict]:
        """Validate an ES256-signed JWT using JWKS public keys."""
        kid = header.get("kid")
        if not kid:
            return None

        jwks_keys = await _get_jwks_keys()
        key_data = jwks_keys.get(kid)
        if not key_data:
            # Key rotation: drop the cache and try once more
            global _jwks_cache
            _jwks_cache = None
            jwks_keys = await _get_jwks_keys()
            key_data = jwks_keys.get(kid)
            if not key_data:
                logger.warning("JWKS key not found for kid=%s", kid)
                return None

        ec_key = ECKey(key_data, algorithm="ES256")
        return jwt.decode(
            token,
            ec_key,
            algorithms=["ES256"],
            options={"verify_aud": False},
        )

    def create_token(self, principal: Principal) -> str:
        """
        Create an HS256 access token for a principal (tests and local runs).

        Args:
            principal: The principal to create a token for

        Returns:
            The generated JWT string
        """
        expire = datetime.utcnow() + timedelta(minutes=self._expire_minutes)

        payload: dict = {
            "sub": str(principal.id),
            "email": principal.email,
            "aud": "authenticated",
            "role": "authenticated",
            "exp": expire,
            "user_metadata": dict(principal.metadata),
        }

        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)


def read_expiry(token: str) -> Optional[datetime]:
    """Read the ``exp`` claim without verifying the signature."""
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError:
        return None
    exp = claims.get("exp")
    if exp is None:
        return None
    return datetime.utcfromtimestamp(int(exp))
