"""Authentication provider protocol."""

from typing import Optional, Protocol

from domain.entities.principal import Principal


class IAuthProvider(Protocol):
    """Protocol for access-token validation."""

    async def validate_token(self, token: str) -> Optional[Principal]:
        """
        Validate an access token.

        Args:
            token: The bearer token to validate

        Returns:
            Principal if valid, None if invalid or expired
        """
        ...

    def create_token(self, principal: Principal) -> str:
        """
        Create an access token for a principal.

        Args:
            principal: The principal to create a token for

        Returns:
            The generated token string
        """
        ...
