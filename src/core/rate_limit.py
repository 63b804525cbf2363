"""Rate limiting configuration using slowapi."""

from fastapi import Request
from fastapi.responses import JSONResponse
from jose import jwt
from jose.exceptions import JOSEError
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from core.config import settings
from core.exceptions import ErrorCode


def principal_or_remote_address(request: Request) -> str:
    """Key requests by the bearer token's subject, falling back to the client IP.

    The token is not verified here; authentication happens in the route
    dependencies. A forged subject only changes which bucket is charged.
    """
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() == "bearer" and token:
        try:
            subject = jwt.get_unverified_claims(token).get("sub")
        except JOSEError:
            subject = None
        if subject:
            return f"user:{subject}"
    return get_remote_address(request)


limiter = Limiter(
    key_func=principal_or_remote_address,
    enabled=settings.rate_limit_enabled,
)


async def rate_limit_exceeded_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle rate limit exceeded errors."""
    detail = exc.detail if isinstance(exc, RateLimitExceeded) else str(exc)
    return JSONResponse(
        status_code=429,
        content={
            "error_code": ErrorCode.RATE_LIMIT_EXCEEDED.value,
            "message": f"Rate limit exceeded: {detail}",
            "details": {
                "retry_after": str(detail),
            },
        },
    )
