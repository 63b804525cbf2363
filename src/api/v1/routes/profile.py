"""Profile API routes."""

from fastapi import APIRouter, Request

from api.dependencies.auth import CurrentProfile
from api.v1.schemas.common import ErrorResponse
from api.v1.schemas.profile import ProfileDetailResponse, ProfileResponse
from core.rate_limit import limiter

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get(
    "/me",
    response_model=ProfileDetailResponse,
    summary="Get the caller's profile",
    responses={
        401: {"model": ErrorResponse, "description": "Missing or invalid token"},
        502: {"model": ErrorResponse, "description": "Profile could not be read or created"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_my_profile(
    request: Request,
    profile: CurrentProfile,
) -> ProfileDetailResponse:
    """Return the caller's profile, creating it from the token metadata on first use."""
    return ProfileDetailResponse(data=ProfileResponse.model_validate(profile))
