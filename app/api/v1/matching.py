from fastapi import APIRouter, Depends, HTTPException, status

from app.config import settings
from app.core.dependencies import (
    get_current_user_id,
    get_discovery_service,
    get_matching_service,
    get_redis_service,
)
from app.core.exceptions import LikeLimitExceeded
from app.db.redis import RedisService
from app.services.discovery_service import DiscoveryService
from app.services.matching_service import LikeResult, MatchingService
from app.schemas.match import (
    LikeCreate,
    LikeResponse,
    LikeResultResponse,
    MatchCreate,
    MatchResponse,
    MatchResultResponse,
    ConversationResponse,
    MatchListResponse,
)
from app.schemas.user import NearbyRequest, NearbyResponse, NearbyProfile, ProfileResponse
from app.utils.geo import format_distance


router = APIRouter(prefix="/matching", tags=["Matching"])


def to_like_response(result: LikeResult) -> LikeResultResponse:
    return LikeResultResponse(
        like=LikeResponse.model_validate(result.like) if result.like else None,
        matched=result.matched,
        match=MatchResponse.model_validate(result.match) if result.match else None,
        conversation=(
            ConversationResponse.model_validate(result.conversation)
            if result.conversation
            else None
        ),
        error=result.error,
    )


@router.post("/likes", response_model=LikeResultResponse)
async def like_user(
    like_data: LikeCreate,
    current_user_id: str = Depends(get_current_user_id),
    matching: MatchingService = Depends(get_matching_service),
    redis: RedisService = Depends(get_redis_service),
):
    """
    Like a user.
    If they already liked you, a match and its conversation are created.
    Liking someone twice is not an error.
    """
    # Check like limit
    can_like, _ = await redis.check_like_limit(current_user_id)
    if not can_like:
        raise LikeLimitExceeded()

    result = await matching.like_user(like_data.to_user_id)

    if result.error and result.like is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to save like: {result.error}",
        )

    return to_like_response(result)


@router.get("/matches", response_model=MatchListResponse)
async def get_matches(
    matching: MatchingService = Depends(get_matching_service),
):
    """Get all matches for current user, with the other user's profile."""
    matches = await matching.get_matches()
    return MatchListResponse(matches=matches, total=len(matches))


@router.post("/matches", response_model=MatchResultResponse)
async def create_match(
    match_data: MatchCreate,
    matching: MatchingService = Depends(get_matching_service),
):
    """
    Manually pair two users without checking likes.
    Only available when debug routes are enabled.
    """
    if not settings.ENABLE_DEBUG_ROUTES:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Not Found",
        )

    result = await matching.create_match(match_data.user_a_id, match_data.user_b_id)

    return MatchResultResponse(
        match=MatchResponse.model_validate(result.match),
        conversation=(
            ConversationResponse.model_validate(result.conversation)
            if result.conversation
            else None
        ),
        created=result.created,
    )


@router.post("/nearby", response_model=NearbyResponse)
async def nearby_profiles(
    search: NearbyRequest,
    discovery: DiscoveryService = Depends(get_discovery_service),
):
    """
    Profiles near a point, closest first.
    Excludes yourself, people you already liked and people you matched with.
    """
    if search.age_min > search.age_max:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="age_min cannot be greater than age_max.",
        )

    results = await discovery.nearby(
        lat=search.lat,
        lng=search.lng,
        radius_km=search.radius_km,
        age_min=search.age_min,
        age_max=search.age_max,
        gender_preference=search.gender_preference,
    )

    return NearbyResponse(
        profiles=[
            NearbyProfile(
                **ProfileResponse.model_validate(profile).model_dump(),
                distance_km=round(distance, 3),
                distance_label=format_distance(distance),
            )
            for profile, distance in results
        ]
    )
