from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


# ==================== Like Schemas ====================

class LikeCreate(BaseModel):
    """Schema for liking a user."""
    to_user_id: str = Field(..., min_length=1, max_length=64)


class LikeResponse(BaseModel):
    id: str
    from_user_id: str
    to_user_id: str
    created_at: datetime

    class Config:
        from_attributes = True


# ==================== Match Schemas ====================

class MatchCreate(BaseModel):
    """Schema for manually pairing two users (debug only)."""
    user_a_id: str = Field(..., min_length=1, max_length=64)
    user_b_id: str = Field(..., min_length=1, max_length=64)


class MatchResponse(BaseModel):
    """Schema for match response."""
    id: str
    user_a_id: str
    user_b_id: str
    created_at: datetime

    class Config:
        from_attributes = True


class ConversationResponse(BaseModel):
    id: str
    match_id: str
    created_at: datetime

    class Config:
        from_attributes = True


class LikeResultResponse(BaseModel):
    """
    Outcome of a like.
    `error` carries a store failure that happened after the like was saved;
    whatever was obtained before the failure is still returned.
    """
    like: Optional[LikeResponse] = None
    matched: bool = False
    match: Optional[MatchResponse] = None
    conversation: Optional[ConversationResponse] = None
    error: Optional[str] = None


class MatchResultResponse(BaseModel):
    match: MatchResponse
    conversation: Optional[ConversationResponse] = None
    created: bool


class MatchParticipant(BaseModel):
    """
    One side of a match. The caller's own side only carries the id,
    the counterpart carries the full profile.
    """
    id: str
    display_name: Optional[str] = None
    age: Optional[int] = None
    gender: Optional[str] = None
    bio: Optional[str] = None
    interests: Optional[List[str]] = None
    photo_urls: Optional[List[str]] = None
    lat: Optional[float] = None
    lng: Optional[float] = None

    class Config:
        from_attributes = True


class MatchWithParticipants(MatchResponse):
    user_a: Optional[MatchParticipant] = None
    user_b: Optional[MatchParticipant] = None


class MatchListResponse(BaseModel):
    """List of matches."""
    matches: List[MatchWithParticipants]
    total: int
