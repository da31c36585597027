from pydantic import BaseModel, Field, validator
from typing import Optional, List
from datetime import datetime


def _clean_list(values: Optional[List[str]]) -> List[str]:
    """Strip entries, drop blanks and duplicates, keep order."""
    cleaned = []
    for value in values or []:
        value = value.strip()
        if value and value not in cleaned:
            cleaned.append(value)
    return cleaned


# ==================== Profile Schemas ====================

class ProfileBase(BaseModel):
    """Base profile fields."""
    display_name: str = Field(..., min_length=2, max_length=100)
    age: Optional[int] = Field(None, ge=18, le=120)
    gender: Optional[str] = Field(None, max_length=20)
    preferences_gender: List[str] = []
    bio: Optional[str] = Field(None, max_length=1000)
    interests: List[str] = []
    photo_urls: List[str] = []

    # Location
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lng: Optional[float] = Field(None, ge=-180, le=180)


class ProfileUpsert(ProfileBase):
    """Schema for creating or updating the caller's own profile."""

    @validator("interests", "preferences_gender", "photo_urls")
    def clean_lists(cls, v):
        return _clean_list(v)


class ProfileResponse(ProfileBase):
    """Schema for profile response."""
    id: str
    geohash: Optional[str] = None
    last_active_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @validator("interests", "preferences_gender", "photo_urls", pre=True)
    def none_to_list(cls, v):
        return v or []

    class Config:
        from_attributes = True


class ProfileSummary(BaseModel):
    """Minimal profile info shown next to conversations and messages."""
    id: str
    display_name: str
    photo_urls: List[str] = []

    @validator("photo_urls", pre=True)
    def none_to_list(cls, v):
        return v or []

    class Config:
        from_attributes = True


# ==================== Discovery Schemas ====================

class NearbyRequest(BaseModel):
    """Search parameters for nearby profiles."""
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    radius_km: float = Field(10, gt=0, le=500)
    age_min: int = Field(18, ge=18, le=120)
    age_max: int = Field(100, ge=18, le=120)
    gender_preference: List[str] = []


class NearbyProfile(ProfileResponse):
    """Profile with its distance from the search point."""
    distance_km: float
    distance_label: str


class NearbyResponse(BaseModel):
    profiles: List[NearbyProfile]
