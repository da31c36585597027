from fastapi import APIRouter, Depends, HTTPException, status, Query, UploadFile, File
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from app.config import settings
from app.db.session import get_db
from app.core.dependencies import get_current_user_id, get_discovery_service, get_photo_service
from app.models.user import Profile, utcnow
from app.services.discovery_service import DiscoveryService
from app.services.photo_service import PhotoService
from app.schemas.user import ProfileUpsert, ProfileResponse
from app.utils.geo import encode_geohash


router = APIRouter(prefix="/profiles", tags=["Profiles"])


@router.get("", response_model=List[ProfileResponse])
async def browse_profiles(
    limit: int = Query(settings.DISCOVER_LIMIT, ge=1, le=50),
    discovery: DiscoveryService = Depends(get_discovery_service),
):
    """Profiles to swipe on (everyone except yourself)."""
    return await discovery.browse(limit=limit)


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Get current user's profile."""
    profile = await db.get(Profile, current_user_id)

    if not profile:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found. Please create a profile first.",
        )

    return profile


@router.put("/me", response_model=ProfileResponse)
async def upsert_my_profile(
    profile_data: ProfileUpsert,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Create or update current user's profile."""
    profile = await db.get(Profile, current_user_id)

    if not profile:
        profile = Profile(id=current_user_id)
        db.add(profile)

    fields = profile_data.model_dump()
    # Uploaded photos are kept unless the client sends its own ordering
    if "photo_urls" not in profile_data.model_fields_set and profile.photo_urls:
        fields.pop("photo_urls")
    for field, value in fields.items():
        setattr(profile, field, value)

    # Keep geohash in sync with coordinates
    if profile.lat is not None and profile.lng is not None:
        profile.geohash = encode_geohash(profile.lat, profile.lng)
    else:
        profile.geohash = None

    profile.last_active_at = utcnow()

    await db.commit()
    await db.refresh(profile)

    return profile


@router.post("/me/photos", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
async def upload_photo(
    file: UploadFile = File(...),
    photos: PhotoService = Depends(get_photo_service),
):
    """
    Upload a profile photo (JPEG, PNG or WebP) to Firebase Storage.
    Its public URL is appended to photo_urls.
    """
    # Read one byte past the limit so oversized files are detected
    data = await file.read(settings.MAX_PHOTO_BYTES + 1)
    return await photos.add_photo(data, file.content_type)


@router.delete("/me/photos", response_model=ProfileResponse)
async def delete_photo(
    url: str = Query(..., min_length=1),
    photos: PhotoService = Depends(get_photo_service),
):
    """Remove a photo from your profile and delete the stored file."""
    return await photos.remove_photo(url)


@router.get("/{profile_id}", response_model=ProfileResponse)
async def get_profile(
    profile_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Get another user's profile."""
    profile = await db.get(Profile, profile_id)

    if not profile:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found.",
        )

    return profile
