import logging
import uuid
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from app.config import settings
from app.core.exceptions import (
    AuthenticationError,
    InvalidPhotoError,
    NotFoundError,
    ServiceUnavailableError,
    UpstreamError,
)
from app.core.firebase import FirebaseService, firebase_service
from app.models.user import Profile

logger = logging.getLogger(__name__)

# Accepted upload types and the file extension stored for each
ALLOWED_CONTENT_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


class PhotoService:
    """
    Uploads and removes the actor's profile photos.
    Files live in Firebase Storage; the profile keeps their URLs in order.
    """

    def __init__(
        self,
        db: AsyncSession,
        actor_id: Optional[str],
        storage: FirebaseService = firebase_service,
    ):
        self.db = db
        self.actor_id = actor_id
        self.storage = storage

    async def _own_profile(self) -> Profile:
        if not self.actor_id:
            raise AuthenticationError()
        profile = await self.db.get(Profile, self.actor_id)
        if profile is None:
            raise NotFoundError("Profile not found. Please create a profile first.")
        return profile

    async def add_photo(self, data: bytes, content_type: Optional[str]) -> Profile:
        """Store an image and append its URL to the actor's photo_urls."""
        if not self.storage.enabled:
            raise ServiceUnavailableError("Photo storage is not configured")

        extension = ALLOWED_CONTENT_TYPES.get(content_type or "")
        if extension is None:
            raise InvalidPhotoError("Only JPEG, PNG or WebP images are allowed")
        if not data:
            raise InvalidPhotoError("The uploaded file is empty")
        if len(data) > settings.MAX_PHOTO_BYTES:
            raise InvalidPhotoError(
                f"Photos must be at most {settings.MAX_PHOTO_BYTES // (1024 * 1024)}MB"
            )

        profile = await self._own_profile()
        photos = list(profile.photo_urls or [])
        if len(photos) >= settings.MAX_PHOTOS:
            raise InvalidPhotoError(f"Maximum {settings.MAX_PHOTOS} photos allowed.")

        path = f"profiles/{profile.id}/{uuid.uuid4().hex}.{extension}"
        try:
            url = await run_in_threadpool(self.storage.upload_photo, path, data, content_type)
        except Exception as e:
            logger.error("Photo upload to %s failed: %s", path, e)
            raise UpstreamError("Photo upload failed")

        # Reassign so the JSON column is marked dirty
        profile.photo_urls = photos + [url]
        await self.db.commit()
        await self.db.refresh(profile)

        logger.info("User %s added photo %d/%d", profile.id, len(profile.photo_urls), settings.MAX_PHOTOS)
        return profile

    async def remove_photo(self, url: str) -> Profile:
        """
        Drop a URL from the actor's photo_urls, then delete the stored file.
        A storage failure is logged; the profile change stands.
        """
        profile = await self._own_profile()
        photos = list(profile.photo_urls or [])
        if url not in photos:
            raise NotFoundError("Photo not found on your profile")

        profile.photo_urls = [photo for photo in photos if photo != url]
        await self.db.commit()
        await self.db.refresh(profile)

        if self.storage.enabled:
            try:
                await run_in_threadpool(self.storage.delete_photo, url)
            except Exception as e:
                logger.warning("Could not delete stored photo %s: %s", url, e)

        return profile
