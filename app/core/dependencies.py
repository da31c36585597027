from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.db.session import get_db
from app.db.redis import RedisService, get_redis
from app.core.exceptions import AuthenticationError
from app.core.firebase import FirebaseService, firebase_service
from app.core.realtime import MessageBroadcaster, message_broadcaster
from app.core.security import verify_access_token
from app.services.chat_service import ChatService
from app.services.discovery_service import DiscoveryService
from app.services.matching_service import MatchingService
from app.services.photo_service import PhotoService


# Security scheme (auto_error disabled so a missing token maps to our 401)
security = HTTPBearer(auto_error=False)


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """
    Dependency to get the authenticated actor's id.
    Validates the identity provider's JWT; no profile row is required.
    """
    if credentials is None:
        raise AuthenticationError()
    return verify_access_token(credentials.credentials).user_id


def get_redis_service() -> RedisService:
    """Dependency to get Redis service."""
    return RedisService(get_redis())


def get_broadcaster() -> MessageBroadcaster:
    return message_broadcaster


def get_matching_service(
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> MatchingService:
    return MatchingService(db, current_user_id)


def get_chat_service(
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    broadcaster: MessageBroadcaster = Depends(get_broadcaster),
) -> ChatService:
    return ChatService(db, current_user_id, broadcaster=broadcaster)


def get_discovery_service(
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> DiscoveryService:
    return DiscoveryService(db, current_user_id)


def get_photo_storage() -> FirebaseService:
    return firebase_service


def get_photo_service(
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    storage: FirebaseService = Depends(get_photo_storage),
) -> PhotoService:
    return PhotoService(db, current_user_id, storage=storage)
