from sqlalchemy import Column, String, DateTime, Integer, Float, Text, JSON
from datetime import datetime, timezone

from app.db.session import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Profile(Base):
    """User-facing identity. The id is the identity provider's user id."""

    __tablename__ = "profiles"

    id = Column(String(64), primary_key=True)

    # Basic Info
    display_name = Column(String(100), nullable=False)
    age = Column(Integer, nullable=True)
    gender = Column(String(20), nullable=True)
    preferences_gender = Column(JSON, default=list)  # Genders the user wants to see

    # Bio & Media
    bio = Column(Text, nullable=True)
    interests = Column(JSON, default=list)  # Ordered list of strings
    photo_urls = Column(JSON, default=list)  # Ordered list of photo URLs

    # Location
    lat = Column(Float, nullable=True)
    lng = Column(Float, nullable=True)
    geohash = Column(String(12), nullable=True, index=True)

    last_active_at = Column(DateTime(timezone=True), default=utcnow)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
