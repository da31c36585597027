from sqlalchemy import Column, String, DateTime, Integer, Float, Text

from app.db.session import Base
from app.models.user import utcnow
from app.models.match import new_id


class Event(Base):
    """In-person event listed in the app."""

    __tablename__ = "events"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String(200), nullable=False)
    category = Column(String(50), nullable=True)  # Dating, Social, ...
    description = Column(Text, nullable=True)

    # Location
    lat = Column(Float, nullable=True)
    lng = Column(Float, nullable=True)
    location_name = Column(String(200), nullable=True)

    starts_at = Column(DateTime(timezone=True), nullable=False, index=True)
    max_participants = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
