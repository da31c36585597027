from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime


class EventResponse(BaseModel):
    id: str
    title: str
    category: Optional[str] = None
    description: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    location_name: Optional[str] = None
    starts_at: datetime
    max_participants: Optional[int] = None

    # Attendance and event likes are not tracked yet
    is_attending: bool = False
    is_liked: bool = False
    attending_count: int = 0
    likes_count: int = 0
    spots_left: int = 0

    class Config:
        from_attributes = True


class EventListResponse(BaseModel):
    events: List[EventResponse]
    total: int
