from pydantic import BaseModel, Field, validator
from typing import Optional, List
from datetime import datetime

from app.models.user import utcnow


class HistoryMessage(BaseModel):
    """One earlier turn of the coaching session."""
    role: str  # 'user' or 'assistant'
    content: str = Field(..., max_length=4000)

    @validator("role")
    def known_role(cls, v):
        if v not in ("user", "assistant"):
            raise ValueError("role must be 'user' or 'assistant'")
        return v


class CoachRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=2000)
    # Ask about a specific match; its profile and recent chat are used as context
    match_id: Optional[str] = None
    history: List[HistoryMessage] = Field(default_factory=list, max_length=20)

    @validator("message")
    def message_not_blank(cls, v):
        if not v.strip():
            raise ValueError("Message cannot be empty")
        return v.strip()


class CoachResponse(BaseModel):
    message: str
    timestamp: datetime = Field(default_factory=utcnow)
