from pydantic import BaseModel, Field, validator
from typing import Optional, List
from datetime import datetime

from app.schemas.user import ProfileSummary


class ConversationMatch(BaseModel):
    """Match embedded in a conversation, with both participants."""
    id: str
    user_a_id: str
    user_b_id: str
    created_at: datetime
    user_a: Optional[ProfileSummary] = None
    user_b: Optional[ProfileSummary] = None


class ConversationWithMatch(BaseModel):
    id: str
    match_id: str
    created_at: datetime
    match: ConversationMatch


class ConversationListResponse(BaseModel):
    conversations: List[ConversationWithMatch]
    total: int


class MessageCreate(BaseModel):
    text: str = Field(..., min_length=1, max_length=5000)

    @validator("text")
    def text_not_blank(cls, v):
        if not v.strip():
            raise ValueError("Message text cannot be empty")
        return v.strip()


class MessageResponse(BaseModel):
    id: str
    conversation_id: str
    sender_id: str
    text: str
    created_at: datetime

    class Config:
        from_attributes = True


class MessageWithSender(MessageResponse):
    sender: ProfileSummary


class FirebaseTokenResponse(BaseModel):
    """Firebase custom token for client authentication."""
    token: str
    expires_in: int = 3600  # 1 hour
