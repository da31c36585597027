# Export all models for easy importing
from app.models.user import Profile
from app.models.match import Like, Match, Conversation, Message
from app.models.event import Event

__all__ = [
    "Profile",
    "Like",
    "Match",
    "Conversation",
    "Message",
    "Event",
]
