"""
AI Coach Endpoints
Private dating advice from an OpenAI-compatible model.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List, Optional

from app.db.session import get_db
from app.core.dependencies import get_current_user_id
from app.core.exceptions import NotFoundError, ServiceUnavailableError
from app.agents.config import ai_enabled
from app.agents.coach import get_coach_response
from app.models.match import Conversation, Match, Message
from app.models.user import Profile
from app.schemas.coach import CoachRequest, CoachResponse


router = APIRouter(prefix="/coach", tags=["AI Coach"])

# Chat messages passed to the coach as context
CONTEXT_MESSAGES = 30


def profile_context(profile: Optional[Profile]) -> Optional[dict]:
    if profile is None:
        return None
    return {
        "age": profile.age,
        "bio": profile.bio,
        "interests": profile.interests or [],
    }


async def recent_messages(db: AsyncSession, match_id: str) -> List[dict]:
    """Latest messages of the match's conversation, oldest first."""
    result = await db.execute(
        select(Message)
        .join(Conversation, Message.conversation_id == Conversation.id)
        .where(Conversation.match_id == match_id)
        .order_by(Message.created_at.desc(), Message.id.desc())
        .limit(CONTEXT_MESSAGES)
    )
    messages = reversed(result.scalars().all())
    return [{"sender_id": m.sender_id, "text": m.text} for m in messages]


@router.post("/ask", response_model=CoachResponse)
async def ask_coach(
    request: CoachRequest,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Ask the AI dating coach a question. The answer is private to the caller.
    With match_id, the match's profile and your recent chat are used as context.
    """
    if not ai_enabled():
        raise ServiceUnavailableError("AI coach is not configured")

    user_profile = await db.get(Profile, current_user_id)
    user_name = user_profile.display_name if user_profile else "there"

    match_name = None
    match_profile = None
    conversation: List[dict] = []

    if request.match_id:
        match = await db.get(Match, request.match_id)
        if match is None or not match.involves(current_user_id):
            raise NotFoundError("Match not found")

        other_profile = await db.get(Profile, match.other_user_id(current_user_id))
        match_name = other_profile.display_name if other_profile else "Your match"
        match_profile = profile_context(other_profile)
        conversation = await recent_messages(db, match.id)

    reply = await get_coach_response(
        user_id=current_user_id,
        user_name=user_name,
        question=request.message,
        match_name=match_name,
        user_profile=profile_context(user_profile),
        match_profile=match_profile,
        conversation=conversation,
        coach_history=[h.model_dump() for h in request.history],
    )

    return CoachResponse(message=reply)
