import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import (
    AuthenticationError,
    ConversationAccessError,
    InvalidMessageError,
    NotFoundError,
)
from app.core.firebase import FirebaseService, firebase_service
from app.core.realtime import MessageBroadcaster
from app.models.match import Conversation, Match, Message
from app.models.user import Profile
from app.schemas.chat import (
    ConversationMatch,
    ConversationWithMatch,
    MessageResponse,
    MessageWithSender,
)
from app.schemas.user import ProfileSummary

logger = logging.getLogger(__name__)


class ChatService:
    """
    Conversations and messages for one authenticated actor.

    Access is filtered in SQL and the participant check is repeated on the
    loaded rows before anything is returned or written.
    """

    def __init__(
        self,
        db: AsyncSession,
        actor_id: Optional[str],
        broadcaster: Optional[MessageBroadcaster] = None,
        mirror: FirebaseService = firebase_service,
    ):
        self.db = db
        self.actor_id = actor_id
        self.broadcaster = broadcaster
        self.mirror = mirror

    def _require_actor(self) -> str:
        if not self.actor_id:
            raise AuthenticationError()
        return self.actor_id

    async def _summaries(self, user_ids: Iterable[str]) -> Dict[str, ProfileSummary]:
        ids = set(user_ids)
        if not ids:
            return {}
        result = await self.db.execute(select(Profile).where(Profile.id.in_(ids)))
        return {
            profile.id: ProfileSummary.model_validate(profile)
            for profile in result.scalars().all()
        }

    async def get_authorized_conversation(self, conversation_id: str) -> Conversation:
        """Load a conversation and make sure the actor is part of its match."""
        actor_id = self._require_actor()

        result = await self.db.execute(
            select(Conversation)
            .options(selectinload(Conversation.match))
            .where(Conversation.id == conversation_id)
        )
        conversation = result.scalar_one_or_none()

        if conversation is None:
            raise NotFoundError("Conversation not found")

        if conversation.match is None or not conversation.match.involves(actor_id):
            logger.warning("User %s denied access to conversation %s", actor_id, conversation_id)
            raise ConversationAccessError()

        return conversation

    async def get_conversations(self) -> List[ConversationWithMatch]:
        actor_id = self._require_actor()

        result = await self.db.execute(
            select(Conversation)
            .join(Match, Conversation.match_id == Match.id)
            .options(selectinload(Conversation.match))
            .where(
                or_(
                    Match.user_a_id == actor_id,
                    Match.user_b_id == actor_id,
                )
            )
            .order_by(Conversation.created_at.desc())
        )
        conversations = [
            conversation
            for conversation in result.scalars().all()
            if conversation.match is not None and conversation.match.involves(actor_id)
        ]

        profile_ids = set()
        for conversation in conversations:
            profile_ids.update((conversation.match.user_a_id, conversation.match.user_b_id))
        summaries = await self._summaries(profile_ids)

        return [
            ConversationWithMatch(
                id=conversation.id,
                match_id=conversation.match_id,
                created_at=conversation.created_at,
                match=ConversationMatch(
                    id=conversation.match.id,
                    user_a_id=conversation.match.user_a_id,
                    user_b_id=conversation.match.user_b_id,
                    created_at=conversation.match.created_at,
                    user_a=summaries.get(conversation.match.user_a_id),
                    user_b=summaries.get(conversation.match.user_b_id),
                ),
            )
            for conversation in conversations
        ]

    async def get_messages(self, conversation_id: str) -> List[MessageWithSender]:
        """Messages oldest first, each with its sender's summary."""
        await self.get_authorized_conversation(conversation_id)

        result = await self.db.execute(
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(Message.created_at.asc(), Message.id.asc())
        )
        messages = result.scalars().all()
        if not messages:
            return []

        senders = await self._summaries(message.sender_id for message in messages)

        return [
            MessageWithSender(
                **MessageResponse.model_validate(message).model_dump(),
                sender=senders.get(message.sender_id)
                or ProfileSummary(id=message.sender_id, display_name="Unknown", photo_urls=[]),
            )
            for message in messages
        ]

    async def send_message(self, conversation_id: str, text: str) -> MessageResponse:
        """
        Append a message, commit it, then notify subscribers of the
        conversation and mirror it to Firebase.
        """
        actor_id = self._require_actor()

        text = (text or "").strip()
        if not text:
            raise InvalidMessageError()

        await self.get_authorized_conversation(conversation_id)

        message = Message(conversation_id=conversation_id, sender_id=actor_id, text=text)
        self.db.add(message)
        await self.db.commit()
        await self.db.refresh(message)

        response = MessageResponse.model_validate(message)
        payload = response.model_dump(mode="json")

        if self.broadcaster is not None:
            await self.broadcaster.publish(conversation_id, payload)

        try:
            self.mirror.push_message(conversation_id, payload)
        except Exception as e:
            logger.warning("Firebase mirror failed for message %s: %s", message.id, e)

        return response
