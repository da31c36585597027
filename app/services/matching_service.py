"""
Mutual-like matching.

A like is a directed edge. When both directions exist the pair gets exactly
one match row, stored with the lexicographically smaller user id first, and
exactly one conversation. There is no lock: a concurrent duplicate insert is
rejected by the unique constraints on matches(user_a_id, user_b_id) and
conversations(match_id), and the loser re-reads the winner's row.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AuthenticationError, NotFoundError, SelfLikeError
from app.core.firebase import firebase_service
from app.db.errors import is_unique_violation
from app.models.match import Conversation, Like, Match
from app.models.user import Profile
from app.schemas.match import MatchParticipant, MatchResponse, MatchWithParticipants

logger = logging.getLogger(__name__)


@dataclass
class MatchResult:
    match: Match
    conversation: Optional[Conversation]
    created: bool = False


@dataclass
class LikeResult:
    like: Optional[Like] = None
    matched: bool = False
    match: Optional[Match] = None
    conversation: Optional[Conversation] = None
    error: Optional[str] = None


def canonical_pair(user_x: str, user_y: str) -> Tuple[str, str]:
    """Order a pair so the lexicographically smaller id comes first."""
    return (user_x, user_y) if user_x < user_y else (user_y, user_x)


async def find_match(db: AsyncSession, user_x: str, user_y: str) -> Optional[Match]:
    """Existing match for the unordered pair, whichever way it was stored."""
    result = await db.execute(
        select(Match)
        .where(
            or_(
                and_(Match.user_a_id == user_x, Match.user_b_id == user_y),
                and_(Match.user_a_id == user_y, Match.user_b_id == user_x),
            )
        )
        .order_by(Match.created_at)
        .limit(1)
    )
    return result.scalars().first()


async def ensure_conversation(db: AsyncSession, match: Match) -> Conversation:
    """Create the match's conversation, or fetch it if it already exists."""
    conversation = Conversation(match_id=match.id)
    try:
        async with db.begin_nested():
            db.add(conversation)
            await db.flush()
    except IntegrityError as e:
        if not is_unique_violation(e):
            raise
        result = await db.execute(
            select(Conversation).where(Conversation.match_id == match.id).limit(1)
        )
        return result.scalar_one()

    try:
        firebase_service.create_chat_room(conversation.id, match.user_a_id, match.user_b_id)
    except Exception as e:
        # Log error but don't fail the match
        logger.warning("Firebase chat room creation failed for %s: %s", conversation.id, e)

    return conversation


async def resolve_match(db: AsyncSession, user_x: str, user_y: str) -> MatchResult:
    """
    Get or create the single match for a pair of users, plus its conversation.
    Shared by the like flow and the manual pairing endpoint.
    """
    user_a, user_b = canonical_pair(user_x, user_y)

    match = await find_match(db, user_a, user_b)
    created = False

    if match is None:
        match = Match(user_a_id=user_a, user_b_id=user_b)
        try:
            async with db.begin_nested():
                db.add(match)
                await db.flush()
        except IntegrityError as e:
            if not is_unique_violation(e):
                raise
            # Lost a race with the other user's like
            logger.info("Match for %s/%s created concurrently, reusing it", user_a, user_b)
            match = await find_match(db, user_a, user_b)
            if match is None:
                raise
        else:
            created = True
            logger.info("Match %s created for %s and %s", match.id, user_a, user_b)

    conversation = await ensure_conversation(db, match)
    return MatchResult(match=match, conversation=conversation, created=created)


class MatchingService:
    """Likes and matches on behalf of one authenticated actor."""

    def __init__(self, db: AsyncSession, actor_id: Optional[str]):
        self.db = db
        self.actor_id = actor_id

    def _require_actor(self) -> str:
        if not self.actor_id:
            raise AuthenticationError()
        return self.actor_id

    async def _require_profile(self, user_id: str, detail: str) -> Profile:
        profile = await self.db.get(Profile, user_id)
        if profile is None:
            raise NotFoundError(detail)
        return profile

    async def like_user(self, to_user_id: str) -> LikeResult:
        """
        Record that the actor likes to_user_id and match them if the like
        is mutual. Liking the same user twice is a no-op.

        Store failures after the like is saved are returned in
        LikeResult.error with the partial result, the like is kept.
        """
        actor_id = self._require_actor()

        if to_user_id == actor_id:
            raise SelfLikeError()

        await self._require_profile(actor_id, "Create your profile first before liking people.")
        await self._require_profile(to_user_id, "Profile not found")

        like = Like(from_user_id=actor_id, to_user_id=to_user_id)
        try:
            async with self.db.begin_nested():
                self.db.add(like)
                await self.db.flush()
        except IntegrityError as e:
            if is_unique_violation(e):
                logger.info("User %s already liked %s", actor_id, to_user_id)
                return LikeResult()
            logger.error("Error inserting like %s -> %s: %s", actor_id, to_user_id, e)
            return LikeResult(error=str(e.orig))
        except SQLAlchemyError as e:
            logger.error("Error inserting like %s -> %s: %s", actor_id, to_user_id, e)
            return LikeResult(error=str(e))

        result = LikeResult(like=like)

        try:
            reciprocal = await self.db.execute(
                select(Like.id)
                .where(
                    and_(
                        Like.from_user_id == to_user_id,
                        Like.to_user_id == actor_id,
                    )
                )
                .limit(1)
            )
            if reciprocal.first() is None:
                return result

            logger.info("Mutual like between %s and %s", actor_id, to_user_id)
            resolved = await resolve_match(self.db, actor_id, to_user_id)
        except SQLAlchemyError as e:
            logger.error("Error creating match for %s and %s: %s", actor_id, to_user_id, e)
            result.error = str(e)
            return result

        result.matched = True
        result.match = resolved.match
        result.conversation = resolved.conversation
        return result

    async def create_match(self, user_a_id: str, user_b_id: str) -> MatchResult:
        """Pair two users without checking likes. Admin/testing only."""
        if user_a_id == user_b_id:
            raise SelfLikeError("Cannot match a user with themselves")

        await self._require_profile(user_a_id, f"Profile {user_a_id} not found")
        await self._require_profile(user_b_id, f"Profile {user_b_id} not found")

        return await resolve_match(self.db, user_a_id, user_b_id)

    async def get_matches(self) -> List[MatchWithParticipants]:
        """All of the actor's matches, each with the counterpart's profile."""
        actor_id = self._require_actor()

        result = await self.db.execute(
            select(Match).where(
                or_(
                    Match.user_a_id == actor_id,
                    Match.user_b_id == actor_id,
                )
            )
        )
        matches = result.scalars().all()
        if not matches:
            return []

        other_ids = {match.other_user_id(actor_id) for match in matches}
        profiles_result = await self.db.execute(
            select(Profile).where(Profile.id.in_(other_ids))
        )
        profiles = {profile.id: profile for profile in profiles_result.scalars().all()}

        def participant(user_id: str) -> Optional[MatchParticipant]:
            if user_id == actor_id:
                return MatchParticipant(id=actor_id)
            profile = profiles.get(user_id)
            return MatchParticipant.model_validate(profile) if profile else None

        return [
            MatchWithParticipants(
                **MatchResponse.model_validate(match).model_dump(),
                user_a=participant(match.user_a_id),
                user_b=participant(match.user_b_id),
            )
            for match in matches
        ]
