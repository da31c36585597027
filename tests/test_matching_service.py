"""Tests for the mutual-like matching service."""

import pytest
import pytest_asyncio
from sqlalchemy.exc import OperationalError

from app.core.exceptions import AuthenticationError, NotFoundError, SelfLikeError
from app.models.match import Conversation, Like, Match
from app.services import matching_service
from app.services.matching_service import (
    MatchingService,
    canonical_pair,
    ensure_conversation,
    resolve_match,
)
from tests.conftest import count_rows, create_profile, fetch_all


async def like(factory, actor_id: str, to_user_id: str):
    async with factory() as db:
        result = await MatchingService(db, actor_id).like_user(to_user_id)
        await db.commit()
        return result


@pytest_asyncio.fixture
async def users(session_factory):
    for user_id in ("u1", "u2", "u3"):
        await create_profile(session_factory, user_id)
    return session_factory


class TestCanonicalPair:
    def test_smaller_id_first(self):
        assert canonical_pair("u2", "u1") == ("u1", "u2")
        assert canonical_pair("u1", "u2") == ("u1", "u2")

    def test_lexicographic_not_numeric(self):
        assert canonical_pair("u10", "u9") == ("u10", "u9")


class TestLikeUser:
    @pytest.mark.asyncio
    async def test_one_sided_like_does_not_match(self, users):
        result = await like(users, "u1", "u2")

        assert result.like is not None
        assert result.like.from_user_id == "u1"
        assert result.like.to_user_id == "u2"
        assert result.matched is False
        assert result.match is None
        assert result.error is None
        assert await count_rows(users, Match) == 0

    @pytest.mark.asyncio
    async def test_reciprocal_like_creates_canonical_match(self, users):
        await like(users, "u1", "u2")
        result = await like(users, "u2", "u1")

        assert result.matched is True
        assert result.match.user_a_id == "u1"
        assert result.match.user_b_id == "u2"
        assert result.conversation is not None
        assert result.conversation.match_id == result.match.id
        assert await count_rows(users, Match) == 1
        assert await count_rows(users, Conversation) == 1

    @pytest.mark.asyncio
    async def test_order_of_likes_does_not_change_stored_pair(self, users):
        await like(users, "u2", "u1")
        result = await like(users, "u1", "u2")

        assert result.matched is True
        assert (result.match.user_a_id, result.match.user_b_id) == ("u1", "u2")

    @pytest.mark.asyncio
    async def test_duplicate_like_is_a_silent_no_op(self, users):
        await like(users, "u1", "u2")
        second = await like(users, "u1", "u2")

        assert second.like is None
        assert second.matched is False
        assert second.error is None
        assert await count_rows(users, Like) == 1

    @pytest.mark.asyncio
    async def test_self_like_is_rejected(self, users):
        with pytest.raises(SelfLikeError):
            await like(users, "u1", "u1")
        assert await count_rows(users, Like) == 0

    @pytest.mark.asyncio
    async def test_unknown_target(self, users):
        with pytest.raises(NotFoundError):
            await like(users, "u1", "ghost")

    @pytest.mark.asyncio
    async def test_actor_without_profile(self, users):
        with pytest.raises(NotFoundError):
            await like(users, "nobody", "u1")

    @pytest.mark.asyncio
    async def test_requires_actor(self, users):
        with pytest.raises(AuthenticationError):
            await like(users, None, "u1")

    @pytest.mark.asyncio
    async def test_failure_after_like_returns_partial_result(self, users, monkeypatch):
        async def broken_resolve(db, user_x, user_y):
            raise OperationalError("INSERT INTO matches", {}, Exception("connection lost"))

        monkeypatch.setattr(matching_service, "resolve_match", broken_resolve)

        await like(users, "u1", "u2")
        result = await like(users, "u2", "u1")

        assert result.like is not None
        assert result.matched is False
        assert result.error is not None
        assert "connection lost" in result.error
        # The like is kept even though the match failed
        assert await count_rows(users, Like, Like.from_user_id == "u2") == 1
        assert await count_rows(users, Match) == 0


class TestResolveMatch:
    @pytest.mark.asyncio
    async def test_both_orders_give_one_row(self, users):
        async with users() as db:
            first = await MatchingService(db, "u1").create_match("u2", "u1")
            await db.commit()
        async with users() as db:
            second = await MatchingService(db, "u1").create_match("u1", "u2")
            await db.commit()

        assert first.created is True
        assert second.created is False
        assert first.match.id == second.match.id
        assert (first.match.user_a_id, first.match.user_b_id) == ("u1", "u2")
        assert await count_rows(users, Match) == 1
        assert await count_rows(users, Conversation) == 1

    @pytest.mark.asyncio
    async def test_reuses_non_canonical_historical_row(self, users):
        async with users() as db:
            db.add(Match(id="legacy", user_a_id="u3", user_b_id="u1"))
            await db.commit()

        async with users() as db:
            result = await resolve_match(db, "u1", "u3")
            await db.commit()

        assert result.match.id == "legacy"
        assert result.created is False
        assert await count_rows(users, Match) == 1
        conversations = await fetch_all(users, Conversation)
        assert [c.match_id for c in conversations] == ["legacy"]

    @pytest.mark.asyncio
    async def test_concurrent_insert_reuses_winning_row(self, users, monkeypatch):
        # The other user's like committed its match between our lookup and insert
        async with users() as db:
            db.add(Match(id="winner", user_a_id="u1", user_b_id="u2"))
            await db.commit()

        real_find_match = matching_service.find_match
        calls = []

        async def find_match_missing_once(db, user_a, user_b):
            calls.append((user_a, user_b))
            if len(calls) == 1:
                return None
            return await real_find_match(db, user_a, user_b)

        monkeypatch.setattr(matching_service, "find_match", find_match_missing_once)

        async with users() as db:
            result = await resolve_match(db, "u2", "u1")
            await db.commit()

        assert len(calls) == 2
        assert result.match.id == "winner"
        assert result.created is False
        assert result.conversation.match_id == "winner"
        assert await count_rows(users, Match) == 1
        assert await count_rows(users, Conversation) == 1

    @pytest.mark.asyncio
    async def test_conversation_created_once(self, users):
        async with users() as db:
            result = await resolve_match(db, "u1", "u2")
            again = await ensure_conversation(db, result.match)
            await db.commit()

        assert again.id == result.conversation.id
        assert await count_rows(users, Conversation) == 1

    @pytest.mark.asyncio
    async def test_create_match_rejects_same_user(self, users):
        async with users() as db:
            with pytest.raises(SelfLikeError):
                await MatchingService(db, "u1").create_match("u1", "u1")

    @pytest.mark.asyncio
    async def test_create_match_needs_both_profiles(self, users):
        async with users() as db:
            with pytest.raises(NotFoundError):
                await MatchingService(db, "u1").create_match("u1", "ghost")


class TestGetMatches:
    @pytest.mark.asyncio
    async def test_both_users_see_the_same_single_match(self, users):
        await like(users, "u1", "u2")
        await like(users, "u2", "u1")
        # Repeating likes changes nothing
        await like(users, "u1", "u2")
        await like(users, "u2", "u1")

        for actor, other in (("u1", "u2"), ("u2", "u1")):
            async with users() as db:
                matches = await MatchingService(db, actor).get_matches()
            assert len(matches) == 1
            ids = {matches[0].user_a_id, matches[0].user_b_id}
            assert ids == {actor, other}

    @pytest.mark.asyncio
    async def test_own_side_is_placeholder(self, users):
        await like(users, "u1", "u2")
        await like(users, "u2", "u1")

        async with users() as db:
            matches = await MatchingService(db, "u2").get_matches()

        match = matches[0]
        # u2 is user_b: only its id is filled in
        assert match.user_b.id == "u2"
        assert match.user_b.display_name is None
        assert match.user_a.id == "u1"
        assert match.user_a.display_name == "User u1"

    @pytest.mark.asyncio
    async def test_no_matches(self, users):
        await like(users, "u1", "u2")
        async with users() as db:
            assert await MatchingService(db, "u1").get_matches() == []

    @pytest.mark.asyncio
    async def test_missing_counterpart_profile(self, users):
        async with users() as db:
            db.add(Match(user_a_id="u1", user_b_id="deleted-user"))
            await db.commit()

        async with users() as db:
            matches = await MatchingService(db, "u1").get_matches()

        assert matches[0].user_a.id == "u1"
        assert matches[0].user_b is None
