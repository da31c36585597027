"""Tests for the AI dating coach with the OpenAI client faked."""

from types import SimpleNamespace

import pytest
from openai import OpenAIError

from app.agents import config as ai_config
from app.agents.config import Provider
from app.config import settings
from app.models.match import Message
from app.services.matching_service import resolve_match
from tests.conftest import auth_headers, create_profile

URL = f"{settings.API_V1_PREFIX}/coach/ask"


class FakeCompletions:
    """Stands in for AsyncOpenAI().chat.completions."""

    def __init__(self, reply: str = "", error: Exception = None):
        self.reply = reply
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def use_providers(monkeypatch, *completions):
    providers = tuple(
        Provider(
            name=f"provider-{i}",
            client=SimpleNamespace(chat=SimpleNamespace(completions=c)),
            model=f"model-{i}",
        )
        for i, c in enumerate(completions)
    )
    monkeypatch.setattr(ai_config, "get_providers", lambda: providers)


@pytest.mark.asyncio
async def test_not_configured(client):
    response = await client.post(URL, json={"message": "Hi"}, headers=auth_headers("u1"))
    assert response.status_code == 503


@pytest.mark.asyncio
async def test_requires_auth(client, monkeypatch):
    use_providers(monkeypatch, FakeCompletions("hello"))
    response = await client.post(URL, json={"message": "Hi"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_general_question(client, session_factory, monkeypatch):
    await create_profile(session_factory, "u1", display_name="Alice", interests=["hiking"])
    completions = FakeCompletions("  Lead with your hiking photos.  ")
    use_providers(monkeypatch, completions)

    response = await client.post(
        URL,
        json={
            "message": "How can I improve my dating profile?",
            "history": [
                {"role": "user", "content": "Hi coach"},
                {"role": "assistant", "content": "Hi Alice!"},
            ],
        },
        headers=auth_headers("u1"),
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Lead with your hiking photos."

    [call] = completions.calls
    assert call["model"] == "model-0"
    roles = [m["role"] for m in call["messages"]]
    assert roles == ["system", "user", "assistant", "user"]
    assert "Alice" in call["messages"][0]["content"]
    assert "hiking" in call["messages"][-1]["content"]
    assert "How can I improve my dating profile?" in call["messages"][-1]["content"]


@pytest.mark.asyncio
async def test_match_context_included(client, session_factory, monkeypatch):
    await create_profile(session_factory, "u1", display_name="Alice")
    await create_profile(session_factory, "u2", display_name="Bob", bio="Jazz pianist")
    async with session_factory() as db:
        result = await resolve_match(db, "u1", "u2")
        db.add(Message(conversation_id=result.conversation.id, sender_id="u2", text="Coffee sometime?"))
        await db.commit()
        match_id = result.match.id

    completions = FakeCompletions("Say yes if you want to!")
    use_providers(monkeypatch, completions)

    response = await client.post(
        URL,
        json={"message": "Is he interested?", "match_id": match_id},
        headers=auth_headers("u1"),
    )

    assert response.status_code == 200
    prompt = completions.calls[0]["messages"][-1]["content"]
    assert "Bob" in prompt
    assert "Jazz pianist" in prompt
    assert "Bob: Coffee sometime?" in prompt


@pytest.mark.asyncio
async def test_match_of_other_users_hidden(client, session_factory, monkeypatch):
    for user_id in ("u1", "u2", "u3"):
        await create_profile(session_factory, user_id)
    async with session_factory() as db:
        result = await resolve_match(db, "u1", "u2")
        await db.commit()
        match_id = result.match.id

    completions = FakeCompletions("nope")
    use_providers(monkeypatch, completions)

    response = await client.post(
        URL,
        json={"message": "Tell me about them", "match_id": match_id},
        headers=auth_headers("u3"),
    )

    assert response.status_code == 404
    assert completions.calls == []


@pytest.mark.asyncio
async def test_falls_back_to_second_provider(client, monkeypatch):
    primary = FakeCompletions(error=OpenAIError("rate limited"))
    backup = FakeCompletions("Try a picnic.")
    use_providers(monkeypatch, primary, backup)

    response = await client.post(
        URL, json={"message": "First date ideas?"}, headers=auth_headers("u1")
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Try a picnic."
    assert len(primary.calls) == 1
    assert backup.calls[0]["model"] == "model-1"


@pytest.mark.asyncio
async def test_all_providers_failing(client, monkeypatch):
    use_providers(monkeypatch, FakeCompletions(error=OpenAIError("down")))

    response = await client.post(URL, json={"message": "Hello?"}, headers=auth_headers("u1"))

    assert response.status_code == 502


@pytest.mark.asyncio
async def test_blank_message_rejected(client, monkeypatch):
    use_providers(monkeypatch, FakeCompletions("hi"))
    response = await client.post(URL, json={"message": "   "}, headers=auth_headers("u1"))
    assert response.status_code == 422
