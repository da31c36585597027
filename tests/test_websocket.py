"""Tests for the conversation WebSocket."""

import asyncio
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from app.config import settings
from app.core.dependencies import get_broadcaster
from app.core.exceptions import ConversationAccessError
from app.core.realtime import MessageBroadcaster
from app.db.session import get_db
from app.main import app
from app.services.chat_service import ChatService
from tests.conftest import make_token

URL = f"{settings.API_V1_PREFIX}/chat/conversations/conv-1/ws"


@pytest.fixture
def ws_broadcaster():
    broadcaster = MessageBroadcaster()
    db = AsyncMock()

    async def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_broadcaster] = lambda: broadcaster
    yield broadcaster
    app.dependency_overrides.clear()


def test_invalid_token_rejected(ws_broadcaster):
    client = TestClient(app)
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect(f"{URL}?token=garbage"):
            pass
    assert exc_info.value.code == 1008
    assert ws_broadcaster.subscriber_count("conv-1") == 0


def test_outsider_rejected(ws_broadcaster, monkeypatch):
    async def deny(self, conversation_id):
        raise ConversationAccessError()

    monkeypatch.setattr(ChatService, "get_authorized_conversation", deny)

    client = TestClient(app)
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect(f"{URL}?token={make_token('u3')}"):
            pass
    assert exc_info.value.code == 1008


def test_participant_receives_inserts(ws_broadcaster, monkeypatch):
    async def allow(self, conversation_id):
        return None

    monkeypatch.setattr(ChatService, "get_authorized_conversation", allow)

    with TestClient(app) as client:
        with client.websocket_connect(f"{URL}?token={make_token('u1')}") as ws:
            assert ws_broadcaster.subscriber_count("conv-1") == 1

            client.portal.call(ws_broadcaster.publish, "conv-1", {"id": "m1", "text": "hi"})

            assert ws.receive_json() == {
                "event": "INSERT",
                "table": "messages",
                "record": {"id": "m1", "text": "hi"},
            }


class EagerBroadcaster(MessageBroadcaster):
    """Publishes one insert as soon as a socket subscribes, before the handshake ends."""

    def subscribe(self, conversation_id, callback):
        subscription = super().subscribe(conversation_id, callback)
        asyncio.get_running_loop().create_task(
            self.publish(conversation_id, {"id": "early", "text": "sent during handshake"})
        )
        return subscription


def test_insert_during_handshake_is_delivered(monkeypatch):
    async def allow(self, conversation_id):
        return None

    async def override_get_db():
        yield AsyncMock()

    broadcaster = EagerBroadcaster()
    monkeypatch.setattr(ChatService, "get_authorized_conversation", allow)
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_broadcaster] = lambda: broadcaster
    try:
        client = TestClient(app)
        with client.websocket_connect(f"{URL}?token={make_token('u1')}") as ws:
            message = ws.receive_json()
    finally:
        app.dependency_overrides.clear()

    assert message["record"] == {"id": "early", "text": "sent during handshake"}
