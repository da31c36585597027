import asyncio
import logging
from typing import List, Optional
from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.core.dependencies import get_broadcaster, get_chat_service, get_current_user_id
from app.core.exceptions import SparkError
from app.core.firebase import firebase_service
from app.core.realtime import MessageBroadcaster
from app.core.security import verify_access_token
from app.services.chat_service import ChatService
from app.schemas.chat import (
    ConversationListResponse,
    FirebaseTokenResponse,
    MessageCreate,
    MessageResponse,
    MessageWithSender,
)


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["Chat"])


@router.get("/conversations", response_model=ConversationListResponse)
async def get_conversations(
    chat: ChatService = Depends(get_chat_service),
):
    """Conversations for all of the current user's matches."""
    conversations = await chat.get_conversations()
    return ConversationListResponse(conversations=conversations, total=len(conversations))


@router.get("/conversations/{conversation_id}/messages", response_model=List[MessageWithSender])
async def get_messages(
    conversation_id: str,
    chat: ChatService = Depends(get_chat_service),
):
    """Messages in a conversation, oldest first. Participants only."""
    return await chat.get_messages(conversation_id)


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    conversation_id: str,
    message_data: MessageCreate,
    chat: ChatService = Depends(get_chat_service),
):
    """Send a message. Subscribers of the conversation are notified."""
    return await chat.send_message(conversation_id, message_data.text)


@router.websocket("/conversations/{conversation_id}/ws")
async def conversation_socket(
    websocket: WebSocket,
    conversation_id: str,
    token: str = Query(...),
    db: AsyncSession = Depends(get_db),
    broadcaster: MessageBroadcaster = Depends(get_broadcaster),
):
    """
    Push new messages of one conversation to the client.
    Browsers cannot set headers on WebSocket requests, so the access
    token is passed as a query parameter.
    """
    try:
        user_id = verify_access_token(token).user_id
        await ChatService(db, user_id).get_authorized_conversation(conversation_id)
    except SparkError as e:
        logger.info("Rejected subscription to %s: %s", conversation_id, e.detail)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    finally:
        # Release the connection, the socket may stay open for a long time
        await db.close()

    # Inserts published before the handshake completes wait in the queue
    pending: asyncio.Queue = asyncio.Queue()
    subscription = broadcaster.subscribe(conversation_id, pending.put)
    logger.info("User %s subscribed to conversation %s", user_id, conversation_id)

    async def forward() -> None:
        while True:
            payload = await pending.get()
            await websocket.send_json({"event": "INSERT", "table": "messages", "record": payload})

    sender: Optional[asyncio.Task] = None
    try:
        await websocket.accept()
        sender = asyncio.create_task(forward())
        while True:
            # Client frames are only keep-alives
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        subscription.unsubscribe()
        if sender is not None:
            sender.cancel()
        logger.info("User %s unsubscribed from conversation %s", user_id, conversation_id)


@router.get("/token", response_model=FirebaseTokenResponse)
async def get_firebase_token(
    current_user_id: str = Depends(get_current_user_id),
):
    """
    Get a Firebase custom token for client-side authentication.
    Use this token to listen to mirrored chats in Firebase Realtime Database.
    """
    if not firebase_service.enabled:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Firebase is not configured.",
        )

    try:
        token = firebase_service.get_custom_token(current_user_id)
        return FirebaseTokenResponse(token=token)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to generate Firebase token: {str(e)}",
        )
