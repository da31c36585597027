"""
In-process publish/subscribe for new chat messages.

Subscribers register a callback per conversation and receive every message
inserted into it. Subscriptions must be released with unsubscribe() when the
listener goes away (socket closed, conversation switched).
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict

logger = logging.getLogger(__name__)

MessageCallback = Callable[[Dict[str, Any]], Awaitable[None]]


@dataclass
class Subscription:
    """Handle returned by MessageBroadcaster.subscribe."""
    broadcaster: "MessageBroadcaster"
    conversation_id: str
    subscription_id: int
    active: bool = field(default=True)

    def unsubscribe(self) -> None:
        if self.active:
            self.broadcaster._remove(self.conversation_id, self.subscription_id)
            self.active = False


class MessageBroadcaster:
    """Fan-out of message-insert events, scoped by conversation id."""

    def __init__(self, timeout: float = 5.0):
        # Per-callback delivery limit in seconds
        self.timeout = timeout
        # conversation_id -> {subscription_id: callback}
        self._subscribers: Dict[str, Dict[int, MessageCallback]] = {}
        self._counter = 0

    def subscribe(self, conversation_id: str, callback: MessageCallback) -> Subscription:
        self._counter += 1
        self._subscribers.setdefault(conversation_id, {})[self._counter] = callback
        logger.debug("Subscribed %s to conversation %s", self._counter, conversation_id)
        return Subscription(self, conversation_id, self._counter)

    def _remove(self, conversation_id: str, subscription_id: int) -> None:
        callbacks = self._subscribers.get(conversation_id)
        if not callbacks:
            return
        callbacks.pop(subscription_id, None)
        if not callbacks:
            del self._subscribers[conversation_id]
        logger.debug("Unsubscribed %s from conversation %s", subscription_id, conversation_id)

    def subscriber_count(self, conversation_id: str) -> int:
        return len(self._subscribers.get(conversation_id, {}))

    async def publish(self, conversation_id: str, payload: Dict[str, Any]) -> int:
        """
        Deliver payload to every subscriber of the conversation.
        A callback that fails or takes longer than `timeout` is logged and
        skipped. Returns the number of callbacks that completed in time.
        """
        callbacks = list(self._subscribers.get(conversation_id, {}).values())
        if not callbacks:
            return 0

        results = await asyncio.gather(
            *(asyncio.wait_for(callback(payload), self.timeout) for callback in callbacks),
            return_exceptions=True,
        )
        delivered = 0
        for result in results:
            if isinstance(result, asyncio.TimeoutError):
                logger.warning("Message subscriber timed out for %s", conversation_id)
            elif isinstance(result, Exception):
                logger.warning("Message subscriber failed for %s: %s", conversation_id, result)
            else:
                delivered += 1
        return delivered


# Singleton instance
message_broadcaster = MessageBroadcaster()
