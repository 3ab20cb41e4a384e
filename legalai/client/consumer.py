"""
Stream Consumer - Sends a conversation to the relay and streams the reply
into the conversation store
"""

from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import AsyncIterator, Callable, Sequence
from contextlib import asynccontextmanager
from typing import Any, Optional

import aiohttp

from legalai.client.stream_parser import DeltaStreamParser
from legalai.client.store import ConversationStore
from legalai.models.chat import ChatMessage
from legalai.services.errors import ChatClientError, RelayStatusError, StreamUnavailableError

logger = logging.getLogger(__name__)

Notifier = Callable[[str, str], None]

FAILURE_TITLE = "Error"
FAILURE_DESCRIPTION = "Failed to get response. Please try again."
BUSY_TITLE = "Please wait"
BUSY_DESCRIPTION = "LegalAI is still answering in this conversation."


class SendState(str, enum.Enum):
    IDLE = "idle"
    AWAITING_RESPONSE = "awaiting-response"
    STREAMING = "streaming"
    SUCCEEDED = "settled-success"
    FAILED = "settled-error"


class ChatStreamClient:
    """HTTP side of the consumer: POST {messages}, hand back the body stream"""

    def __init__(
        self,
        endpoint: str,
        *,
        api_key: str | None = None,
        session: Optional[aiohttp.ClientSession] = None,
        connect_timeout: float = 10,
        read_timeout: float = 90,
    ):
        self.endpoint = endpoint
        self.api_key = api_key
        self._session = session
        self._timeout = aiohttp.ClientTimeout(total=None, connect=connect_timeout, sock_read=read_timeout)

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
            headers["apikey"] = self.api_key
        return headers

    @asynccontextmanager
    async def _request(self, payload: dict[str, Any]):
        """POST with either the injected session or a short-lived one"""
        if self._session is not None:
            async with self._session.post(self.endpoint, json=payload, headers=self._headers()) as response:
                yield response
            return
        async with aiohttp.ClientSession(timeout=self._timeout) as session:
            async with session.post(self.endpoint, json=payload, headers=self._headers()) as response:
                yield response

    @asynccontextmanager
    async def open_stream(self, messages: Sequence[ChatMessage]) -> AsyncIterator[AsyncIterator[bytes]]:
        """Open the relay stream; yields an iterator over raw body chunks.

        Raises RelayStatusError on a non-success status and
        StreamUnavailableError when the response has no body stream.
        """
        payload = {"messages": [m.model_dump() for m in messages]}
        async with self._request(payload) as response:
            if not 200 <= response.status < 300:
                raise RelayStatusError(response.status)
            # A 204 or an explicit zero-length body carries no event stream
            if response.content is None or response.status == 204 or response.content_length == 0:
                raise StreamUnavailableError("Relay response has no body stream")
            yield response.content.iter_any()


def _log_notification(title: str, description: str):
    logger.warning("%s: %s", title, description)


class ChatController:
    """Runs sends against a ConversationStore.

    One send per conversation at a time: a second send while a reply is
    streaming is rejected with a notification. Failures never propagate out
    of ``send``; they become a single notification and whatever text had
    already arrived stays in the assistant message.
    """

    def __init__(
        self,
        store: ConversationStore,
        client: ChatStreamClient,
        notify: Notifier | None = None,
    ):
        self.store = store
        self.client = client
        self.notify = notify or _log_notification
        self._in_flight: dict[str, asyncio.Task] = {}
        self._states: dict[str, SendState] = {}
        self._cancelled: set[str] = set()

    def state(self, conversation_id: str) -> SendState:
        return self._states.get(conversation_id, SendState.IDLE)

    def is_busy(self, conversation_id: str) -> bool:
        return conversation_id in self._in_flight

    async def send(self, conversation_id: str, text: str) -> bool:
        """Append the user message and stream the assistant reply.

        Returns True when the reply streamed to completion.
        """
        if not text.strip():
            return False
        if self.is_busy(conversation_id):
            self.notify(BUSY_TITLE, BUSY_DESCRIPTION)
            return False

        self.store.append_message(conversation_id, "user", text)
        task = asyncio.create_task(self._stream_reply(conversation_id))
        self._in_flight[conversation_id] = task
        try:
            return await task
        except asyncio.CancelledError:
            if conversation_id in self._cancelled:
                logger.info("Send to %s cancelled", conversation_id)
                return False
            raise
        finally:
            self._in_flight.pop(conversation_id, None)
            self._cancelled.discard(conversation_id)

    async def delete_conversation(self, conversation_id: str):
        """Stop any reply streaming into the conversation, then remove it"""
        task = self._in_flight.get(conversation_id)
        if task is not None and not task.done():
            self._cancelled.add(conversation_id)
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        self._states.pop(conversation_id, None)
        self.store.delete_conversation(conversation_id)

    def _apply(self, conversation_id: str, message_id: str, accumulated: str, deltas: list[str]) -> str:
        for delta in deltas:
            accumulated += delta
            self.store.update_message_content(conversation_id, message_id, accumulated)
        return accumulated

    async def _stream_reply(self, conversation_id: str) -> bool:
        store = self.store
        self._states[conversation_id] = SendState.AWAITING_RESPONSE
        store.set_typing(conversation_id, True)
        outcome = SendState.FAILED
        try:
            wire = store.get(conversation_id).wire_messages()
            parser = DeltaStreamParser()
            accumulated = ""

            async with self.client.open_stream(wire) as chunks:
                reply = store.append_message(conversation_id, "assistant")
                async for chunk in chunks:
                    self._states[conversation_id] = SendState.STREAMING
                    accumulated = self._apply(conversation_id, reply.id, accumulated, parser.feed(chunk))
                accumulated = self._apply(conversation_id, reply.id, accumulated, parser.flush())

            logger.info("Reply to %s complete (%d chars)", conversation_id, len(accumulated))
            outcome = SendState.SUCCEEDED
            return True
        except (ChatClientError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("Chat send to %s failed: %r", conversation_id, e)
            self.notify(FAILURE_TITLE, FAILURE_DESCRIPTION)
            return False
        finally:
            if conversation_id in store:
                self._states[conversation_id] = outcome
                store.set_typing(conversation_id, False)
