"""Client-side conversation models"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field

from legalai.models.chat import ChatMessage

DEFAULT_TITLE = "New Chat"
TITLE_LENGTH = 30


def _new_id() -> str:
    return uuid.uuid4().hex


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Message(BaseModel):
    """A message held in local conversation state"""

    id: str = Field(default_factory=_new_id)
    role: Literal["user", "assistant"]
    content: str = ""  # grows in place while an assistant reply streams
    timestamp: datetime = Field(default_factory=_now)

    def to_wire(self) -> ChatMessage:
        """Drop local-only fields (id, timestamp)"""
        return ChatMessage(role=self.role, content=self.content)


class Conversation(BaseModel):
    """An in-memory conversation; never persisted"""

    id: str = Field(default_factory=_new_id)
    title: str = DEFAULT_TITLE
    messages: list[Message] = []
    created_at: datetime = Field(default_factory=_now)

    def find_message(self, message_id: str) -> Message | None:
        for message in self.messages:
            if message.id == message_id:
                return message
        return None

    def wire_messages(self) -> list[ChatMessage]:
        return [m.to_wire() for m in self.messages]


class MessageEvent(BaseModel):
    """Emitted to store subscribers whenever a message's content changes"""

    conversation_id: str
    message_id: str
    content: str


def derive_title(text: str) -> str:
    """Title shown in the conversation list for a first user message"""
    return text[:TITLE_LENGTH] + "..."
