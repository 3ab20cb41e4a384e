"""Relay wire models"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


class ChatMessage(BaseModel):
    """One turn of the conversation as sent over the wire"""

    role: Literal["user", "assistant"]  # system is owned by the relay
    content: str


class ChatRequest(BaseModel):
    """Request body for the relay endpoint"""

    messages: list[ChatMessage]


class ErrorResponse(BaseModel):
    """Flat error body returned for every relay failure"""

    error: str


class Delta(BaseModel):
    content: str | None = None


class Choice(BaseModel):
    delta: Delta = Delta()


class StreamDelta(BaseModel):
    """Parsed shape of one upstream stream event"""

    choices: list[Choice] = []

    def text(self) -> str | None:
        """Content of the first choice's delta, if any"""
        if not self.choices:
            return None
        return self.choices[0].delta.content or None
