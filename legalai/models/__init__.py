"""Models module - Pydantic data models"""

from .chat import (
    DATA_PREFIX,
    DONE_SENTINEL,
    ChatMessage,
    ChatRequest,
    ErrorResponse,
    StreamDelta,
)
from .conversation import Conversation, Message, MessageEvent, derive_title

__all__ = [
    # Wire models
    "DATA_PREFIX",
    "DONE_SENTINEL",
    "ChatMessage",
    "ChatRequest",
    "ErrorResponse",
    "StreamDelta",
    # Conversation models
    "Conversation",
    "Message",
    "MessageEvent",
    "derive_title",
]
