"""Client module - Stream consumer and conversation state"""

from .consumer import ChatController, ChatStreamClient, SendState
from .store import ConversationStore
from .stream_parser import DeltaStreamParser, parse_sse_line

__all__ = [
    "ChatController",
    "ChatStreamClient",
    "SendState",
    "ConversationStore",
    "DeltaStreamParser",
    "parse_sse_line",
]
