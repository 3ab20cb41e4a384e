"""In-memory conversation store with change notifications"""

from __future__ import annotations

import logging
from collections.abc import Callable

from legalai.models.conversation import Conversation, Message, MessageEvent, derive_title

logger = logging.getLogger(__name__)

MessageListener = Callable[[MessageEvent], None]
TypingListener = Callable[[str, bool], None]


class ConversationStore:
    """Holds the session's conversations and tells subscribers about changes.

    Every content change is addressed by (conversation id, message id), so
    a reply streaming into one conversation never touches another, even if
    the active conversation changes mid-stream.
    """

    def __init__(self):
        self._conversations: dict[str, Conversation] = {}
        self._typing: set[str] = set()
        self._message_listeners: list[MessageListener] = []
        self._typing_listeners: list[TypingListener] = []
        self.active_id: str | None = None
        self.select(self.create_conversation().id)

    # ========== Subscriptions ==========

    def subscribe(self, listener: MessageListener) -> Callable[[], None]:
        """Register a message listener; returns an unsubscribe callable"""
        self._message_listeners.append(listener)
        return lambda: self._message_listeners.remove(listener)

    def subscribe_typing(self, listener: TypingListener) -> Callable[[], None]:
        self._typing_listeners.append(listener)
        return lambda: self._typing_listeners.remove(listener)

    def _emit(self, conversation_id: str, message: Message):
        event = MessageEvent(
            conversation_id=conversation_id,
            message_id=message.id,
            content=message.content,
        )
        for listener in list(self._message_listeners):
            listener(event)

    # ========== Conversations ==========

    def create_conversation(self) -> Conversation:
        conversation = Conversation()
        self._conversations[conversation.id] = conversation
        return conversation

    def get(self, conversation_id: str) -> Conversation:
        try:
            return self._conversations[conversation_id]
        except KeyError:
            raise KeyError(f"Unknown conversation: {conversation_id}") from None

    def __contains__(self, conversation_id: str) -> bool:
        return conversation_id in self._conversations

    def list_conversations(self) -> list[Conversation]:
        """Newest first"""
        return list(reversed(self._conversations.values()))

    @property
    def active(self) -> Conversation:
        return self.get(self.active_id)

    def select(self, conversation_id: str):
        self.get(conversation_id)
        self.active_id = conversation_id

    def delete_conversation(self, conversation_id: str):
        """Remove a conversation; a fresh one replaces the last one deleted"""
        self.get(conversation_id)
        del self._conversations[conversation_id]
        self._typing.discard(conversation_id)

        if not self._conversations:
            self.create_conversation()
        if self.active_id == conversation_id:
            self.active_id = self.list_conversations()[0].id
        logger.debug("Deleted conversation %s", conversation_id)

    # ========== Messages ==========

    def append_message(self, conversation_id: str, role: str, content: str = "") -> Message:
        conversation = self.get(conversation_id)
        message = Message(role=role, content=content)
        if role == "user" and not conversation.messages:
            conversation.title = derive_title(content)
        conversation.messages.append(message)
        self._emit(conversation_id, message)
        return message

    def update_message_content(self, conversation_id: str, message_id: str, text: str):
        """Replace the content of one message, addressed by id"""
        message = self.get(conversation_id).find_message(message_id)
        if message is None:
            raise KeyError(f"Unknown message {message_id} in {conversation_id}")
        message.content = text
        self._emit(conversation_id, message)

    # ========== Typing indicator ==========

    def set_typing(self, conversation_id: str, typing: bool):
        if typing:
            self._typing.add(conversation_id)
        else:
            self._typing.discard(conversation_id)
        for listener in list(self._typing_listeners):
            listener(conversation_id, typing)

    def is_typing(self, conversation_id: str) -> bool:
        return conversation_id in self._typing
