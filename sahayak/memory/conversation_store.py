"""Conversation store contract and an in-process implementation.

Purpose of this abstraction:
    The orchestration core reads the last user/assistant turns to recover the
    subject of vague follow-ups, and writes each turn for identified users. The
    durable store (a document database in production) is an external collaborator;
    the core depends only on the `ConversationStore` protocol.

In-process store:
    `InMemoryConversationStore` keeps conversations per identity in process memory
    behind a `threading.Lock`. It is the default collaborator for the CLI and the
    HTTP adapter and the reference behavior for tests. Contents are lost on restart.

Ownership rules:
    - A conversation belongs to exactly one identity; lookups with another
      identity behave as if the conversation did not exist.
    - Messages are immutable once stored.
    - Deleting a conversation removes its messages.
"""

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal, Protocol


logger = logging.getLogger(__name__)

Role = Literal["user", "assistant"]

PREVIEW_MAX_CHARS = 100


def build_preview(text: str) -> str:
    """Return the first 100 characters of `text`, marking truncation with `...`."""
    text = text or ""
    if len(text) > PREVIEW_MAX_CHARS:
        return f"{text[:PREVIEW_MAX_CHARS]}..."
    return text


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Message:
    role: Role
    text: str
    created_at: datetime = field(default_factory=_utcnow)


@dataclass
class Conversation:
    id: str
    title: str
    preview: str = ""
    message_count: int = 0
    created_at: datetime = field(default_factory=_utcnow)
    last_message_at: datetime = field(default_factory=_utcnow)


class ConversationStore(Protocol):
    """Read/write operations the orchestration core needs from storage."""

    def get_last_user_message(self, identity: str, conversation_id: str) -> str | None:
        ...

    def get_last_assistant_message(self, identity: str, conversation_id: str) -> str | None:
        ...

    def save_message(self, identity: str, conversation_id: str, role: Role, text: str) -> None:
        ...

    def create_conversation(self, identity: str, title: str, first_message: str = "") -> str:
        ...


class InMemoryConversationStore:
    """Thread-safe process-local `ConversationStore`."""

    def __init__(self):
        self._lock = threading.Lock()
        self._conversations: dict[str, dict[str, Conversation]] = {}
        self._messages: dict[tuple[str, str], list[Message]] = {}

    def create_conversation(self, identity: str, title: str, first_message: str = "") -> str:
        conversation_id = uuid.uuid4().hex
        conversation = Conversation(
            id=conversation_id,
            title=title,
            preview=build_preview(first_message),
        )

        with self._lock:
            self._conversations.setdefault(identity, {})[conversation_id] = conversation
            self._messages[(identity, conversation_id)] = []

        logger.debug("Created conversation %s", conversation_id)
        return conversation_id

    def save_message(self, identity: str, conversation_id: str, role: Role, text: str) -> None:
        """Append one message and update the conversation summary fields.

        Saving into an unknown conversation creates it, matching the merge
        semantics of the document store used in production.
        """
        message = Message(role=role, text=text)

        with self._lock:
            owned = self._conversations.setdefault(identity, {})
            conversation = owned.get(conversation_id)
            if conversation is None:
                conversation = Conversation(id=conversation_id, title="New conversation")
                owned[conversation_id] = conversation

            self._messages.setdefault((identity, conversation_id), []).append(message)

            conversation.preview = build_preview(text)
            conversation.message_count += 1
            conversation.last_message_at = message.created_at

    def _last_text(self, identity: str, conversation_id: str, role: Role) -> str | None:
        with self._lock:
            for message in reversed(self._messages.get((identity, conversation_id), [])):
                if message.role == role:
                    return message.text or None
        return None

    def get_last_user_message(self, identity: str, conversation_id: str) -> str | None:
        return self._last_text(identity, conversation_id, "user")

    def get_last_assistant_message(self, identity: str, conversation_id: str) -> str | None:
        return self._last_text(identity, conversation_id, "assistant")

    def list_conversations(self, identity: str) -> list[Conversation]:
        """Return the identity's conversations, most recently active first."""
        with self._lock:
            conversations = list(self._conversations.get(identity, {}).values())
        return sorted(conversations, key=lambda c: c.last_message_at, reverse=True)

    def list_messages(self, identity: str, conversation_id: str) -> list[Message]:
        with self._lock:
            return list(self._messages.get((identity, conversation_id), []))

    def delete_conversation(self, identity: str, conversation_id: str) -> bool:
        """Delete a conversation and its messages. Returns whether it existed."""
        with self._lock:
            removed = self._conversations.get(identity, {}).pop(conversation_id, None)
            self._messages.pop((identity, conversation_id), None)
        return removed is not None
