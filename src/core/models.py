"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class ConversationKind(str, Enum):
    """Kind of conversation a message belongs to."""

    USER = "user"
    CHAT = "chat"
    CHANNEL = "channel"


@dataclass(frozen=True)
class ConversationIdentity:
    """A direct user, group chat or channel, identified by its numeric id."""

    kind: ConversationKind
    id: int


@dataclass(frozen=True)
class CommandSpec:
    """One entry of the command vocabulary."""

    key: str
    prefix: str
    endpoint: str
    params: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ParsedCommand:
    command: str
    content: str


@dataclass(frozen=True)
class ThreadedCommand:
    """A command recovered from a reply, with the original command's content."""

    command: ParsedCommand
    thread_context: str


@dataclass(frozen=True)
class ReplySnapshot:
    """The parts of a replied-to message the reply resolver needs."""

    sender_username: Optional[str]
    text: str


@dataclass(frozen=True)
class InboundMessage:
    """Minimal message view used by the core processing pipeline."""

    conversation: Optional[ConversationIdentity]
    message_id: int
    date: Optional[datetime]
    text: str
    sender_id: Optional[int]
    sender_username: Optional[str] = None
    sender_first_name: Optional[str] = None
    sender_last_name: Optional[str] = None
    reply_to_message_id: Optional[int] = None


@dataclass(frozen=True)
class MessageRecord:
    """Persisted representation of a single observed message."""

    message_id: int
    date: str
    text: str
    sender_id: Optional[int]
    sender_username: Optional[str] = None
    sender_first_name: Optional[str] = None
    sender_last_name: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        # Sender ids can exceed 2**53, so they are written as decimal strings.
        return {
            "messageId": self.message_id,
            "date": self.date,
            "text": self.text,
            "senderId": str(self.sender_id) if self.sender_id is not None else None,
            "senderUsername": self.sender_username,
            "senderFirstName": self.sender_first_name,
            "senderLastName": self.sender_last_name,
        }
