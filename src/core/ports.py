"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for the chat transport, credential input,
the language-model dispatcher and log storage so that the core can be reused
with different backends.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Optional, Protocol

from core.models import ConversationIdentity, ReplySnapshot


class TransportPort(Protocol):
    """Chat operations required by the core pipeline."""

    async def get_entity(self, identity: ConversationIdentity) -> Any:
        ...

    async def refresh_dialogs(self) -> None:
        ...

    async def get_message(self, identity: ConversationIdentity, message_id: int) -> Optional[ReplySnapshot]:
        ...

    async def send_message(self, identity: ConversationIdentity, text: str, reply_to: Optional[int] = None) -> None:
        ...


class CredentialPrompt(Protocol):
    """Interactive source of one-time codes and second-factor passwords."""

    def request_code(self) -> str:
        ...

    def request_second_factor(self) -> str:
        ...


class AuthenticatorPort(Protocol):
    """Single authentication attempt against the transport."""

    async def authenticate(self, phone: str, prompt: CredentialPrompt) -> None:
        ...


class DispatcherPort(Protocol):
    async def dispatch(self, command_key: str, content: str, context: str) -> str:
        ...


class ContextSourcePort(Protocol):
    async def load(self) -> str:
        ...


class LogStorePort(Protocol):
    """Persistence for per-conversation, per-day message logs."""

    def read(self, label: str, day: date) -> list[dict[str, Any]]:
        ...

    def write(self, label: str, day: date, records: list[dict[str, Any]]) -> None:
        ...
