"""Thread replies to the account's own commands back into the grammar."""

from __future__ import annotations

import logging
from typing import Optional

from core.commands import CommandGrammar
from core.models import InboundMessage, ParsedCommand, ThreadedCommand
from core.ports import TransportPort

LOGGER = logging.getLogger(__name__)


def _normalize_username(username: Optional[str]) -> str:
    return (username or "").strip().lstrip("@").lower()


class ReplyContextResolver:
    """Turn a plain reply to one of our commands into a follow-up command.

    The reply's text becomes the new question and the replied-to command's
    content is carried forward as conversation context.
    """

    def __init__(self, transport: TransportPort, grammar: CommandGrammar, own_username: str) -> None:
        self._transport = transport
        self._grammar = grammar
        self._own_username = _normalize_username(own_username)

    async def resolve(self, message: InboundMessage) -> Optional[ThreadedCommand]:
        if message.reply_to_message_id is None or message.conversation is None:
            return None

        try:
            prior = await self._transport.get_message(message.conversation, message.reply_to_message_id)
        except Exception:
            LOGGER.exception("Error fetching replied message %s", message.reply_to_message_id)
            return None

        if prior is None:
            return None
        if _normalize_username(prior.sender_username) != self._own_username:
            return None

        original = self._grammar.parse(prior.text)
        if original is None:
            return None

        return ThreadedCommand(
            command=ParsedCommand(command=original.command, content=(message.text or "").strip()),
            thread_context=original.content,
        )
