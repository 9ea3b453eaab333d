"""Core message processing pipeline.

This module is integration-agnostic. It only relies on ports for the chat
transport, context loading and dispatch, enabling other adapters without
changes here.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from core.commands import CommandGrammar
from core.entities import EntityResolver
from core.message_log import MessageLog
from core.models import InboundMessage, MessageRecord, ParsedCommand
from core.ports import ContextSourcePort, DispatcherPort, TransportPort
from core.reply_context import ReplyContextResolver

LOGGER = logging.getLogger(__name__)


def build_record(message: InboundMessage) -> MessageRecord:
    """Build the persisted record, falling back to the current time for the date."""

    if message.date is not None:
        moment = message.date
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
    else:
        LOGGER.warning("Message %s has no date; using current time", message.message_id)
        moment = datetime.now(timezone.utc)

    return MessageRecord(
        message_id=message.message_id,
        date=moment.astimezone(timezone.utc).isoformat(),
        text=message.text,
        sender_id=message.sender_id,
        sender_username=message.sender_username,
        sender_first_name=message.sender_first_name,
        sender_last_name=message.sender_last_name,
    )


def compose_context(base_context: str, thread_context: Optional[str]) -> str:
    """Append the threaded command content to the loaded context."""

    parts = [part for part in (base_context.strip(), (thread_context or "").strip()) if part]
    return "\n\n".join(parts)


class MessageProcessor:
    """Orchestrates labeling, logging, command parsing and replies."""

    def __init__(
        self,
        transport: TransportPort,
        resolver: EntityResolver,
        grammar: CommandGrammar,
        reply_resolver: ReplyContextResolver,
        dispatcher: DispatcherPort,
        context_source: ContextSourcePort,
        message_log: MessageLog,
    ) -> None:
        self._transport = transport
        self._resolver = resolver
        self._grammar = grammar
        self._reply_resolver = reply_resolver
        self._dispatcher = dispatcher
        self._context_source = context_source
        self._message_log = message_log

    async def handle(self, message: InboundMessage) -> None:
        """Process one inbound message through the core pipeline."""

        if message.conversation is None:
            LOGGER.info("Unable to determine the conversation for message %s", message.message_id)
            return

        label = await self._resolver.resolve_label(message.conversation)
        LOGGER.debug("Received %s message in %s", message.conversation.kind.value, label)

        # Logging happens before any command work so a failing reply never
        # costs us the record.
        self._message_log.record(label, build_record(message))

        command = self._grammar.parse(message.text)
        thread_context: Optional[str] = None
        if command is None and message.reply_to_message_id is not None:
            threaded = await self._reply_resolver.resolve(message)
            if threaded is not None:
                command = threaded.command
                thread_context = threaded.thread_context

        if command is None:
            return

        await self._reply(message, command, thread_context)

    async def _reply(self, message: InboundMessage, command: ParsedCommand, thread_context: Optional[str]) -> None:
        try:
            base_context = await self._context_source.load()
            answer = await self._dispatcher.dispatch(
                command.command,
                command.content,
                compose_context(base_context, thread_context),
            )
            prefix = self._grammar.get(command.command).prefix
            await self._transport.send_message(
                message.conversation,
                f"{prefix} {answer}",
                reply_to=message.message_id,
            )
            LOGGER.info("Automated reply sent for %s", command.command)
        except Exception:
            LOGGER.exception("Error sending automated reply")
