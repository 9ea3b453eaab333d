"""Telethon transport and authenticator adapters.

Implements the core TransportPort and AuthenticatorPort on top of a
TelegramClient, translating Telethon's RPC errors into the core login errors.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from telethon import TelegramClient, errors

from adapters.telegram_mapper import peer_for
from core.login import InvalidCodeError, RateLimitedError
from core.models import ConversationIdentity, ReplySnapshot
from core.ports import CredentialPrompt

LOGGER = logging.getLogger(__name__)


class TelethonTransport:
    """Chat operations backed by a connected TelegramClient."""

    def __init__(self, client: TelegramClient) -> None:
        self._client = client

    def session_token(self) -> str:
        return self._client.session.save()

    async def get_entity(self, identity: ConversationIdentity) -> Any:
        return await self._client.get_entity(peer_for(identity))

    async def refresh_dialogs(self) -> None:
        await self._client.get_dialogs()

    async def get_message(self, identity: ConversationIdentity, message_id: int) -> Optional[ReplySnapshot]:
        message = await self._client.get_messages(peer_for(identity), ids=message_id)
        if message is None:
            return None
        sender = await message.get_sender()
        return ReplySnapshot(
            sender_username=getattr(sender, "username", None),
            text=message.raw_text or "",
        )

    async def send_message(self, identity: ConversationIdentity, text: str, reply_to: Optional[int] = None) -> None:
        await self._client.send_message(peer_for(identity), text, reply_to=reply_to)


class TelethonAuthenticator:
    """One phone-code login attempt per call.

    The code is requested once and reused across attempts; an expired code
    (or a rate limit hit while requesting it) makes the next attempt ask
    Telegram for a fresh one.
    """

    def __init__(self, client: TelegramClient) -> None:
        self._client = client
        self._code_requested = False

    async def authenticate(self, phone: str, prompt: CredentialPrompt) -> None:
        if not self._client.is_connected():
            await self._client.connect()
        if await self._client.is_user_authorized():
            return

        try:
            if not self._code_requested:
                await self._client.send_code_request(phone)
                self._code_requested = True
            try:
                await self._client.sign_in(phone=phone, code=prompt.request_code())
            except errors.SessionPasswordNeededError:
                await self._client.sign_in(password=prompt.request_second_factor())
        except errors.PhoneCodeInvalidError as e:
            raise InvalidCodeError(str(e)) from e
        except errors.PhoneCodeExpiredError as e:
            self._code_requested = False
            raise InvalidCodeError(str(e)) from e
        except errors.FloodWaitError as e:
            raise RateLimitedError(e.seconds) from e
