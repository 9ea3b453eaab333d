"""Telegram client factory for telequery.

The session is a Telethon StringSession taken from SESSION_STRING, so the
credential lives in the environment rather than in a .session file next to
the code. An empty string starts a fresh session.
"""

from __future__ import annotations

import logging

from telethon import TelegramClient
from telethon.sessions import StringSession

from settings import Settings


def build_client(settings: Settings) -> TelegramClient:
    """Create a Telethon client from loaded settings."""

    logging.getLogger(__name__).info("Initializing Telegram client")

    return TelegramClient(
        StringSession(settings.session_string),
        settings.api_id,
        settings.api_hash,
        connection_retries=settings.connection_retries,
    )
