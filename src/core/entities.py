"""Conversation label resolution with a process-lifetime cache."""

from __future__ import annotations

import logging
from typing import Any

from core.models import ConversationIdentity
from core.ports import TransportPort

LOGGER = logging.getLogger(__name__)


def label_from_entity(entity: Any, entity_id: int) -> str:
    """Pick the most readable name: title, then username, then first name."""

    for attribute in ("title", "username", "first_name"):
        value = getattr(entity, attribute, None)
        if value:
            return str(value)
    return str(entity_id)


class EntityResolver:
    """Resolve conversation labels, with an id-keyed cache.

    Successful lookups are cached for the lifetime of the process. Failed
    lookups fall back to the numeric id and are not cached, so a transient
    error does not pin a conversation to its id-based log file.
    """

    def __init__(self, transport: TransportPort, refresh_dialogs_on_miss: bool = True) -> None:
        self._transport = transport
        self._refresh_dialogs_on_miss = refresh_dialogs_on_miss
        self._cache: dict[int, str] = {}

    def cached(self, entity_id: int) -> "str | None":
        return self._cache.get(entity_id)

    async def resolve_label(self, identity: ConversationIdentity) -> str:
        if identity.id in self._cache:
            return self._cache[identity.id]

        try:
            entity = await self._transport.get_entity(identity)
        except Exception:
            LOGGER.warning("Failed to fetch entity %s", identity.id, exc_info=True)
            if not self._refresh_dialogs_on_miss:
                return str(identity.id)
            entity = await self._retry_after_refresh(identity)
            if entity is None:
                return str(identity.id)

        label = label_from_entity(entity, identity.id)
        self._cache[identity.id] = label
        return label

    async def _retry_after_refresh(self, identity: ConversationIdentity) -> Any:
        # Telethon can only resolve ids it has seen; loading dialogs fills its
        # entity cache for chats the session has not touched yet.
        try:
            await self._transport.refresh_dialogs()
            return await self._transport.get_entity(identity)
        except Exception:
            LOGGER.warning(
                "Failed to fetch entity %s after refreshing dialogs; using id as label",
                identity.id,
                exc_info=True,
            )
            return None
