from __future__ import annotations

import asyncio
from typing import Optional

from core.entities import EntityResolver, label_from_entity
from core.models import ConversationIdentity, ConversationKind


class DummyEntity:
    def __init__(
        self,
        *,
        title: Optional[str] = None,
        username: Optional[str] = None,
        first_name: Optional[str] = None,
    ) -> None:
        self.title = title
        self.username = username
        self.first_name = first_name


class FakeTransport:
    def __init__(self, entity=None, failures: int = 0) -> None:
        self.entity = entity
        self.failures = failures
        self.lookups = 0
        self.refreshes = 0

    async def get_entity(self, identity: ConversationIdentity):
        self.lookups += 1
        if self.failures > 0:
            self.failures -= 1
            raise ValueError("Could not find the input entity")
        return self.entity

    async def refresh_dialogs(self) -> None:
        self.refreshes += 1


USER = ConversationIdentity(ConversationKind.USER, 42)


def test_label_precedence() -> None:
    assert label_from_entity(DummyEntity(title="Team", username="team", first_name="T"), 1) == "Team"
    assert label_from_entity(DummyEntity(username="alice", first_name="Alice"), 1) == "alice"
    assert label_from_entity(DummyEntity(first_name="Alice"), 1) == "Alice"
    assert label_from_entity(DummyEntity(), 7) == "7"
    assert label_from_entity(object(), 8) == "8"


def test_resolution_is_cached() -> None:
    transport = FakeTransport(entity=DummyEntity(username="alice"))
    resolver = EntityResolver(transport)

    first = asyncio.run(resolver.resolve_label(USER))
    transport.entity = DummyEntity(username="renamed")
    second = asyncio.run(resolver.resolve_label(USER))

    assert first == second == "alice"
    assert transport.lookups == 1
    assert resolver.cached(42) == "alice"


def test_failure_falls_back_to_id_and_is_not_cached() -> None:
    transport = FakeTransport(entity=DummyEntity(title="Group"), failures=2)
    resolver = EntityResolver(transport)

    assert asyncio.run(resolver.resolve_label(USER)) == "42"
    assert transport.refreshes == 1
    assert resolver.cached(42) is None

    assert asyncio.run(resolver.resolve_label(USER)) == "Group"
    assert resolver.cached(42) == "Group"


def test_dialog_refresh_recovers_lookup() -> None:
    transport = FakeTransport(entity=DummyEntity(title="Channel"), failures=1)
    resolver = EntityResolver(transport)

    assert asyncio.run(resolver.resolve_label(ConversationIdentity(ConversationKind.CHANNEL, 5))) == "Channel"
    assert transport.refreshes == 1
    assert transport.lookups == 2


def test_refresh_can_be_disabled() -> None:
    transport = FakeTransport(entity=DummyEntity(title="Channel"), failures=1)
    resolver = EntityResolver(transport, refresh_dialogs_on_miss=False)

    assert asyncio.run(resolver.resolve_label(USER)) == "42"
    assert transport.refreshes == 0
    assert transport.lookups == 1
