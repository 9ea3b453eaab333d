from __future__ import annotations

from datetime import datetime, timezone

from telethon.tl.types import PeerChannel, PeerChat, PeerUser

from adapters.telegram_mapper import build_inbound, conversation_from_peer, peer_for
from core.models import ConversationIdentity, ConversationKind


class DummySender:
    def __init__(self, username=None, first_name=None, last_name=None) -> None:
        self.username = username
        self.first_name = first_name
        self.last_name = last_name


class DummyReply:
    def __init__(self, reply_to_msg_id: "int | None") -> None:
        self.reply_to_msg_id = reply_to_msg_id


class DummyMessage:
    def __init__(self, *, peer_id, message_id: int, text: "str | None", sender=None, reply_to=None) -> None:
        self.peer_id = peer_id
        self.id = message_id
        self.raw_text = text
        self.sender = sender
        self.sender_id = 900
        self.reply_to = reply_to
        self.date = datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_conversation_from_peer_variants() -> None:
    assert conversation_from_peer(PeerUser(user_id=1)) == ConversationIdentity(ConversationKind.USER, 1)
    assert conversation_from_peer(PeerChat(chat_id=2)) == ConversationIdentity(ConversationKind.CHAT, 2)
    assert conversation_from_peer(PeerChannel(channel_id=3)) == ConversationIdentity(ConversationKind.CHANNEL, 3)
    assert conversation_from_peer(None) is None


def test_peer_for_roundtrip() -> None:
    for peer in (PeerUser(user_id=1), PeerChat(chat_id=2), PeerChannel(channel_id=3)):
        assert peer_for(conversation_from_peer(peer)) == peer


def test_build_inbound_copies_sender_and_reply() -> None:
    message = DummyMessage(
        peer_id=PeerChat(chat_id=44),
        message_id=10,
        text="hello",
        sender=DummySender(username="alice", first_name="Alice", last_name="Liddell"),
        reply_to=DummyReply(7),
    )

    inbound = build_inbound(message)

    assert inbound.conversation == ConversationIdentity(ConversationKind.CHAT, 44)
    assert inbound.message_id == 10
    assert inbound.text == "hello"
    assert inbound.sender_id == 900
    assert inbound.sender_username == "alice"
    assert inbound.sender_first_name == "Alice"
    assert inbound.sender_last_name == "Liddell"
    assert inbound.reply_to_message_id == 7


def test_build_inbound_without_sender_or_text() -> None:
    message = DummyMessage(peer_id=PeerUser(user_id=5), message_id=11, text=None)

    inbound = build_inbound(message)

    assert inbound.text == ""
    assert inbound.sender_username is None
    assert inbound.reply_to_message_id is None
