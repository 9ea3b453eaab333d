"""Telegram-to-core message mapping adapter.

This keeps Telethon-specific details out of the core pipeline.
"""

from __future__ import annotations

from typing import Optional, Union

from telethon.tl.custom import Message
from telethon.tl.types import PeerChannel, PeerChat, PeerUser

from core.models import ConversationIdentity, ConversationKind, InboundMessage

Peer = Union[PeerUser, PeerChat, PeerChannel]


def conversation_from_peer(peer_id) -> Optional[ConversationIdentity]:
    """Map a Telethon peer to a conversation identity, or None if unroutable."""

    if isinstance(peer_id, PeerChannel):
        return ConversationIdentity(ConversationKind.CHANNEL, peer_id.channel_id)
    if isinstance(peer_id, PeerUser):
        return ConversationIdentity(ConversationKind.USER, peer_id.user_id)
    if isinstance(peer_id, PeerChat):
        return ConversationIdentity(ConversationKind.CHAT, peer_id.chat_id)
    return None


def peer_for(identity: ConversationIdentity) -> Peer:
    """Inverse of conversation_from_peer, used when talking back to Telethon."""

    if identity.kind is ConversationKind.CHANNEL:
        return PeerChannel(channel_id=identity.id)
    if identity.kind is ConversationKind.CHAT:
        return PeerChat(chat_id=identity.id)
    return PeerUser(user_id=identity.id)


def _reply_to_message_id(message: Message) -> Optional[int]:
    reply_to = getattr(message, "reply_to", None)
    if not reply_to:
        return None
    return getattr(reply_to, "reply_to_msg_id", None)


def build_inbound(message: Message) -> InboundMessage:
    """Build a core InboundMessage from a Telethon Message."""

    # The sender is only available when Telethon already has it cached; the
    # log simply omits the name fields otherwise.
    sender = getattr(message, "sender", None)
    return InboundMessage(
        conversation=conversation_from_peer(getattr(message, "peer_id", None)),
        message_id=message.id,
        date=getattr(message, "date", None),
        text=message.raw_text or "",
        sender_id=getattr(message, "sender_id", None),
        sender_username=getattr(sender, "username", None),
        sender_first_name=getattr(sender, "first_name", None),
        sender_last_name=getattr(sender, "last_name", None),
        reply_to_message_id=_reply_to_message_id(message),
    )
