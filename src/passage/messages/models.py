"""Data models for the Messages module.

Every model is a frozen snapshot rebuilt from chat.db on each query.
``to_dict()`` renders the camelCase shape the web/WebSocket layer sends to
clients.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

ReactionType = Literal["love", "like", "dislike", "laugh", "emphasis", "question"]


def _drop_none(data: dict, optional: tuple[str, ...]) -> dict:
    for key in optional:
        if data.get(key) is None:
            data.pop(key, None)
    return data


@dataclass(frozen=True)
class Contact:
    """A conversation participant, built from a ``handle`` row."""

    id: str
    display_name: str
    handle_identifier: str  # raw phone number or email, needed for sending
    phone_number: str | None = None
    email: str | None = None
    is_me: bool = False

    def to_dict(self) -> dict:
        return _drop_none(
            {
                "id": self.id,
                "displayName": self.display_name,
                "handleIdentifier": self.handle_identifier,
                "phoneNumber": self.phone_number,
                "email": self.email,
                "isMe": self.is_me,
            },
            ("phoneNumber", "email"),
        )


@dataclass(frozen=True)
class Reaction:
    """A tapback attached to a message."""

    type: ReactionType
    sender_id: str
    sender_name: str
    is_from_me: bool
    emoji: str | None = None  # custom emoji tapbacks (iOS 18+)

    def to_dict(self) -> dict:
        return _drop_none(
            {
                "type": self.type,
                "senderId": self.sender_id,
                "senderName": self.sender_name,
                "isFromMe": self.is_from_me,
                "emoji": self.emoji,
            },
            ("emoji",),
        )


@dataclass(frozen=True)
class Attachment:
    """A file attached to a message."""

    id: str
    message_id: str
    filename: str
    mime_type: str
    total_bytes: int
    transfer_name: str
    file_path: str  # as stored in chat.db; see passage.config.resolve_attachment_path
    is_sticker: bool = False
    hide_attachment: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "messageId": self.message_id,
            "filename": self.filename,
            "mimeType": self.mime_type,
            "totalBytes": self.total_bytes,
            "transferName": self.transfer_name,
            "filePath": self.file_path,
            "isSticker": self.is_sticker,
            "hideAttachment": self.hide_attachment,
        }


@dataclass(frozen=True)
class Message:
    """A regular (non-tapback) message."""

    id: str
    conversation_id: str
    text: str | None
    sender_id: str
    sender_name: str
    timestamp: int  # Unix milliseconds
    is_from_me: bool
    is_read: bool
    is_sent: bool
    is_delivered: bool
    attachments: list[Attachment] = field(default_factory=list)
    reactions: list[Reaction] = field(default_factory=list)
    associated_message_guid: str | None = None
    associated_message_type: int | None = None
    expressive_send_style_id: str | None = None

    def to_dict(self) -> dict:
        return _drop_none(
            {
                "id": self.id,
                "conversationId": self.conversation_id,
                "text": self.text,
                "senderId": self.sender_id,
                "senderName": self.sender_name,
                "timestamp": self.timestamp,
                "isFromMe": self.is_from_me,
                "isRead": self.is_read,
                "isSent": self.is_sent,
                "isDelivered": self.is_delivered,
                "attachments": [a.to_dict() for a in self.attachments],
                "reactions": [r.to_dict() for r in self.reactions],
                "associatedMessageGuid": self.associated_message_guid,
                "associatedMessageType": self.associated_message_type,
                "expressiveSendStyleId": self.expressive_send_style_id,
            },
            ("associatedMessageGuid", "associatedMessageType", "expressiveSendStyleId"),
        )


@dataclass(frozen=True)
class Conversation:
    """A chat with its participants and most recent message."""

    id: str
    display_name: str
    participants: list[Contact] = field(default_factory=list)
    last_message: Message | None = None
    unread_count: int = 0
    is_group: bool = False
    group_photo_path: str | None = None

    def to_dict(self) -> dict:
        return _drop_none(
            {
                "id": self.id,
                "displayName": self.display_name,
                "participants": [p.to_dict() for p in self.participants],
                "lastMessage": self.last_message.to_dict() if self.last_message else None,
                "unreadCount": self.unread_count,
                "isGroup": self.is_group,
                "groupPhotoPath": self.group_photo_path,
            },
            ("groupPhotoPath",),
        )


@dataclass(frozen=True)
class MessagePage:
    """One page of messages, oldest first."""

    messages: list[Message] = field(default_factory=list)
    has_more: bool = False  # lower-bound hint, see MessagesDatabase.get_messages

    def to_dict(self) -> dict:
        return {
            "messages": [m.to_dict() for m in self.messages],
            "hasMore": self.has_more,
        }
