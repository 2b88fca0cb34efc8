"""Messages chat.db access (macOS only)."""

from passage.messages.attributed_body import decode_attributed_body
from passage.messages.changes import ChangeTracker, ConversationUpdate
from passage.messages.database import MessagesDatabase, generate_display_name
from passage.messages.models import (
    Attachment,
    Contact,
    Conversation,
    Message,
    MessagePage,
    Reaction,
    ReactionType,
)
from passage.messages.reactions import get_reaction_type, is_reaction, parse_target_guid
from passage.messages.timestamps import apple_to_unix_ms, unix_ms_to_apple

__all__ = [
    "Attachment",
    "ChangeTracker",
    "Contact",
    "Conversation",
    "ConversationUpdate",
    "Message",
    "MessagePage",
    "MessagesDatabase",
    "Reaction",
    "ReactionType",
    "apple_to_unix_ms",
    "decode_attributed_body",
    "generate_display_name",
    "get_reaction_type",
    "is_reaction",
    "parse_target_guid",
    "unix_ms_to_apple",
]
