"""Read-only access to macOS Messages chat.db."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from passage.config import Settings
from passage.contacts.formatting import format_phone_number
from passage.contacts.resolver import ContactNameResolver
from passage.exceptions import MessagesDatabaseUnavailableError, MessagesQueryError
from passage.messages import schema
from passage.messages.attributed_body import decode_attributed_body
from passage.messages.models import (
    Attachment,
    Contact,
    Conversation,
    Message,
    MessagePage,
    Reaction,
)
from passage.messages.reactions import group_reactions, is_reaction
from passage.messages.timestamps import apple_to_unix_ms, unix_ms_to_apple

logger = logging.getLogger(__name__)

# Rows fetched per page = (limit + 1) * OVERFETCH_MULTIPLIER, since an unknown
# share of them will be tapbacks that get folded into their targets.
OVERFETCH_MULTIPLIER = 3

DEFAULT_PAGE_SIZE = 100

ME_SENDER_ID = "me"
ME_SENDER_NAME = "Me"
UNKNOWN = "Unknown"


def generate_display_name(participants: list[Contact]) -> str:
    """Name an unnamed chat after its participants."""
    if not participants:
        return UNKNOWN
    if len(participants) <= 2:
        return ", ".join(p.display_name for p in participants)
    return f"{participants[0].display_name} and {len(participants) - 1} others"


def _parse_chat_id(conversation_id: str | int) -> int | None:
    try:
        return int(conversation_id)
    except (TypeError, ValueError):
        return None


class MessagesDatabase:
    """Typed, read-only view over the Messages database.

    One read-only connection is opened at construction and held until
    :meth:`close`. Every call re-reads chat.db, so results always reflect the
    current state of the store; nothing is cached between calls.
    """

    def __init__(
        self,
        db_path: Path | None = None,
        contacts_resolver: ContactNameResolver | None = None,
    ):
        self.db_path = db_path or Settings.from_env().messages_db_path
        self.contacts_resolver = contacts_resolver
        self._conn: sqlite3.Connection | None = self._connect()

    def __enter__(self) -> MessagesDatabase:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _connect(self) -> sqlite3.Connection:
        """Open a read-only connection to chat.db."""
        if not self.db_path.exists():
            raise MessagesDatabaseUnavailableError(
                f"Messages database not found at {self.db_path}. "
                "Make sure you're running on macOS with Messages configured."
            )
        conn = None
        try:
            uri = f"file:{self.db_path}?mode=ro"
            conn = sqlite3.connect(uri, uri=True, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA query_only = ON")
            conn.execute(schema.PROBE).fetchone()
        except (sqlite3.OperationalError, sqlite3.DatabaseError) as e:
            if conn is not None:
                conn.close()
            err = str(e).lower()
            if "unable to open" in err or "authorization denied" in err:
                raise MessagesDatabaseUnavailableError(
                    "Cannot open chat.db — Full Disk Access is required. "
                    "Go to System Settings > Privacy & Security > Full Disk Access "
                    "and enable it for your terminal application."
                ) from e
            raise MessagesDatabaseUnavailableError(f"Failed to open chat.db: {e}") from e

        logger.info(f"Opened {self.db_path} read-only (schema v{schema.SCHEMA_VERSION})")
        return conn

    def close(self) -> None:
        """Release the read-only connection. Safe to call more than once."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _query(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        if self._conn is None:
            raise MessagesQueryError("Messages database is closed")
        try:
            return self._conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise MessagesQueryError(f"chat.db query failed: {e}") from e

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def list_conversations(self) -> list[Conversation]:
        """All chats with at least one message, most recently active first."""
        rows = self._query(schema.LIST_CONVERSATIONS)
        conversations = [self._build_conversation(row) for row in rows]
        logger.debug(f"Listed {len(conversations)} conversations")
        return conversations

    def get_conversation(self, conversation_id: str | int) -> Conversation | None:
        """A single chat, or None if no chat has that id."""
        chat_id = _parse_chat_id(conversation_id)
        if chat_id is None:
            return None
        rows = self._query(schema.GET_CONVERSATION, (chat_id,))
        if not rows:
            return None
        return self._build_conversation(rows[0])

    def get_messages(
        self,
        conversation_id: str | int,
        limit: int = DEFAULT_PAGE_SIZE,
        before: int | None = None,
    ) -> MessagePage:
        """Fetch up to ``limit`` messages older than ``before`` (Unix ms), oldest first.

        Tapbacks never appear as messages; they are attached to the message
        they target. ``has_more`` is a lower bound: a page dominated by
        tapbacks can come back short even though older messages exist.
        """
        if limit < 1:
            raise ValueError(f"limit must be positive, got {limit}")
        chat_id = _parse_chat_id(conversation_id)
        if chat_id is None:
            return MessagePage()

        fetch_limit = (limit + 1) * OVERFETCH_MULTIPLIER
        if before is not None:
            rows = self._query(
                schema.MESSAGES_PAGE_BEFORE,
                (chat_id, unix_ms_to_apple(before), fetch_limit),
            )
        else:
            rows = self._query(schema.MESSAGES_PAGE, (chat_id, fetch_limit))

        reaction_rows: list[sqlite3.Row] = []
        message_rows: list[sqlite3.Row] = []
        for row in rows:
            if is_reaction(row["associated_message_type"]):
                reaction_rows.append(row)
            else:
                message_rows.append(row)

        reactions = group_reactions(reaction_rows, self._sender)
        chat_key = str(chat_id)
        messages = [
            self._row_to_message(row, chat_key, reactions.get(row["guid"], []))
            for row in message_rows[:limit]
        ]
        messages.reverse()
        return MessagePage(messages=messages, has_more=len(message_rows) > limit)

    # ------------------------------------------------------------------
    # Row mapping
    # ------------------------------------------------------------------

    def _build_conversation(self, row: sqlite3.Row) -> Conversation:
        chat_id = row["chat_id"]
        participants = self._get_participants(chat_id)
        display_name = row["display_name"] or (
            generate_display_name(participants)
            if participants
            else self.format_handle_identifier(row["chat_identifier"] or "")
        )
        return Conversation(
            id=str(chat_id),
            display_name=display_name,
            participants=participants,
            last_message=self._get_last_message(chat_id),
            unread_count=row["unread_count"] or 0,
            is_group=len(participants) > 2,
        )

    def _get_participants(self, chat_id: int) -> list[Contact]:
        """Get participants for a chat, most recently active first."""
        participants = []
        for row in self._query(schema.CHAT_PARTICIPANTS, (chat_id,)):
            identifier = row["handle_identifier"] or ""
            is_email = "@" in identifier
            participants.append(
                Contact(
                    id=str(row["handle_id"]),
                    display_name=self.format_handle_identifier(identifier),
                    handle_identifier=identifier,
                    phone_number=identifier if identifier and not is_email else None,
                    email=identifier if is_email else None,
                )
            )
        return participants

    def _get_last_message(self, chat_id: int) -> Message | None:
        """Newest non-tapback message in a chat."""
        rows = self._query(schema.LAST_MESSAGE, (chat_id,))
        if not rows:
            return None
        return self._row_to_message(rows[0], str(chat_id))

    def _get_attachments(self, message_id: int) -> list[Attachment]:
        key = str(message_id)
        return [
            Attachment(
                id=str(row["attachment_id"]),
                message_id=key,
                filename=row["filename"] or "",
                mime_type=row["mime_type"] or "",
                total_bytes=row["total_bytes"] or 0,
                transfer_name=row["transfer_name"] or "",
                file_path=row["filename"] or "",
                is_sticker=bool(row["is_sticker"]),
                hide_attachment=bool(row["hide_attachment"]),
            )
            for row in self._query(schema.MESSAGE_ATTACHMENTS, (message_id,))
        ]

    def _sender(self, row: sqlite3.Row) -> tuple[str, str]:
        """Return ``(sender_id, sender_name)`` for a message row."""
        if row["is_from_me"]:
            return ME_SENDER_ID, ME_SENDER_NAME
        sender_id = str(row["handle_id"]) if row["handle_id"] else "unknown"
        return sender_id, self.format_handle_identifier(row["sender_identifier"] or "")

    def _row_to_message(
        self,
        row: sqlite3.Row,
        conversation_id: str,
        reactions: list[Reaction] | None = None,
    ) -> Message:
        text = row["text"] or decode_attributed_body(row["attributedBody"])
        attachments = (
            self._get_attachments(row["message_id"]) if row["cache_has_attachments"] else []
        )
        sender_id, sender_name = self._sender(row)

        return Message(
            id=row["guid"] or str(row["message_id"]),
            conversation_id=conversation_id,
            text=text or None,
            sender_id=sender_id,
            sender_name=sender_name,
            timestamp=apple_to_unix_ms(row["date"]),
            is_from_me=bool(row["is_from_me"]),
            is_read=bool(row["is_read"]),
            is_sent=bool(row["is_sent"]),
            is_delivered=bool(row["is_delivered"]),
            attachments=attachments,
            reactions=list(reactions or []),
            associated_message_guid=row["associated_message_guid"] or None,
            associated_message_type=row["associated_message_type"] or None,
            expressive_send_style_id=row["expressive_send_style_id"] or None,
        )

    def format_handle_identifier(self, identifier: str) -> str:
        """Display form of a handle: contact name, email, formatted phone, or raw."""
        if not identifier:
            return UNKNOWN
        if self.contacts_resolver is not None:
            name = self.contacts_resolver.resolve(identifier)
            if name:
                return name
        if "@" in identifier:
            return identifier
        return format_phone_number(identifier)
