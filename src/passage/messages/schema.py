"""SQL for the macOS Messages chat.db schema.

chat.db declares no foreign keys; the relationships these queries rely on are:

    chat ─< chat_message_join >─ message ─< message_attachment_join >─ attachment
    chat ─< chat_handle_join  >─ handle
    message.handle_id ─> handle.ROWID   (0 for messages sent from this Mac)

Keep every query here so a schema change in a new macOS release only touches
this module and the row mappers in ``passage.messages.database``.
"""

# Bump when the queries are adapted to a new chat.db layout
SCHEMA_VERSION = 1

# Tapback rows carry associated_message_type 2000-2005 (add) or 3000-3005 (remove)
_NOT_REACTION = (
    "(m.associated_message_type IS NULL"
    " OR ((m.associated_message_type NOT BETWEEN 2000 AND 2005)"
    " AND (m.associated_message_type NOT BETWEEN 3000 AND 3005)))"
)

_UNREAD_COUNT = """
    (SELECT COUNT(*)
     FROM chat_message_join ucmj
     JOIN message um ON um.ROWID = ucmj.message_id
     WHERE ucmj.chat_id = c.ROWID AND um.is_read = 0 AND um.is_from_me = 0)
"""

LIST_CONVERSATIONS = f"""
    SELECT
        c.ROWID AS chat_id,
        c.chat_identifier,
        c.display_name,
        {_UNREAD_COUNT} AS unread_count,
        MAX(m.date) AS last_message_date
    FROM chat c
    JOIN chat_message_join cmj ON cmj.chat_id = c.ROWID
    JOIN message m ON m.ROWID = cmj.message_id
    GROUP BY c.ROWID
    ORDER BY last_message_date DESC
"""

GET_CONVERSATION = f"""
    SELECT
        c.ROWID AS chat_id,
        c.chat_identifier,
        c.display_name,
        {_UNREAD_COUNT} AS unread_count
    FROM chat c
    WHERE c.ROWID = ?
"""

# Most recently active participants first; handles that never wrote go last
CHAT_PARTICIPANTS = """
    SELECT
        h.ROWID AS handle_id,
        h.id AS handle_identifier,
        h.service
    FROM handle h
    JOIN chat_handle_join chj ON chj.handle_id = h.ROWID
    WHERE chj.chat_id = ?
    ORDER BY (
        SELECT MAX(pm.date)
        FROM message pm
        JOIN chat_message_join pcmj ON pcmj.message_id = pm.ROWID
        WHERE pcmj.chat_id = chj.chat_id AND pm.handle_id = h.ROWID
    ) DESC, h.ROWID
"""

# Result column -> source expression for every message row the mappers consume
MESSAGE_COLUMNS = {
    "message_id": "m.ROWID",
    "guid": "m.guid",
    "text": "m.text",
    "attributedBody": "m.attributedBody",
    "handle_id": "m.handle_id",
    "service": "m.service",
    "date": "m.date",
    "is_from_me": "m.is_from_me",
    "is_read": "m.is_read",
    "is_sent": "m.is_sent",
    "is_delivered": "m.is_delivered",
    "cache_has_attachments": "m.cache_has_attachments",
    "associated_message_guid": "m.associated_message_guid",
    "associated_message_type": "m.associated_message_type",
    "expressive_send_style_id": "m.expressive_send_style_id",
    "sender_identifier": "h.id",
}

_MESSAGE_SELECT_LIST = ",\n        ".join(
    f"{expr} AS {name}" for name, expr in MESSAGE_COLUMNS.items()
)

_MESSAGE_SELECT = f"""
    SELECT
        {_MESSAGE_SELECT_LIST}
    FROM message m
    LEFT JOIN handle h ON h.ROWID = m.handle_id
    JOIN chat_message_join cmj ON cmj.message_id = m.ROWID
    WHERE cmj.chat_id = ?
"""

LAST_MESSAGE = f"""
    {_MESSAGE_SELECT}
      AND {_NOT_REACTION}
    ORDER BY m.date DESC
    LIMIT 1
"""

# Reactions are fetched too so they can be grouped onto their targets
MESSAGES_PAGE = f"""
    {_MESSAGE_SELECT}
    ORDER BY m.date DESC
    LIMIT ?
"""

MESSAGES_PAGE_BEFORE = f"""
    {_MESSAGE_SELECT}
      AND m.date < ?
    ORDER BY m.date DESC
    LIMIT ?
"""

MESSAGE_ATTACHMENTS = """
    SELECT
        a.ROWID AS attachment_id,
        a.filename,
        a.mime_type,
        a.total_bytes,
        a.transfer_name,
        a.is_sticker,
        a.hide_attachment
    FROM attachment a
    JOIN message_attachment_join maj ON maj.attachment_id = a.ROWID
    WHERE maj.message_id = ?
    ORDER BY a.ROWID
"""

# Cheap probe so an unreadable or non-SQLite file fails at open time
PROBE = "SELECT COUNT(*) FROM sqlite_master"
