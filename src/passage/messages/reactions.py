"""Tapback (reaction) classification and grouping.

chat.db stores every tapback as its own ``message`` row. The row's
``associated_message_type`` says what kind of tapback it is and
``associated_message_guid`` points at the message it reacts to:

    2000-2005   add love / like / dislike / laugh / emphasis / question
    3000-3005   remove the same six kinds

The target guid carries a part prefix, e.g. ``p:0/<guid>`` for the first part
of a multi-part message or ``bp:<guid>`` for a balloon-plugin payload.
"""

from __future__ import annotations

import re
import sqlite3
from typing import Callable, Iterable

from passage.messages.models import Reaction, ReactionType

REACTION_TYPES: dict[int, ReactionType] = {
    2000: "love",
    2001: "like",
    2002: "dislike",
    2003: "laugh",
    2004: "emphasis",
    2005: "question",
}

_ADD_RANGE = (2000, 2005)
_REMOVE_RANGE = (3000, 3005)
_REMOVE_OFFSET = 1000

_TARGET_PREFIX_RE = re.compile(r"^(?:p:\d+/|bp:)")


def is_add_reaction(code: int | None) -> bool:
    return bool(code) and _ADD_RANGE[0] <= code <= _ADD_RANGE[1]


def is_remove_reaction(code: int | None) -> bool:
    return bool(code) and _REMOVE_RANGE[0] <= code <= _REMOVE_RANGE[1]


def is_reaction(code: int | None) -> bool:
    """True if an ``associated_message_type`` marks the row as a tapback."""
    return is_add_reaction(code) or is_remove_reaction(code)


def get_reaction_type(code: int | None) -> ReactionType | None:
    """Map an add or remove code to its reaction type."""
    if not code:
        return None
    if code >= _REMOVE_RANGE[0]:
        code -= _REMOVE_OFFSET
    return REACTION_TYPES.get(code)


def parse_target_guid(associated_guid: str | None) -> str | None:
    """Strip the ``p:N/`` or ``bp:`` prefix from an associated message guid."""
    if not associated_guid:
        return None
    return _TARGET_PREFIX_RE.sub("", associated_guid, count=1) or None


def group_reactions(
    rows: Iterable[sqlite3.Row],
    resolve_sender: Callable[[sqlite3.Row], tuple[str, str]],
) -> dict[str, list[Reaction]]:
    """Group tapback rows by the guid of the message they target.

    ``resolve_sender`` returns ``(sender_id, sender_name)`` for a row. Remove
    rows are skipped: state is recomputed from chat.db on every query, so a
    removed tapback simply isn't among the rows any more.
    """
    grouped: dict[str, list[Reaction]] = {}
    for row in rows:
        code = row["associated_message_type"]
        if not is_add_reaction(code):
            continue
        target = parse_target_guid(row["associated_message_guid"])
        reaction_type = get_reaction_type(code)
        if not target or reaction_type is None:
            continue

        sender_id, sender_name = resolve_sender(row)
        grouped.setdefault(target, []).append(
            Reaction(
                type=reaction_type,
                sender_id=sender_id,
                sender_name=sender_name,
                is_from_me=bool(row["is_from_me"]),
            )
        )
    return grouped
