"""Work out which conversations gained a new message since the last check.

The serving layer calls :meth:`ChangeTracker.detect_changes` with a fresh
``list_conversations()`` snapshot every time the database watcher fires, and
broadcasts only what comes back. The last-seen mapping is owned by the
tracker instance, which the serving layer creates and holds.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from passage.messages.models import Conversation, Message

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversationUpdate:
    """A conversation whose newest message hasn't been announced yet."""

    conversation: Conversation
    message: Message


class ChangeTracker:
    """Remembers the last message id announced for each conversation."""

    def __init__(self, last_seen: dict[str, str] | None = None):
        self._last_seen: dict[str, str] = dict(last_seen or {})

    @property
    def last_seen(self) -> dict[str, str]:
        return dict(self._last_seen)

    def prime(self, conversations: Iterable[Conversation]) -> None:
        """Record the current state without reporting it, e.g. at startup."""
        for conversation in conversations:
            if conversation.last_message is not None:
                self._last_seen[conversation.id] = conversation.last_message.id
        logger.info(f"Primed change tracker with {len(self._last_seen)} conversations")

    def detect_changes(self, conversations: Iterable[Conversation]) -> list[ConversationUpdate]:
        """Return conversations whose last message differs from the recorded one."""
        updates: list[ConversationUpdate] = []
        for conversation in conversations:
            message = conversation.last_message
            if message is None or self._last_seen.get(conversation.id) == message.id:
                continue
            self._last_seen[conversation.id] = message.id
            updates.append(ConversationUpdate(conversation=conversation, message=message))
            logger.info(
                f"New message in conversation {conversation.id} "
                f"from {'me' if message.is_from_me else message.sender_name}"
            )
        return updates
