"""Environment-driven settings for the Messages proxy."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_MESSAGES_DB_PATH = Path.home() / "Library" / "Messages" / "chat.db"
DEFAULT_ATTACHMENTS_PATH = Path.home() / "Library" / "Messages" / "Attachments"
DEFAULT_CONTACTS_CACHE_PATH = Path.home() / ".passage" / "contacts-cache.json"

STORED_ATTACHMENTS_PREFIX = "~/Library/Messages/Attachments/"


def _path_from_env(name: str, default: Path) -> Path:
    value = os.environ.get(name)
    return Path(value).expanduser() if value else default


@dataclass(frozen=True)
class Settings:
    """Filesystem locations the core and its serving layer read from."""

    messages_db_path: Path = DEFAULT_MESSAGES_DB_PATH
    attachments_path: Path = DEFAULT_ATTACHMENTS_PATH
    contacts_cache_path: Path = DEFAULT_CONTACTS_CACHE_PATH

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from MESSAGES_DB_PATH, ATTACHMENTS_PATH and PASSAGE_CONTACTS_CACHE."""
        return cls(
            messages_db_path=_path_from_env("MESSAGES_DB_PATH", DEFAULT_MESSAGES_DB_PATH),
            attachments_path=_path_from_env("ATTACHMENTS_PATH", DEFAULT_ATTACHMENTS_PATH),
            contacts_cache_path=_path_from_env(
                "PASSAGE_CONTACTS_CACHE", DEFAULT_CONTACTS_CACHE_PATH
            ),
        )


def resolve_attachment_path(root: Path, file_path: str) -> Path | None:
    """Resolve an attachment's stored path to a file under ``root``.

    chat.db stores attachment filenames either as ``~/Library/Messages/Attachments/...``
    or relative to the attachments directory. Returns None when the path is
    empty or escapes ``root``.
    """
    if not file_path:
        return None

    # The stored prefix names the default location; the rest is relative to root
    if file_path.startswith(STORED_ATTACHMENTS_PREFIX):
        file_path = file_path[len(STORED_ATTACHMENTS_PREFIX):]

    root = root.expanduser().resolve()
    candidate = Path(file_path).expanduser()
    if not candidate.is_absolute():
        candidate = root / candidate
    candidate = candidate.resolve()

    if candidate != root and root not in candidate.parents:
        logger.warning(f"Rejected attachment path outside {root}: {file_path}")
        return None
    return candidate
