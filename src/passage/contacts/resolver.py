"""Resolve raw handles (phone numbers, emails) to contact names.

The resolver keeps two lookup tables built from the address book and persists
them as JSON so a restarted server can show names immediately while a fresh
AppleScript scan runs in the background.
"""

from __future__ import annotations

import json
import logging
import subprocess
import time
from abc import ABC, abstractmethod
from pathlib import Path

from passage.config import Settings
from passage.contacts.formatting import normalize_email, normalize_phone
from passage.contacts.reader import ContactCard
from passage.exceptions import ContactResolutionError

logger = logging.getLogger(__name__)

# Shorter keys are too ambiguous to match on
MIN_PHONE_KEY_LENGTH = 7

APPLESCRIPT_TIMEOUT = 120

_FETCH_ALL_SCRIPT = '''
tell application "Contacts"
    launch
    delay 1
    set output to ""
    repeat with aPerson in people
        try
            set personName to name of aPerson
            repeat with aPhone in phones of aPerson
                try
                    set output to output & personName & "|phone|" & (value of aPhone) & linefeed
                end try
            end repeat
            repeat with anEmail in emails of aPerson
                try
                    set output to output & personName & "|email|" & (value of anEmail) & linefeed
                end try
            end repeat
        end try
    end repeat
    return output
end tell
'''


class ContactNameResolver(ABC):
    """Anything that can turn a handle identifier into a display name."""

    @abstractmethod
    def resolve(self, identifier: str) -> str | None:
        """Return a name for ``identifier``, or None. Must never raise."""
        ...


def fetch_contacts_via_applescript(timeout: int = APPLESCRIPT_TIMEOUT) -> list[ContactCard]:
    """Dump every phone number and email in Contacts.app via osascript."""
    try:
        result = subprocess.run(
            ["osascript", "-e", _FETCH_ALL_SCRIPT],
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        raise ContactResolutionError(f"Contacts export timed out after {timeout}s") from e
    except FileNotFoundError as e:
        raise ContactResolutionError("osascript not found — requires macOS") from e

    if result.returncode != 0:
        raise ContactResolutionError(f"Contacts export failed: {result.stderr.strip()}")

    logger.info(f"Contacts export returned {len(result.stdout)} bytes")
    return parse_applescript_output(result.stdout)


def parse_applescript_output(output: str) -> list[ContactCard]:
    """Parse ``name|phone|value`` / ``name|email|value`` lines into cards."""
    cards: dict[str, ContactCard] = {}
    for line in output.strip().split("\n"):
        parts = line.strip().split("|")
        if len(parts) != 3:
            continue
        name, kind, value = (p.strip() for p in parts)
        if not name or not value:
            continue

        card = cards.setdefault(name, ContactCard(name=name))
        if kind == "phone":
            card.phones.append(value)
        elif kind == "email":
            card.emails.append(value)
    return list(cards.values())


class ContactsResolver(ContactNameResolver):
    """Phone/email → name lookup backed by an in-memory cache."""

    def __init__(self, cache_path: Path | None = None):
        self.cache_path = cache_path or Settings.from_env().contacts_cache_path
        self._phones: dict[str, str] = {}
        self._emails: dict[str, str] = {}
        self._ready = False

    @property
    def is_ready(self) -> bool:
        """True once a cache has been loaded or built."""
        return self._ready

    def resolve(self, identifier: str) -> str | None:
        if not identifier or not self._ready:
            return None
        if "@" in identifier:
            return self._emails.get(normalize_email(identifier))
        return self._phones.get(normalize_phone(identifier))

    def build_cache(self, contacts: list[ContactCard] | None = None) -> None:
        """Rebuild the lookup tables and persist them.

        Without ``contacts`` the address book is exported via AppleScript; pass
        ``ContactsReader().fetch_all_contacts()`` to use the Contacts framework
        instead.
        """
        if contacts is None:
            contacts = fetch_contacts_via_applescript()

        phones: dict[str, str] = {}
        emails: dict[str, str] = {}
        for card in contacts:
            for phone in card.phones:
                key = normalize_phone(phone)
                if len(key) >= MIN_PHONE_KEY_LENGTH:
                    phones[key] = card.name
            for email in card.emails:
                key = normalize_email(email)
                if key:
                    emails[key] = card.name

        self._phones = phones
        self._emails = emails
        self._ready = True
        logger.info(f"Contacts cache built: {len(phones)} phone numbers, {len(emails)} emails")
        self.save_to_cache()

    def load_from_cache(self, path: Path | None = None) -> bool:
        """Load lookup tables from the JSON cache. Returns False if unavailable."""
        path = path or self.cache_path
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            phones = {str(k): str(v) for k, v in data["phones"]}
            emails = {str(k): str(v) for k, v in data["emails"]}
            saved_at = float(data.get("timestamp", 0))
        except FileNotFoundError:
            return False
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error(f"Error loading contacts cache {path}: {e}")
            return False

        self._phones = phones
        self._emails = emails
        self._ready = True

        age_minutes = round((time.time() * 1000 - saved_at) / 60000)
        logger.info(
            f"Loaded contacts from cache: {len(phones)} phones, "
            f"{len(emails)} emails ({age_minutes} min old)"
        )
        return True

    def save_to_cache(self, path: Path | None = None) -> None:
        """Write the lookup tables to the JSON cache file."""
        path = path or self.cache_path
        payload = {
            "phones": sorted(self._phones.items()),
            "emails": sorted(self._emails.items()),
            "timestamp": int(time.time() * 1000),
        }
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as e:
            logger.error(f"Error saving contacts cache {path}: {e}")
            return
        logger.info(f"Saved contacts cache to {path}")
