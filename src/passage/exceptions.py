"""Unified exception hierarchy for passage."""


class PassageError(Exception):
    """Base exception for all passage errors."""


# Messages database
class MessagesDatabaseError(PassageError):
    """Base exception for Messages chat.db operations."""


class MessagesDatabaseUnavailableError(MessagesDatabaseError):
    """chat.db could not be opened (missing, locked, or no Full Disk Access)."""


class MessagesQueryError(MessagesDatabaseError):
    """A read query against chat.db failed."""


# Contacts
class ContactsError(PassageError):
    """Base exception for contacts operations."""


class ContactResolutionError(ContactsError):
    """Failed to fetch or look up contacts."""
