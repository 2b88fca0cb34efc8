"""Tests for exception hierarchy."""

from passage.exceptions import (
    ContactResolutionError,
    ContactsError,
    MessagesDatabaseError,
    MessagesDatabaseUnavailableError,
    MessagesQueryError,
    PassageError,
)


def test_all_inherit_from_base():
    for exc_class in [
        MessagesDatabaseError,
        MessagesDatabaseUnavailableError,
        MessagesQueryError,
        ContactsError,
        ContactResolutionError,
    ]:
        assert issubclass(exc_class, PassageError)


def test_messages_hierarchy():
    assert issubclass(MessagesDatabaseUnavailableError, MessagesDatabaseError)
    assert issubclass(MessagesQueryError, MessagesDatabaseError)


def test_contacts_hierarchy():
    assert issubclass(ContactResolutionError, ContactsError)


def test_exception_message():
    e = MessagesQueryError("test error")
    assert str(e) == "test error"
