"""Read-only proxy over the macOS Messages database."""

from passage.config import Settings
from passage.contacts import ContactsResolver
from passage.messages import MessagesDatabase

__all__ = [
    "ContactsResolver",
    "MessagesDatabase",
    "Settings",
]
