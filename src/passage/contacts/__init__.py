"""Contact name resolution for Messages handles."""

from passage.contacts.formatting import format_phone_number, normalize_email, normalize_phone
from passage.contacts.reader import ContactCard, ContactsReader
from passage.contacts.resolver import (
    ContactNameResolver,
    ContactsResolver,
    fetch_contacts_via_applescript,
)

__all__ = [
    "ContactCard",
    "ContactNameResolver",
    "ContactsReader",
    "ContactsResolver",
    "fetch_contacts_via_applescript",
    "format_phone_number",
    "normalize_email",
    "normalize_phone",
]
