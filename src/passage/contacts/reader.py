"""macOS Contacts integration via pyobjc."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from passage.exceptions import ContactResolutionError

logger = logging.getLogger(__name__)

try:
    import objc  # noqa: F401
    from Contacts import (
        CNContactStore,
        CNContactFetchRequest,
        CNContactGivenNameKey,
        CNContactFamilyNameKey,
        CNContactOrganizationNameKey,
        CNContactPhoneNumbersKey,
        CNContactEmailAddressesKey,
    )
    _PYOBJC_AVAILABLE = True
except ImportError:
    _PYOBJC_AVAILABLE = False


@dataclass
class ContactCard:
    """A person from the address book with every phone and email they own."""

    name: str
    phones: list[str] = field(default_factory=list)
    emails: list[str] = field(default_factory=list)


class ContactsReader:
    """Read contacts from macOS Contacts.app via CNContactStore."""

    def __init__(self):
        if not _PYOBJC_AVAILABLE:
            raise ImportError(
                "ContactsReader requires macOS and pyobjc-framework-Contacts. "
                "Install with: pip install passage[contacts]"
            )

    def fetch_all_contacts(self) -> list[ContactCard]:
        """Fetch every contact that has a usable display name."""
        store = CNContactStore.alloc().init()

        keys_to_fetch = [
            CNContactGivenNameKey,
            CNContactFamilyNameKey,
            CNContactOrganizationNameKey,
            CNContactPhoneNumbersKey,
            CNContactEmailAddressesKey,
        ]

        request = CNContactFetchRequest.alloc().initWithKeysToFetch_(keys_to_fetch)
        cards: list[ContactCard] = []

        def _handle_contact(contact, stop):
            first = contact.givenName() or ""
            last = contact.familyName() or ""
            name = f"{first} {last}".strip() or (contact.organizationName() or "")
            if not name:
                return

            phones = []
            for phone_value in contact.phoneNumbers():
                number = phone_value.value().stringValue()
                if number:
                    phones.append(str(number))

            emails = []
            for email_value in contact.emailAddresses():
                email = email_value.value()
                if email:
                    emails.append(str(email))

            cards.append(ContactCard(name=name, phones=phones, emails=emails))

        success, error = store.enumerateContactsWithFetchRequest_error_usingBlock_(
            request, None, _handle_contact
        )

        if not success:
            err_msg = str(error) if error else "Unknown error"
            raise ContactResolutionError(f"Failed to fetch contacts: {err_msg}")

        logger.info(f"Fetched {len(cards)} contacts from macOS Contacts")
        return cards
