"""Contact request storage and admin workflow."""

import logging
import uuid
from datetime import datetime, timezone

from siteapi.models.contact import (
    Contact,
    ContactNote,
    ContactSubmission,
    ContactUpdate,
)
from siteapi.services.blob_storage import (
    delete_blob,
    list_models,
    read_model,
    validate_blob_path_segment,
    write_model,
)

logger = logging.getLogger(__name__)

CONTACT_PREFIX = "contacts/"

# Statuses that mark a request as answered
_CLOSING_STATUSES = ("resolved", "closed")


def _contact_blob(contact_id: str) -> str:
    return f"{CONTACT_PREFIX}{validate_blob_path_segment(contact_id)}.json"


async def create_contact(submission: ContactSubmission) -> Contact:
    now = datetime.now(timezone.utc)
    contact = Contact(
        id=uuid.uuid4().hex,
        first_name=submission.first_name,
        last_name=submission.last_name,
        email=submission.email,
        company=submission.company or None,
        message=submission.message,
        inquiry_type=submission.inquiry_type,
        created_at=now,
        updated_at=now,
    )
    await write_model(_contact_blob(contact.id), contact, create_only=True)
    logger.info("Stored contact %s (%s)", contact.id, contact.inquiry_type)
    return contact


async def list_contacts() -> list[Contact]:
    """All contacts, newest first."""
    contacts = await list_models(CONTACT_PREFIX, Contact)
    contacts.sort(key=lambda c: c.created_at, reverse=True)
    return contacts


async def get_contact(contact_id: str) -> Contact | None:
    try:
        name = _contact_blob(contact_id)
    except ValueError:
        return None
    return await read_model(name, Contact)


async def save_contact(contact: Contact) -> Contact:
    contact = contact.model_copy(update={"updated_at": datetime.now(timezone.utc)})
    await write_model(_contact_blob(contact.id), contact)
    return contact


async def mark_read(contact: Contact) -> Contact:
    """Flag a contact as read the first time an admin opens it."""
    if contact.is_read:
        return contact
    return await save_contact(contact.model_copy(update={"is_read": True}))


async def update_contact(contact: Contact, update: ContactUpdate) -> Contact:
    """Apply status/priority/assignee changes.

    Moving to resolved or closed records the response date.
    """
    changes = update.model_dump(exclude_none=True)
    if update.status in _CLOSING_STATUSES:
        changes["response_date"] = datetime.now(timezone.utc)
    return await save_contact(contact.model_copy(update=changes))


async def add_note(contact: Contact, note: str, added_by: str) -> Contact:
    entry = ContactNote(
        note=note, added_by=added_by, added_at=datetime.now(timezone.utc)
    )
    return await save_contact(
        contact.model_copy(update={"notes": [*contact.notes, entry]})
    )


async def delete_contact(contact_id: str) -> bool:
    try:
        name = _contact_blob(contact_id)
    except ValueError:
        return False
    return await delete_blob(name)
