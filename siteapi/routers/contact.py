"""Contact form endpoint and admin inbox."""

import logging

from fastapi import (
    APIRouter,
    BackgroundTasks,
    Depends,
    HTTPException,
    Path,
    Request,
)

from siteapi.auth import require_admin
from siteapi.config import get_settings
from siteapi.models.contact import (
    Contact,
    ContactIndex,
    ContactReceipt,
    ContactResponse,
    ContactSubmission,
    ContactUpdate,
    NoteCreate,
)
from siteapi.services.contacts import (
    add_note,
    create_contact,
    delete_contact,
    get_contact,
    list_contacts,
    mark_read,
    update_contact,
)
from siteapi.services.email import (
    contact_auto_response,
    contact_notification,
    send_in_background,
)
from siteapi.services.rate_limit import check_rate_limit

router = APIRouter(prefix="/contact", tags=["contact"])
logger = logging.getLogger(__name__)

THANK_YOU = "Thank you for your message. We will get back to you soon!"


async def _get_or_404(contact_id: str) -> Contact:
    contact = await get_contact(contact_id)
    if contact is None:
        raise HTTPException(status_code=404, detail="Contact not found")
    return contact


@router.post("", response_model=ContactResponse, status_code=201)
async def submit_contact(
    submission: ContactSubmission,
    request: Request,
    background_tasks: BackgroundTasks,
):
    """Submit the contact form. Emails go out after the response."""
    client_ip = request.client.host if request.client else "unknown"

    if not check_rate_limit("contact", client_ip):
        raise HTTPException(
            status_code=429, detail="Too many submissions. Try again later."
        )

    # Honeypot (silent discard, indistinguishable from success)
    if submission.website:
        logger.warning("Contact honeypot triggered from %s", client_ip)
        return ContactResponse(message=THANK_YOU)

    contact = await create_contact(submission)

    subject, body = contact_notification(contact)
    background_tasks.add_task(
        send_in_background, get_settings().admin_email, subject, body
    )
    subject, body = contact_auto_response(contact)
    background_tasks.add_task(send_in_background, contact.email, subject, body)

    return ContactResponse(
        message=THANK_YOU,
        contact=ContactReceipt(
            id=contact.id,
            full_name=contact.full_name,
            email=contact.email,
            company=contact.company,
            inquiry_type=contact.inquiry_type,
            created_at=contact.created_at,
        ),
    )


@router.get("", response_model=ContactIndex)
async def list_contact_requests(_admin: str = Depends(require_admin)):
    contacts = await list_contacts()
    return ContactIndex(contacts=contacts, total=len(contacts))


@router.get("/{contact_id}", response_model=Contact)
async def get_contact_request(
    contact_id: str = Path(..., pattern=r"^[a-zA-Z0-9_-]+$", max_length=64),
    _admin: str = Depends(require_admin),
):
    """Get a contact and mark it read."""
    contact = await _get_or_404(contact_id)
    return await mark_read(contact)


@router.put("/{contact_id}", response_model=Contact)
async def update_contact_request(
    update: ContactUpdate,
    contact_id: str = Path(..., pattern=r"^[a-zA-Z0-9_-]+$", max_length=64),
    _admin: str = Depends(require_admin),
):
    contact = await _get_or_404(contact_id)
    return await update_contact(contact, update)


@router.post("/{contact_id}/notes", response_model=Contact, status_code=201)
async def add_contact_note(
    body: NoteCreate,
    contact_id: str = Path(..., pattern=r"^[a-zA-Z0-9_-]+$", max_length=64),
    admin: str = Depends(require_admin),
):
    contact = await _get_or_404(contact_id)
    return await add_note(contact, body.note, admin)


@router.delete("/{contact_id}")
async def delete_contact_request(
    contact_id: str = Path(..., pattern=r"^[a-zA-Z0-9_-]+$", max_length=64),
    _admin: str = Depends(require_admin),
):
    if not await delete_contact(contact_id):
        raise HTTPException(status_code=404, detail="Contact not found")
    return {"status": "deleted", "id": contact_id}
