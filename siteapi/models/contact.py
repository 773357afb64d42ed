"""Contact form models."""

from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, EmailStr, Field, computed_field

from siteapi.models.base import CamelModel

InquiryType = Literal["TECH SERVICES", "TRAINING", "INTERNSHIP"]
ContactStatus = Literal["new", "in_progress", "resolved", "closed"]
ContactPriority = Literal["low", "medium", "high", "urgent"]


class ContactSubmission(CamelModel):
    """Public contact form submission."""

    model_config = ConfigDict(str_strip_whitespace=True)

    first_name: str = Field(..., min_length=2, max_length=50)
    last_name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    company: str | None = Field(None, min_length=2, max_length=100)
    message: str = Field(..., min_length=10, max_length=5000)
    inquiry_type: InquiryType
    website: str = ""  # Honeypot


class ContactNote(CamelModel):
    note: str
    added_by: str
    added_at: datetime


class Contact(CamelModel):
    """A stored contact request."""

    id: str
    first_name: str
    last_name: str
    email: str
    company: str | None = None
    message: str
    inquiry_type: InquiryType
    status: ContactStatus = "new"
    priority: ContactPriority = "medium"
    is_read: bool = False
    assigned_to: str | None = None
    notes: list[ContactNote] = []
    response_date: datetime | None = None
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class ContactReceipt(CamelModel):
    """The subset of a contact echoed back to the public submitter."""

    id: str
    full_name: str
    email: str
    company: str | None = None
    inquiry_type: InquiryType
    created_at: datetime


class ContactResponse(CamelModel):
    message: str
    contact: ContactReceipt | None = None


class ContactUpdate(CamelModel):
    status: ContactStatus | None = None
    priority: ContactPriority | None = None
    assigned_to: str | None = None


class NoteCreate(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    note: str = Field(..., min_length=1, max_length=2000)


class ContactIndex(CamelModel):
    contacts: list[Contact]
    total: int
