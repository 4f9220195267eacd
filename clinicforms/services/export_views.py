from datetime import date, datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel


class PersonRef(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None

    @property
    def display_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    @property
    def initials(self) -> str:
        return f"{(self.first_name or '')[:1]}{(self.last_name or '')[:1]}".upper()


class ClientRef(BaseModel):
    name: Optional[str] = None
    medical_record_number: Optional[str] = None
    date_of_birth: Optional[date] = None
    contact_info: Optional[Dict[str, Any]] = None


class FormRef(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    fields_schema: Any = None


class ExportSubmission(BaseModel):
    """A submission with its form, client and submitter already joined."""
    id: str
    form_id: Optional[str] = None
    client_id: Optional[str] = None
    submitted_by: Optional[str] = None
    reviewed_by: Optional[str] = None
    status: Optional[str] = None
    submission_data: Dict[str, Any] = {}
    notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    form: Optional[FormRef] = None
    client: Optional[ClientRef] = None
    submitter: Optional[PersonRef] = None


def submitter_name(person: Optional[PersonRef]) -> str:
    return (person.display_name if person else "") or "Unknown User"


def submitter_initials(person: Optional[PersonRef]) -> str:
    return (person.initials if person else "") or "UU"


def client_name(client: Optional[ClientRef]) -> str:
    return (client.name if client else None) or "No Client"
