"""Flattening of submissions and clients into export rows.

Column headers for form answers are field labels, not ids: two form versions
that reuse a label land in the same column.
"""
from datetime import date, datetime
from typing import Any, Dict, Optional

from clinicforms.models import Client
from clinicforms.services.export_views import (ExportSubmission, PersonRef, client_name,
                                               submitter_name)
from clinicforms.services.form_schema import FormSchema, parse_schema_lenient

ExportRow = Dict[str, Any]


def format_date_for_export(value) -> str:
    if not value:
        return ""
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _join(value) -> Any:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return value


def flatten_submission(submission: ExportSubmission, schema: Optional[FormSchema],
                       join_arrays: bool = True) -> ExportRow:
    row: ExportRow = {
        "Submitted By": submitter_name(submission.submitter),
        "Client Name": client_name(submission.client),
    }
    if schema is None:
        return row
    data = submission.submission_data or {}
    for field in schema.fields:
        value = data.get(field.id)
        if value is None:
            value = ""
        elif join_arrays:
            value = _join(value)
        elif isinstance(value, (list, tuple)):
            value = list(value)
        row[field.display_label] = value
    return row


def flatten_submission_record(submission: ExportSubmission) -> ExportRow:
    row: ExportRow = {
        "id": submission.id,
        "form_id": submission.form_id,
        "client_id": submission.client_id,
        "status": submission.status,
        "notes": submission.notes or "",
        "submitted_by": submission.submitted_by,
        "reviewed_by": submission.reviewed_by,
        "created_at": format_date_for_export(submission.created_at),
        "updated_at": format_date_for_export(submission.updated_at),
        "submitted_at": format_date_for_export(submission.submitted_at),
        "reviewed_at": format_date_for_export(submission.reviewed_at),
    }
    for key, value in (submission.submission_data or {}).items():
        row[f"form_field_{key}"] = value

    form = submission.form
    row["form_title"] = (form.title if form else None) or "Unknown Form"
    row["form_description"] = (form.description if form else None) or ""

    client = submission.client
    row["client_name"] = client_name(client)
    row["client_medical_record"] = (client.medical_record_number if client else None) or ""
    row["client_date_of_birth"] = format_date_for_export(client.date_of_birth if client else None)
    contact = (client.contact_info if client else None) or {}
    if isinstance(contact, dict):
        row["client_email"] = contact.get("email") or ""
        row["client_phone"] = contact.get("phone") or ""
        row["client_address"] = contact.get("address") or ""

    row["submitted_by_name"] = submitter_name(submission.submitter)
    row["submitted_by_email"] = (submission.submitter.email if submission.submitter else None) or ""
    return row


def flatten_for_form(submission: ExportSubmission) -> ExportRow:
    schema = parse_schema_lenient(submission.form.fields_schema) if submission.form else None
    return flatten_submission(submission, schema)


def flatten_client(client: Client, creator: Optional[PersonRef] = None) -> ExportRow:
    row: ExportRow = client.model_dump(exclude={"contact_info"})
    for key, value in (client.contact_info or {}).items():
        row[f"contact_{key}"] = value
    row["created_at"] = format_date_for_export(client.created_at)
    row["updated_at"] = format_date_for_export(client.updated_at)
    row["date_of_birth"] = format_date_for_export(client.date_of_birth)
    row["created_by_name"] = submitter_name(creator)
    row["created_by_email"] = (creator.email if creator else None) or ""
    return row
