"""Export center: fetch joined rows for a business and shape them for CSV."""
import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from clinicforms.errors import EmptyResultError, NotFound, UpstreamFailure
from clinicforms.models import Client, Form, Submission, User, utcnow
from clinicforms.services import flatten, pivot
from clinicforms.services.csv_export import export_filename, slug, to_csv
from clinicforms.services.export_views import ClientRef, ExportSubmission, FormRef, PersonRef

logger = logging.getLogger(__name__)


def _person(user: Optional[User]) -> Optional[PersonRef]:
    if user is None:
        return None
    return PersonRef(first_name=user.first_name, last_name=user.last_name, email=user.email)


def _client(client: Optional[Client]) -> Optional[ClientRef]:
    if client is None:
        return None
    return ClientRef(name=client.name, medical_record_number=client.medical_record_number,
                     date_of_birth=client.date_of_birth, contact_info=client.contact_info)


def _form(form: Optional[Form]) -> Optional[FormRef]:
    if form is None:
        return None
    return FormRef(title=form.title, description=form.description, fields_schema=form.fields_schema)


def load_submissions(session: Session, business_id: str, form_id: Optional[str] = None,
                     client_id: Optional[str] = None, since: Optional[datetime] = None,
                     until: Optional[datetime] = None, newest_first: bool = True,
                     submission_id: Optional[str] = None) -> List[ExportSubmission]:
    """Submissions of a business joined with form, client and submitter."""
    q = (select(Submission, Form, Client, User)
         .join(Form, Submission.form_id == Form.id)
         .join(Client, Submission.client_id == Client.id, isouter=True)
         .join(User, Submission.submitted_by == User.id, isouter=True)
         .where(Form.business_id == business_id))
    if form_id:
        q = q.where(Submission.form_id == form_id)
    if client_id:
        q = q.where(Submission.client_id == client_id)
    if submission_id:
        q = q.where(Submission.id == submission_id)
    if since:
        q = q.where(Submission.created_at >= since)
    if until:
        q = q.where(Submission.created_at < until)
    q = q.order_by(Submission.created_at.desc() if newest_first else Submission.created_at)
    try:
        results = session.exec(q).all()
    except SQLAlchemyError as exc:
        logger.exception("Failed to load submissions for business %s", business_id)
        raise UpstreamFailure("Failed to load form submissions.") from exc

    out = []
    for sub, form, client, user in results:
        out.append(ExportSubmission(
            id=sub.id, form_id=sub.form_id, client_id=sub.client_id,
            submitted_by=sub.submitted_by, reviewed_by=sub.reviewed_by,
            status=getattr(sub.status, "value", sub.status), submission_data=sub.submission_data or {},
            notes=sub.notes, created_at=sub.created_at, updated_at=sub.updated_at,
            submitted_at=sub.submitted_at, reviewed_at=sub.reviewed_at,
            form=_form(form), client=_client(client), submitter=_person(user),
        ))
    return out


def _get_owned(session: Session, model, obj_id: str, business_id: str, what: str):
    obj = session.get(model, obj_id)
    if not obj or obj.business_id != business_id:
        raise NotFound(f"{what} not found")
    return obj


def _require_rows(rows: List[Dict], notice: str) -> List[Dict]:
    if not rows:
        raise EmptyResultError(notice)
    return rows


CsvExport = Tuple[str, str, int]  # filename, content, row count


def _csv(prefix: str, rows: List[Dict]) -> CsvExport:
    name = export_filename(prefix)
    logger.info("Exported %d rows to %s", len(rows), name)
    return name, to_csv(rows), len(rows)


def export_all_submissions(session: Session, business_id: str, days: int) -> CsvExport:
    since = utcnow() - timedelta(days=days)
    subs = load_submissions(session, business_id, since=since)
    rows = _require_rows([flatten.flatten_submission_record(s) for s in subs],
                         "No submissions found to export in the selected time range.")
    return _csv("all_form_submissions", rows)


def export_form_submissions(session: Session, business_id: str, form_id: str) -> CsvExport:
    form = _get_owned(session, Form, form_id, business_id, "Form")
    subs = load_submissions(session, business_id, form_id=form_id)
    rows = _require_rows([flatten.flatten_submission_record(s) for s in subs],
                         f'No submissions found for "{form.title}".')
    return _csv(f"form_{slug(form.title)}_submissions", rows)


def export_form_simplified(session: Session, business_id: str, form_id: str) -> CsvExport:
    form = _get_owned(session, Form, form_id, business_id, "Form")
    subs = load_submissions(session, business_id, form_id=form_id)
    rows = _require_rows([flatten.flatten_for_form(s) for s in subs],
                         f'No submissions found for "{form.title}".')
    return _csv(f"form_{slug(form.title)}_answers", rows)


def export_client_submissions(session: Session, business_id: str, client_id: str) -> CsvExport:
    client = _get_owned(session, Client, client_id, business_id, "Patient")
    subs = load_submissions(session, business_id, client_id=client_id)
    rows = _require_rows([flatten.flatten_submission_record(s) for s in subs],
                         f"No form submissions found for {client.name}.")
    return _csv(f"patient_{slug(client.name)}_forms", rows)


def export_clients(session: Session, business_id: str) -> CsvExport:
    q = (select(Client, User)
         .join(User, Client.created_by == User.id, isouter=True)
         .where(Client.business_id == business_id, Client.is_active == True)  # noqa: E712
         .order_by(Client.created_at.desc()))
    try:
        results = session.exec(q).all()
    except SQLAlchemyError as exc:
        logger.exception("Failed to load clients for business %s", business_id)
        raise UpstreamFailure("Failed to load patients.") from exc
    rows = _require_rows([flatten.flatten_client(c, _person(u)) for c, u in results],
                         "No active clients found to export.")
    return _csv("all_patients", rows)


def export_pivot(session: Session, business_id: str, start: date, end: date,
                 form_id: Optional[str] = None) -> CsvExport:
    prefix = "pivot"
    if form_id:
        form = _get_owned(session, Form, form_id, business_id, "Form")
        prefix = f"pivot_{slug(form.title)}"
    since = datetime.combine(start, time.min, tzinfo=timezone.utc)
    until = datetime.combine(end + timedelta(days=1), time.min, tzinfo=timezone.utc)
    subs = load_submissions(session, business_id, form_id=form_id, since=since, until=until, newest_first=False)
    rows = _require_rows(pivot.pivot(subs, start, end), "No submissions found in the selected date range.")
    return _csv(f"{prefix}_{start.isoformat()}_to_{end.isoformat()}", rows)


def load_submission(session: Session, business_id: str, submission_id: str) -> ExportSubmission:
    found = load_submissions(session, business_id, submission_id=submission_id)
    if not found:
        raise NotFound("Submission not found")
    return found[0]
