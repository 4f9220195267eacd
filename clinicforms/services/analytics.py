"""Dashboard numbers for one business over a trailing window of days."""
import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import List, Optional

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, func, select

from clinicforms.errors import UpstreamFailure
from clinicforms.models import Client, Form, FormStatus, utcnow
from clinicforms.services.exports import load_submissions
from clinicforms.services.export_views import client_name, submitter_name

logger = logging.getLogger(__name__)

RECENT_ACTIVITY = 10


class FormCount(BaseModel):
    form_title: str
    count: int


class StatusCount(BaseModel):
    status: str
    count: int


class Activity(BaseModel):
    id: str
    action: str
    form_title: str
    client_name: Optional[str] = None
    user_name: str
    created_at: datetime


class AnalyticsSummary(BaseModel):
    days: int
    total_submissions: int = 0
    pending_review: int = 0
    approved_submissions: int = 0
    rejected_submissions: int = 0
    draft_submissions: int = 0
    total_forms: int = 0
    active_forms: int = 0
    total_clients: int = 0
    submissions_by_form: List[FormCount] = []
    submissions_by_status: List[StatusCount] = []
    recent_activity: List[Activity] = []


def summary(session: Session, business_id: str, days: int = 30) -> AnalyticsSummary:
    try:
        forms = session.exec(select(Form).where(Form.business_id == business_id).order_by(Form.title)).all()
        clients = session.exec(select(func.count()).select_from(Client).where(
            Client.business_id == business_id, Client.is_active == True)).one()  # noqa: E712
    except SQLAlchemyError as exc:
        logger.exception("Failed to load analytics for business %s", business_id)
        raise UpstreamFailure("Failed to load analytics data.") from exc
    if not forms:
        return AnalyticsSummary(days=days)

    subs = load_submissions(session, business_id, since=utcnow() - timedelta(days=days))
    statuses = Counter(s.status for s in subs)
    per_form = Counter(s.form_id for s in subs)

    return AnalyticsSummary(
        days=days,
        total_submissions=len(subs),
        pending_review=statuses["submitted"],
        approved_submissions=statuses["approved"],
        rejected_submissions=statuses["rejected"],
        draft_submissions=statuses["draft"],
        total_forms=len(forms),
        active_forms=sum(1 for f in forms if FormStatus(f.status) == FormStatus.active),
        total_clients=clients,
        submissions_by_form=[FormCount(form_title=f.title, count=per_form[f.id]) for f in forms if per_form[f.id]],
        submissions_by_status=[StatusCount(status=k.capitalize(), count=v) for k, v in statuses.items()],
        recent_activity=[
            Activity(id=s.id, action=f"Form {s.status}", form_title=s.form.title if s.form else "Unknown Form",
                     client_name=None if s.client is None else client_name(s.client),
                     user_name=submitter_name(s.submitter), created_at=s.updated_at or s.created_at)
            for s in subs[:RECENT_ACTIVITY]
        ],
    )
