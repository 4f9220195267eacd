"""Change log for business records.

Routers call ``record`` next to the write it describes so the entry is
committed in the same transaction. ``list_entries`` backs the audit viewer
for owners and managers.
"""
import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, select

from clinicforms.errors import UpstreamFailure
from clinicforms.models import AuditLog, User

logger = logging.getLogger(__name__)

INSERT, UPDATE, DELETE = "INSERT", "UPDATE", "DELETE"
FETCH_LIMIT = 1000


class AuditEntry(BaseModel):
    id: str
    table_name: str
    record_id: Optional[str] = None
    action: str
    old_values: Optional[Dict[str, Any]] = None
    new_values: Optional[Dict[str, Any]] = None
    user_id: Optional[str] = None
    user_name: str = "System"
    created_at: datetime


class AuditPage(BaseModel):
    entries: List[AuditEntry]
    total: int
    has_more: bool


def snapshot(obj: Optional[SQLModel]) -> Optional[Dict[str, Any]]:
    return obj.model_dump(mode="json") if obj is not None else None


def record(session: Session, business_id: Optional[str], user_id: Optional[str], table_name: str,
           action: str, record_id: Optional[str], old: Optional[Dict[str, Any]] = None,
           new: Optional[Dict[str, Any]] = None) -> AuditLog:
    entry = AuditLog(business_id=business_id, user_id=user_id, table_name=table_name, record_id=record_id,
                     action=action, old_values=old, new_values=new)
    session.add(entry)
    logger.debug("Audit %s %s %s by %s", action, table_name, record_id, user_id or "system")
    return entry


def _user_name(user: Optional[User]) -> str:
    if user is None:
        return "System"
    return f"{user.first_name or ''} {user.last_name or ''}".strip() or user.email


def _day_start(d: date) -> datetime:
    return datetime.combine(d, time.min, tzinfo=timezone.utc)


def list_entries(session: Session, business_id: str, search: Optional[str] = None,
                 action: Optional[str] = None, table_name: Optional[str] = None,
                 start: Optional[date] = None, end: Optional[date] = None, limit: int = 20) -> AuditPage:
    """Newest first. ``end`` is inclusive of the whole day; ``search`` matches
    user name, table or action case-insensitively."""
    q = (select(AuditLog, User)
         .join(User, AuditLog.user_id == User.id, isouter=True)
         .where(AuditLog.business_id == business_id))
    if action:
        q = q.where(AuditLog.action == action)
    if table_name:
        q = q.where(AuditLog.table_name == table_name)
    if start:
        q = q.where(AuditLog.created_at >= _day_start(start))
    if end:
        q = q.where(AuditLog.created_at < _day_start(end + timedelta(days=1)))
    q = q.order_by(AuditLog.created_at.desc()).limit(FETCH_LIMIT)
    try:
        results = session.exec(q).all()
    except SQLAlchemyError as exc:
        logger.exception("Failed to load audit trail for business %s", business_id)
        raise UpstreamFailure("Failed to load audit trail.") from exc

    entries = [AuditEntry(**log.model_dump(exclude={"business_id"}), user_name=_user_name(user))
               for log, user in results]
    if search:
        needle = search.lower()
        entries = [e for e in entries
                   if needle in e.user_name.lower() or needle in e.table_name.lower() or needle in e.action.lower()]
    return AuditPage(entries=entries[:limit], total=len(entries), has_more=len(entries) > limit)
