from fastapi import APIRouter, Depends, Query
from sqlmodel import Session
from typing import Optional
from datetime import date
from clinicforms.config import settings
from clinicforms.deps import get_session, get_context, AppContext
from clinicforms.services import analytics, audit
from clinicforms.services.capabilities import Action

router = APIRouter()

@router.get("/analytics")
def analytics_summary(days: Optional[int] = Query(default=None, ge=1), session: Session = Depends(get_session),
                      ctx: AppContext = Depends(get_context)):
    return analytics.summary(session, ctx.business_id, settings.DEFAULT_EXPORT_DAYS if days is None else days)

@router.get("/audit")
def audit_trail(search: Optional[str] = None, action: Optional[str] = None, table: Optional[str] = None,
                start: Optional[date] = None, end: Optional[date] = None, limit: int = Query(default=20, ge=1, le=1000),
                session: Session = Depends(get_session), ctx: AppContext = Depends(get_context)):
    ctx.require(Action.view_audit_trail)
    return audit.list_entries(session, ctx.business_id, search=search, action=action, table_name=table,
                              start=start, end=end, limit=limit)
