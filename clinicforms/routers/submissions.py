from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlmodel import Session, select
from typing import Any, Dict, Literal, Optional
from datetime import datetime
from clinicforms.deps import get_session, get_context, AppContext
from clinicforms.models import Client, Form, Submission, SubmissionStatus
from clinicforms.services import audit, workflow
from clinicforms.services.form_schema import parse_schema

router = APIRouter()

class NewSubmission(BaseModel):
    form_id: str
    client_id: Optional[str] = None

class SaveRequest(BaseModel):
    submission_data: Dict[str, Any] = {}

class SubmitRequest(BaseModel):
    submission_data: Optional[Dict[str, Any]] = None
    submitted_at: Optional[datetime] = None

class ReviewRequest(BaseModel):
    decision: Literal["approved", "rejected"]
    notes: Optional[str] = None

def _load(session: Session, ctx: AppContext, submission_id: str):
    sub = session.get(Submission, submission_id)
    form = session.get(Form, sub.form_id) if sub and sub.form_id else None
    if not sub or not form or form.business_id != ctx.business_id:
        raise HTTPException(status_code=404, detail="submission not found")
    return sub, form

def _save(session: Session, ctx: AppContext, sub: Submission, old=None) -> Submission:
    session.add(sub)
    audit.record(session, ctx.business_id, ctx.user.id, "form_submissions",
                 audit.INSERT if old is None else audit.UPDATE, sub.id, old=old, new=audit.snapshot(sub))
    session.commit(); session.refresh(sub)
    return sub

@router.get("")
def list_submissions(form_id: Optional[str] = None, client_id: Optional[str] = None,
                     status: Optional[SubmissionStatus] = None, session: Session = Depends(get_session),
                     ctx: AppContext = Depends(get_context)):
    q = (select(Submission).join(Form, Submission.form_id == Form.id)
         .where(Form.business_id == ctx.business_id).order_by(Submission.created_at.desc()))
    if form_id:
        q = q.where(Submission.form_id == form_id)
    if client_id:
        q = q.where(Submission.client_id == client_id)
    if status:
        q = q.where(Submission.status == status)
    return session.exec(q).all()

@router.post("", status_code=201)
def create_submission(payload: NewSubmission, session: Session = Depends(get_session),
                      ctx: AppContext = Depends(get_context)):
    form = session.get(Form, payload.form_id)
    if not form or form.business_id != ctx.business_id:
        raise HTTPException(status_code=404, detail="form not found")
    if payload.client_id:
        client = session.get(Client, payload.client_id)
        if not client or client.business_id != ctx.business_id:
            raise HTTPException(status_code=404, detail="patient not found")
    return _save(session, ctx, workflow.new_submission(form, ctx.user, payload.client_id))

@router.get("/{submission_id}")
def get_submission(submission_id: str, session: Session = Depends(get_session), ctx: AppContext = Depends(get_context)):
    sub, _ = _load(session, ctx, submission_id)
    return sub

@router.put("/{submission_id}")
def save_draft(submission_id: str, req: SaveRequest, session: Session = Depends(get_session),
               ctx: AppContext = Depends(get_context)):
    sub, form = _load(session, ctx, submission_id)
    old = audit.snapshot(sub)
    workflow.save_draft(sub, ctx.user, parse_schema(form.fields_schema), req.submission_data)
    return _save(session, ctx, sub, old)

@router.post("/{submission_id}/submit")
def submit(submission_id: str, req: SubmitRequest, session: Session = Depends(get_session),
           ctx: AppContext = Depends(get_context)):
    sub, form = _load(session, ctx, submission_id)
    old = audit.snapshot(sub)
    workflow.submit(sub, ctx.user, parse_schema(form.fields_schema), req.submission_data, req.submitted_at)
    return _save(session, ctx, sub, old)

@router.post("/{submission_id}/review")
def review(submission_id: str, req: ReviewRequest, session: Session = Depends(get_session),
           ctx: AppContext = Depends(get_context)):
    sub, _ = _load(session, ctx, submission_id)
    old = audit.snapshot(sub)
    workflow.review(sub, ctx.user, req.decision, req.notes)
    return _save(session, ctx, sub, old)
