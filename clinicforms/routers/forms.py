from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlmodel import Session, select
from typing import Any, Dict, List, Optional
import logging
from clinicforms.deps import get_session, get_context, AppContext
from clinicforms.models import Form, FormStatus, FormTemplate, Submission, utcnow
from clinicforms.services import audit, renderer
from clinicforms.services.capabilities import Action
from clinicforms.services.form_schema import (FieldDescriptor, check_form_definition,
                                              parse_schema, parse_schema_lenient, schema_warnings)

router = APIRouter()
logger = logging.getLogger(__name__)

class FormPayload(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    template_id: Optional[str] = None
    fields: Optional[List[FieldDescriptor]] = None

class FormUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    status: Optional[FormStatus] = None
    fields: Optional[List[FieldDescriptor]] = None

class PreviewRequest(BaseModel):
    values: Dict[str, Any] = {}

def _form_out(form: Form) -> Dict[str, Any]:
    schema = parse_schema_lenient(form.fields_schema)
    out = form.model_dump(mode="json")
    out["warnings"] = schema_warnings(schema) if schema else ["Form schema is missing or malformed"]
    return out

def _get_form(session: Session, ctx: AppContext, form_id: str) -> Form:
    form = session.get(Form, form_id)
    if not form or form.business_id != ctx.business_id:
        raise HTTPException(status_code=404, detail="form not found")
    return form

@router.get("/templates")
def list_templates(session: Session = Depends(get_session), ctx: AppContext = Depends(get_context)):
    return session.exec(select(FormTemplate).order_by(FormTemplate.name)).all()

@router.get("")
def list_forms(status: Optional[FormStatus] = None, session: Session = Depends(get_session),
               ctx: AppContext = Depends(get_context)):
    q = select(Form).where(Form.business_id == ctx.business_id).order_by(Form.title)
    if status:
        q = q.where(Form.status == status)
    return [_form_out(f) for f in session.exec(q).all()]

@router.post("", status_code=201)
def create_form(payload: FormPayload, session: Session = Depends(get_session), ctx: AppContext = Depends(get_context)):
    ctx.require(Action.manage_forms)
    fields = payload.fields
    if fields is None and payload.template_id:
        template = session.get(FormTemplate, payload.template_id)
        if not template:
            raise HTTPException(status_code=404, detail="template not found")
        fields = parse_schema(template.template_schema).fields
    schema = parse_schema(list(fields or []))
    check_form_definition(schema)
    form = Form(business_id=ctx.business_id, title=payload.title, description=payload.description,
                template_id=payload.template_id, fields_schema=schema.to_json(), created_by=ctx.user.id)
    session.add(form)
    audit.record(session, ctx.business_id, ctx.user.id, "forms", audit.INSERT, form.id, new=audit.snapshot(form))
    session.commit(); session.refresh(form)
    return _form_out(form)

@router.get("/{form_id}")
def get_form(form_id: str, session: Session = Depends(get_session), ctx: AppContext = Depends(get_context)):
    return _form_out(_get_form(session, ctx, form_id))

@router.patch("/{form_id}")
def update_form(form_id: str, payload: FormUpdate, session: Session = Depends(get_session),
                ctx: AppContext = Depends(get_context)):
    ctx.require(Action.manage_forms)
    form = _get_form(session, ctx, form_id)
    old = audit.snapshot(form)
    if payload.fields is not None:
        schema = parse_schema(payload.fields)
        check_form_definition(schema)
        form.fields_schema = schema.to_json()
        form.version = (form.version or 1) + 1
    if payload.title is not None:
        form.title = payload.title
    if payload.description is not None:
        form.description = payload.description
    if payload.status is not None:
        form.status = payload.status
    form.updated_at = utcnow()
    session.add(form)
    audit.record(session, ctx.business_id, ctx.user.id, "forms", audit.UPDATE, form.id, old=old, new=audit.snapshot(form))
    session.commit(); session.refresh(form)
    return _form_out(form)

@router.post("/{form_id}/preview")
def preview_form(form_id: str, req: Optional[PreviewRequest] = None, session: Session = Depends(get_session),
                 ctx: AppContext = Depends(get_context)):
    form = _get_form(session, ctx, form_id)
    schema = parse_schema(form.fields_schema)
    values = dict(req.values) if req else {}
    controls = renderer.render(schema, values, renderer.RenderMode.preview)
    return {"title": form.title, "description": form.description, "status": form.status,
            "version": form.version, "controls": [c.to_dict() for c in controls]}

@router.post("/{form_id}/duplicate", status_code=201)
def duplicate_form(form_id: str, session: Session = Depends(get_session), ctx: AppContext = Depends(get_context)):
    ctx.require(Action.manage_forms)
    source = _get_form(session, ctx, form_id)
    copy = Form(business_id=ctx.business_id, title=f"{source.title} (Copy)", description=source.description,
                fields_schema=dict(source.fields_schema or {}), template_id=source.template_id,
                created_by=ctx.user.id, status=FormStatus.draft)
    session.add(copy)
    audit.record(session, ctx.business_id, ctx.user.id, "forms", audit.INSERT, copy.id, new=audit.snapshot(copy))
    session.commit(); session.refresh(copy)
    return _form_out(copy)

@router.delete("/{form_id}")
def delete_form(form_id: str, session: Session = Depends(get_session), ctx: AppContext = Depends(get_context)):
    """Deletes the form together with all of its submissions."""
    ctx.require(Action.manage_forms)
    form = _get_form(session, ctx, form_id)
    old = audit.snapshot(form)
    subs = session.exec(select(Submission).where(Submission.form_id == form.id)).all()
    for sub in subs:
        session.delete(sub)
    session.delete(form)
    audit.record(session, ctx.business_id, ctx.user.id, "forms", audit.DELETE, form_id, old=old)
    session.commit()
    logger.info("Form %s deleted with %d submissions", form_id, len(subs))
    return {"status": "deleted", "submissions_deleted": len(subs)}
