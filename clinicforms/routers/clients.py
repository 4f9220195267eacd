from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlmodel import Session, select
from typing import Any, Dict, Optional
from datetime import date
import logging
from clinicforms.deps import get_session, get_context, AppContext
from clinicforms.models import Client, utcnow
from clinicforms.services import audit, limits
from clinicforms.services.capabilities import Action

router = APIRouter()
logger = logging.getLogger(__name__)

class ClientPayload(BaseModel):
    name: str = Field(..., min_length=1)
    medical_record_number: Optional[str] = None
    date_of_birth: Optional[date] = None
    contact_info: Dict[str, Any] = {}
    notes: Optional[str] = None

class ClientUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    medical_record_number: Optional[str] = None
    date_of_birth: Optional[date] = None
    contact_info: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None

def _get_client(session: Session, ctx: AppContext, client_id: str) -> Client:
    client = session.get(Client, client_id)
    if not client or client.business_id != ctx.business_id:
        raise HTTPException(status_code=404, detail="patient not found")
    return client

@router.get("")
def list_clients(session: Session = Depends(get_session), ctx: AppContext = Depends(get_context)):
    q = (select(Client).where(Client.business_id == ctx.business_id, Client.is_active == True)  # noqa: E712
         .order_by(Client.name))
    return session.exec(q).all()

@router.post("", status_code=201)
def create_client(payload: ClientPayload, session: Session = Depends(get_session), ctx: AppContext = Depends(get_context)):
    ctx.require(Action.manage_clients)
    limits.ensure_can_add_client(limits.usage_stats(session, ctx.business))
    client = Client(business_id=ctx.business_id, created_by=ctx.user.id, **payload.model_dump())
    session.add(client)
    audit.record(session, ctx.business_id, ctx.user.id, "clients", audit.INSERT, client.id, new=audit.snapshot(client))
    session.commit(); session.refresh(client)
    logger.info("Client %s created in business %s", client.id, ctx.business_id)
    return client

@router.get("/{client_id}")
def get_client(client_id: str, session: Session = Depends(get_session), ctx: AppContext = Depends(get_context)):
    return _get_client(session, ctx, client_id)

@router.patch("/{client_id}")
def update_client(client_id: str, payload: ClientUpdate, session: Session = Depends(get_session),
                  ctx: AppContext = Depends(get_context)):
    ctx.require(Action.manage_clients)
    client = _get_client(session, ctx, client_id)
    old = audit.snapshot(client)
    for k, v in payload.model_dump(exclude_unset=True).items():
        setattr(client, k, v)
    client.updated_at = utcnow()
    session.add(client)
    audit.record(session, ctx.business_id, ctx.user.id, "clients", audit.UPDATE, client.id, old=old, new=audit.snapshot(client))
    session.commit(); session.refresh(client)
    return client

@router.delete("/{client_id}")
def deactivate_client(client_id: str, session: Session = Depends(get_session), ctx: AppContext = Depends(get_context)):
    ctx.require(Action.manage_clients)
    client = _get_client(session, ctx, client_id)
    old = audit.snapshot(client)
    client.is_active = False
    client.updated_at = utcnow()
    session.add(client)
    audit.record(session, ctx.business_id, ctx.user.id, "clients", audit.UPDATE, client.id, old=old, new=audit.snapshot(client))
    session.commit()
    return {"status": "deactivated"}
