from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session
from typing import Optional
from clinicforms.deps import get_session
from clinicforms.models import Business
from clinicforms.services import audit, invites

router = APIRouter()

class AcceptPayload(BaseModel):
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None

@router.get("/{code}")
def invite_details(code: str, session: Session = Depends(get_session)):
    invite = invites.lookup(session, code)
    business = session.get(Business, invite.business_id)
    return {"email": invite.email, "role": invite.role, "business_id": invite.business_id,
            "business_name": business.name if business else None, "expires_at": invite.expires_at}

@router.post("/{code}/accept")
def accept_invite(code: str, payload: AcceptPayload, session: Session = Depends(get_session)):
    user = invites.redeem(session, code, payload.email, payload.first_name, payload.last_name)
    audit.record(session, user.business_id, user.id, "users", audit.INSERT, user.id, new=audit.snapshot(user))
    session.commit(); session.refresh(user)
    return user
