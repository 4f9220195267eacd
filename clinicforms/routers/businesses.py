from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlmodel import Session, select
from typing import Optional
import logging
from clinicforms.deps import get_session, get_context, AppContext
from clinicforms.errors import InviteError
from clinicforms.models import Business, User, UserRole
from clinicforms.services import audit

router = APIRouter()
logger = logging.getLogger(__name__)

class BusinessSetup(BaseModel):
    name: str = Field(..., min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    owner_email: str
    owner_first_name: Optional[str] = None
    owner_last_name: Optional[str] = None

@router.post("", status_code=201)
def create_business(payload: BusinessSetup, session: Session = Depends(get_session)):
    """Sets up a new business with the caller as its owner."""
    owner = session.exec(select(User).where(User.email == payload.owner_email)).first()
    if owner is not None and owner.business_id:
        raise InviteError("You are already a member of an organization.")
    business = Business(name=payload.name, email=payload.email or None, phone=payload.phone or None,
                        address={"street": payload.address} if payload.address else None)
    owner = owner or User(email=payload.owner_email)
    owner.business_id = business.id
    owner.role = UserRole.owner
    owner.first_name = payload.owner_first_name or owner.first_name
    owner.last_name = payload.owner_last_name or owner.last_name
    session.add(business); session.add(owner)
    audit.record(session, business.id, owner.id, "businesses", audit.INSERT, business.id,
                 new=audit.snapshot(business))
    session.commit(); session.refresh(business); session.refresh(owner)
    logger.info("Business %s created with owner %s", business.id, owner.id)
    return {"business": business, "owner": owner}

@router.get("/me")
def my_business(ctx: AppContext = Depends(get_context)):
    return {"business": ctx.business, "role": ctx.role.value}
