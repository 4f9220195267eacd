from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlmodel import Session, select
from typing import Optional
import logging
from clinicforms.deps import get_session, get_context, AppContext
from clinicforms.models import InviteCode, User, UserRole
from clinicforms.services import audit, invites, limits
from clinicforms.services.capabilities import Action

router = APIRouter()
logger = logging.getLogger(__name__)

class MemberPayload(BaseModel):
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: UserRole = UserRole.staff

class InvitePayload(BaseModel):
    email: Optional[str] = None
    role: UserRole = UserRole.staff

def _require_role_grant(ctx: AppContext, role: UserRole) -> None:
    ctx.require(Action.manage_team)
    if role == UserRole.owner:
        ctx.require(Action.invite_owner)

@router.get("/members")
def list_members(session: Session = Depends(get_session), ctx: AppContext = Depends(get_context)):
    q = select(User).where(User.business_id == ctx.business_id, User.is_active == True).order_by(User.created_at)  # noqa: E712
    return session.exec(q).all()

@router.get("/usage")
def usage(session: Session = Depends(get_session), ctx: AppContext = Depends(get_context)):
    stats = limits.usage_stats(session, ctx.business)
    return {**stats.model_dump(),
            "tier": ctx.tier.value,
            "can_manage_team": ctx.can(Action.manage_team),
            "can_add_client": limits.can_add_client(stats),
            "can_add_staff": limits.can_add_user(stats, UserRole.staff),
            "can_add_manager": limits.can_add_user(stats, UserRole.manager)}

@router.post("/members", status_code=201)
def add_member(payload: MemberPayload, session: Session = Depends(get_session), ctx: AppContext = Depends(get_context)):
    _require_role_grant(ctx, payload.role)
    limits.ensure_can_add_user(limits.usage_stats(session, ctx.business), payload.role)
    member = User(business_id=ctx.business_id, **payload.model_dump())
    session.add(member)
    audit.record(session, ctx.business_id, ctx.user.id, "users", audit.INSERT, member.id, new=audit.snapshot(member))
    session.commit(); session.refresh(member)
    logger.info("Added %s %s to business %s", payload.role.value, member.id, ctx.business_id)
    return member

@router.get("/invites")
def list_invites(session: Session = Depends(get_session), ctx: AppContext = Depends(get_context)):
    ctx.require(Action.manage_team)
    return invites.active_invites(session, ctx.business_id)

@router.post("/invites", status_code=201)
def create_invite(payload: InvitePayload, session: Session = Depends(get_session), ctx: AppContext = Depends(get_context)):
    _require_role_grant(ctx, payload.role)
    invite = invites.create_invite(session, ctx.business, ctx.user, payload.role, payload.email)
    audit.record(session, ctx.business_id, ctx.user.id, "invite_codes", audit.INSERT, invite.id,
                 new=audit.snapshot(invite))
    session.commit(); session.refresh(invite)
    return {**invite.model_dump(mode="json"), "invite_path": f"/invites/{invite.code}"}

@router.delete("/invites/{invite_id}")
def delete_invite(invite_id: str, session: Session = Depends(get_session), ctx: AppContext = Depends(get_context)):
    ctx.require(Action.manage_team)
    invite = session.get(InviteCode, invite_id)
    if not invite or invite.business_id != ctx.business_id:
        raise HTTPException(status_code=404, detail="invite not found")
    audit.record(session, ctx.business_id, ctx.user.id, "invite_codes", audit.DELETE, invite.id,
                 old=audit.snapshot(invite))
    session.delete(invite); session.commit()
    return {"status": "deleted"}
