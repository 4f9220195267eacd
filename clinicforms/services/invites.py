"""Invite codes for joining a business.

A code is checked against the plan limits when it is generated and again
when it is redeemed, expires a week after creation and can be redeemed once.
"""
import logging
import secrets
from datetime import timedelta
from typing import List, Optional

from sqlmodel import Session, select

from clinicforms.errors import InviteError, NotFound
from clinicforms.models import Business, InviteCode, User, UserRole, as_utc, utcnow
from clinicforms.services import limits

logger = logging.getLogger(__name__)

INVITE_TTL = timedelta(days=7)


def new_code() -> str:
    return secrets.token_hex(8)


def create_invite(session: Session, business: Business, creator: User, role=UserRole.staff,
                  email: Optional[str] = None) -> InviteCode:
    role = UserRole(role)
    limits.ensure_can_add_user(limits.usage_stats(session, business), role)
    invite = InviteCode(business_id=business.id, code=new_code(), email=email or None, role=role,
                        created_by=creator.id, expires_at=utcnow() + INVITE_TTL)
    session.add(invite)
    logger.info("Invite for %s created in business %s by %s", role.value, business.id, creator.id)
    return invite


def active_invites(session: Session, business_id: str) -> List[InviteCode]:
    q = (select(InviteCode)
         .where(InviteCode.business_id == business_id, InviteCode.used_at == None,  # noqa: E711
                InviteCode.expires_at > utcnow())
         .order_by(InviteCode.created_at.desc()))
    return list(session.exec(q).all())


def lookup(session: Session, code: str) -> InviteCode:
    invite = session.exec(select(InviteCode).where(InviteCode.code == code)).first()
    if invite is None:
        raise NotFound("Invalid or expired invite code.")
    if invite.used_at is not None:
        raise InviteError("This invite has already been used.")
    if as_utc(invite.expires_at) < utcnow():
        raise InviteError("This invite has expired.")
    return invite


def redeem(session: Session, code: str, email: str, first_name: Optional[str] = None,
           last_name: Optional[str] = None) -> User:
    invite = lookup(session, code)
    if invite.email and invite.email.lower() != email.lower():
        raise InviteError("This invite was issued for a different email address.")
    user = session.exec(select(User).where(User.email == email)).first()
    if user is not None and user.business_id:
        raise InviteError("You are already a member of an organization.")
    business = session.get(Business, invite.business_id)
    limits.ensure_can_add_user(limits.usage_stats(session, business), invite.role)

    user = user or User(email=email)
    user.business_id = invite.business_id
    user.role = invite.role
    user.first_name = first_name or user.first_name
    user.last_name = last_name or user.last_name
    invite.used_at = utcnow()
    invite.used_by = user.id
    session.add(user)
    session.add(invite)
    logger.info("Invite %s redeemed by %s", invite.id, user.id)
    return user
