"""Plan tier caps and current usage for a business."""
import logging
from typing import Dict, Optional

from pydantic import BaseModel
from sqlmodel import Session, select, func

from clinicforms.errors import LimitReachedError
from clinicforms.models import Business, Client, SubscriptionTier, User, UserRole

logger = logging.getLogger(__name__)


class TierLimits(BaseModel):
    max_clients: Optional[int]
    max_staff: Optional[int]
    max_managers: Optional[int]


# None means unlimited
TIER_LIMITS: Dict[SubscriptionTier, TierLimits] = {
    SubscriptionTier.free: TierLimits(max_clients=5, max_staff=2, max_managers=1),
    SubscriptionTier.basic: TierLimits(max_clients=25, max_staff=10, max_managers=3),
    SubscriptionTier.premium: TierLimits(max_clients=100, max_staff=50, max_managers=10),
    SubscriptionTier.enterprise: TierLimits(max_clients=None, max_staff=None, max_managers=None),
}


class UsageStats(BaseModel):
    business_id: str
    subscription_tier: str
    current_clients: int
    current_staff: int
    current_managers: int
    current_owners: int
    max_clients: Optional[int]
    max_staff: Optional[int]
    max_managers: Optional[int]


def limits_for(tier) -> TierLimits:
    try:
        return TIER_LIMITS[SubscriptionTier(tier)]
    except ValueError:
        return TIER_LIMITS[SubscriptionTier.free]


def _count_users(session: Session, business_id: str, role: UserRole) -> int:
    q = select(func.count()).select_from(User).where(
        User.business_id == business_id, User.role == role, User.is_active == True)  # noqa: E712
    return session.exec(q).one()


def usage_stats(session: Session, business: Business) -> UsageStats:
    lim = limits_for(business.subscription_tier)
    clients = session.exec(select(func.count()).select_from(Client).where(
        Client.business_id == business.id, Client.is_active == True)).one()  # noqa: E712
    return UsageStats(
        business_id=business.id,
        subscription_tier=SubscriptionTier(business.subscription_tier).value,
        current_clients=clients,
        current_staff=_count_users(session, business.id, UserRole.staff),
        current_managers=_count_users(session, business.id, UserRole.manager),
        current_owners=_count_users(session, business.id, UserRole.owner),
        **lim.model_dump(),
    )


def _under(current: int, cap: Optional[int]) -> bool:
    return cap is None or current < cap


def can_add_client(stats: UsageStats) -> bool:
    return _under(stats.current_clients, stats.max_clients)


def can_add_user(stats: UsageStats, role) -> bool:
    role = UserRole(role)
    if role == UserRole.staff:
        return _under(stats.current_staff, stats.max_staff)
    if role == UserRole.manager:
        return _under(stats.current_managers, stats.max_managers)
    return True


def ensure_can_add_client(stats: UsageStats) -> None:
    if not can_add_client(stats):
        logger.info("Client limit reached for business %s (%s)", stats.business_id, stats.subscription_tier)
        raise LimitReachedError("You've reached your plan's client limit. Please upgrade to add more clients.")


def ensure_can_add_user(stats: UsageStats, role) -> None:
    if not can_add_user(stats, role):
        logger.info("%s limit reached for business %s", UserRole(role).value, stats.business_id)
        raise LimitReachedError(
            f"You've reached your plan's {UserRole(role).value} limit. Please upgrade to add more.")
