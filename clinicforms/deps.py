from dataclasses import dataclass
from fastapi import Depends, Header, HTTPException
from sqlmodel import SQLModel, create_engine, Session
from clinicforms.config import settings
from clinicforms.models import Business, User, UserRole, SubscriptionTier
from clinicforms.services import capabilities
import os

if settings.DB_URL.startswith("sqlite:///./"):
    os.makedirs(settings.DATA_DIR, exist_ok=True)
engine = create_engine(settings.DB_URL, echo=False)

def get_session():
    with Session(engine) as session:
        yield session

def init_db(bind=None):
    SQLModel.metadata.create_all(bind or engine)


@dataclass(frozen=True)
class AppContext:
    """Who is calling and for which business; passed explicitly to every handler."""
    user: User
    business: Business

    @property
    def role(self) -> UserRole:
        return UserRole(self.user.role)

    @property
    def tier(self) -> SubscriptionTier:
        return SubscriptionTier(self.business.subscription_tier)

    @property
    def business_id(self) -> str:
        return self.business.id

    def can(self, action) -> bool:
        return capabilities.can(self.role, action)

    def require(self, action) -> None:
        capabilities.require(self.role, action)


def get_context(x_user_id: str = Header(...), session: Session = Depends(get_session)) -> AppContext:
    user = session.get(User, x_user_id)
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="unknown user")
    business = session.get(Business, user.business_id) if user.business_id else None
    if not business:
        raise HTTPException(status_code=403, detail="No business found")
    return AppContext(user=user, business=business)
