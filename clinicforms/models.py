from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field
from typing import Optional, Dict, Any
from datetime import datetime, date, timezone
from enum import Enum
import uuid


def _uuid() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes are taken to be UTC already."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class UserRole(str, Enum):
    owner = "owner"
    manager = "manager"
    staff = "staff"


class SubscriptionTier(str, Enum):
    free = "free"
    basic = "basic"
    premium = "premium"
    enterprise = "enterprise"


class FormStatus(str, Enum):
    draft = "draft"
    active = "active"
    inactive = "inactive"
    archived = "archived"


class SubmissionStatus(str, Enum):
    draft = "draft"
    submitted = "submitted"
    reviewed = "reviewed"
    approved = "approved"
    rejected = "rejected"


class Business(SQLModel, table=True):
    id: str = Field(default_factory=_uuid, primary_key=True)
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    subscription_tier: SubscriptionTier = SubscriptionTier.free
    created_at: datetime = Field(default_factory=utcnow)


class User(SQLModel, table=True):
    id: str = Field(default_factory=_uuid, primary_key=True)
    business_id: Optional[str] = Field(default=None, foreign_key="business.id", index=True)
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: UserRole = UserRole.staff
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)


class Client(SQLModel, table=True):
    id: str = Field(default_factory=_uuid, primary_key=True)
    business_id: str = Field(foreign_key="business.id", index=True)
    name: str
    medical_record_number: Optional[str] = None
    date_of_birth: Optional[date] = None
    contact_info: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    notes: Optional[str] = None
    is_active: bool = True
    created_by: Optional[str] = Field(default=None, foreign_key="user.id")
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class FormTemplate(SQLModel, table=True):
    id: str = Field(default_factory=_uuid, primary_key=True)
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    template_schema: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    is_system_template: bool = True
    created_at: datetime = Field(default_factory=utcnow)


class Form(SQLModel, table=True):
    id: str = Field(default_factory=_uuid, primary_key=True)
    business_id: str = Field(foreign_key="business.id", index=True)
    title: str
    description: Optional[str] = None
    fields_schema: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))  # {"fields": [...]}
    status: FormStatus = FormStatus.draft
    version: int = 1
    template_id: Optional[str] = Field(default=None, foreign_key="formtemplate.id")
    created_by: Optional[str] = Field(default=None, foreign_key="user.id")
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Submission(SQLModel, table=True):
    id: str = Field(default_factory=_uuid, primary_key=True)
    form_id: Optional[str] = Field(default=None, foreign_key="form.id", index=True)
    client_id: Optional[str] = Field(default=None, foreign_key="client.id", index=True)
    status: SubmissionStatus = SubmissionStatus.draft
    submission_data: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    submitted_by: Optional[str] = Field(default=None, foreign_key="user.id")
    submitted_at: Optional[datetime] = None
    reviewed_by: Optional[str] = Field(default=None, foreign_key="user.id")
    reviewed_at: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow)


class InviteCode(SQLModel, table=True):
    id: str = Field(default_factory=_uuid, primary_key=True)
    business_id: str = Field(foreign_key="business.id", index=True)
    code: str = Field(index=True, unique=True)
    email: Optional[str] = None
    role: UserRole = UserRole.staff
    created_by: Optional[str] = Field(default=None, foreign_key="user.id")
    expires_at: datetime
    used_at: Optional[datetime] = None
    used_by: Optional[str] = Field(default=None, foreign_key="user.id")
    created_at: datetime = Field(default_factory=utcnow)


class AuditLog(SQLModel, table=True):
    id: str = Field(default_factory=_uuid, primary_key=True)
    business_id: Optional[str] = Field(default=None, foreign_key="business.id", index=True)
    user_id: Optional[str] = Field(default=None, foreign_key="user.id")
    table_name: str
    record_id: Optional[str] = None
    action: str  # INSERT | UPDATE | DELETE
    old_values: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    new_values: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=utcnow, index=True)
