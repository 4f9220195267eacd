import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine
from clinicforms.deps import get_session, init_db
from clinicforms.main import app
from clinicforms.models import Business, Form, FormStatus, User, UserRole

INTAKE_FIELDS = [
    {"id": "name", "type": "text", "label": "Name", "required": True},
    {"id": "mood", "type": "radio", "label": "Mood", "options": ["Calm", "Anxious"]},
    {"id": "meals", "type": "checkbox", "label": "Meals", "options": ["Breakfast", "Lunch", "Dinner"]},
    {"id": "pain", "type": "number", "label": "Pain", "description": "0-10"},
]

@pytest.fixture
def engine():
    eng = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    init_db(eng)
    return eng

@pytest.fixture
def session(engine):
    with Session(engine) as s:
        yield s

@pytest.fixture
def org(session):
    biz = Business(name="Sunrise Care")
    session.add(biz); session.commit(); session.refresh(biz)
    people = {
        "owner": User(business_id=biz.id, email="olivia@sunrise.test", first_name="Olivia", last_name="Owens", role=UserRole.owner),
        "manager": User(business_id=biz.id, email="kim@sunrise.test", first_name="Kim", last_name="Lee", role=UserRole.manager),
        "staff": User(business_id=biz.id, email="john@sunrise.test", first_name="John", last_name="Doe", role=UserRole.staff),
    }
    for u in people.values():
        session.add(u)
    session.commit()
    for u in people.values():
        session.refresh(u)
    form = Form(business_id=biz.id, title="Daily Note", fields_schema={"fields": INTAKE_FIELDS},
                status=FormStatus.active, created_by=people["owner"].id)
    session.add(form); session.commit(); session.refresh(form)
    return {"business": biz, "form": form, **people}

@pytest.fixture
def client(session):
    app.dependency_overrides[get_session] = lambda: session
    yield TestClient(app)
    app.dependency_overrides.clear()

@pytest.fixture
def as_user(org):
    def headers(role):
        return {"X-User-Id": org[role].id}
    return headers

@pytest.fixture
def outsider(session):
    """Owner of a second, unrelated business."""
    other = Business(name="Elsewhere")
    session.add(other); session.commit(); session.refresh(other)
    user = User(business_id=other.id, email="x@elsewhere.test", first_name="Xavier", role=UserRole.owner)
    session.add(user); session.commit(); session.refresh(user)
    return {"X-User-Id": user.id}
