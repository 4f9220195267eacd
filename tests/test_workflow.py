import pytest
from datetime import datetime, timezone
from clinicforms.errors import PermissionDenied, SubmissionStateError, SubmissionValidationError
from clinicforms.models import Form, FormStatus, SubmissionStatus, User, UserRole
from clinicforms.services import workflow
from clinicforms.services.form_schema import parse_schema

SCHEMA = parse_schema([{"id": "name", "type": "text", "label": "Name", "required": True},
                       {"id": "meals", "type": "checkbox", "label": "Meals", "options": ["Lunch"]}])

@pytest.fixture
def people():
    return {r: User(id=r, email=f"{r}@x.test", role=UserRole(r)) for r in ("owner", "manager", "staff")}

@pytest.fixture
def draft(people):
    form = Form(id="f1", business_id="b1", title="Note", status=FormStatus.active, fields_schema=SCHEMA.to_json())
    return workflow.new_submission(form, people["staff"], client_id="c1")

def test_new_submission_requires_active_form(people):
    form = Form(id="f1", business_id="b1", title="Note", status=FormStatus.draft)
    with pytest.raises(SubmissionStateError):
        workflow.new_submission(form, people["staff"])

def test_draft_then_submit(draft, people):
    assert draft.status == SubmissionStatus.draft and draft.submitted_by == "staff"
    workflow.save_draft(draft, people["staff"], SCHEMA, {"meals": ["Lunch"]})
    with pytest.raises(SubmissionValidationError) as exc:
        workflow.submit(draft, people["staff"], SCHEMA)
    assert exc.value.missing_labels == ["Name"]
    assert draft.status == SubmissionStatus.draft
    when = datetime(2024, 1, 5, 12, tzinfo=timezone.utc)
    workflow.submit(draft, people["staff"], SCHEMA, {"name": "Alice", "meals": ["Lunch"]}, submitted_at=when)
    assert draft.status == SubmissionStatus.submitted and draft.submitted_at == when
    # submitter may still edit a submitted form
    workflow.save_draft(draft, people["staff"], SCHEMA, {"name": "Alice B"})
    assert draft.submission_data == {"name": "Alice B"}

def test_only_submitter_edits(draft, people):
    with pytest.raises(PermissionDenied):
        workflow.save_draft(draft, people["manager"], SCHEMA, {"name": "x"})

def test_review_rules(draft, people):
    with pytest.raises(SubmissionStateError):
        workflow.review(draft, people["manager"], "approved")
    workflow.submit(draft, people["staff"], SCHEMA, {"name": "Alice"})
    with pytest.raises(PermissionDenied):
        workflow.review(draft, people["staff"], "approved")
    with pytest.raises(SubmissionStateError):
        workflow.review(draft, people["manager"], "submitted")
    workflow.review(draft, people["manager"], "rejected", notes="Missing meals")
    assert draft.status == SubmissionStatus.rejected
    assert draft.reviewed_by == "manager" and draft.reviewed_at and draft.notes == "Missing meals"
    with pytest.raises(SubmissionStateError):
        workflow.save_draft(draft, people["staff"], SCHEMA, {"name": "Alice"})
    with pytest.raises(SubmissionStateError):
        workflow.review(draft, people["owner"], "approved")

def test_timestamps_are_utc_aware(draft, people):
    assert draft.created_at.tzinfo is not None
    workflow.submit(draft, people["staff"], SCHEMA, {"name": "Alice"}, submitted_at=datetime(2024, 1, 5, 12))
    assert draft.submitted_at == datetime(2024, 1, 5, 12, tzinfo=timezone.utc)
    assert draft.updated_at.tzinfo is not None
    workflow.review(draft, people["manager"], "approved")
    assert draft.reviewed_at.tzinfo is not None
