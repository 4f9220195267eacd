from datetime import date, datetime
from clinicforms.models import Client
from clinicforms.services.export_views import ClientRef, ExportSubmission, FormRef, PersonRef
from clinicforms.services.flatten import (flatten_client, flatten_for_form, flatten_submission,
                                          flatten_submission_record)
from clinicforms.services.form_schema import parse_schema

SCHEMA = parse_schema([
    {"id": "name", "type": "text", "label": "Name"},
    {"id": "meals", "type": "checkbox", "label": "Meals", "options": ["Lunch", "Dinner"]},
    {"id": "notes", "type": "textarea", "label": "Notes"},
])

def _sub(**kw):
    base = dict(id="s1", created_at=datetime(2024, 1, 2, 9, 30), status="submitted",
                submission_data={"name": "Alice", "meals": ["Lunch", "Dinner"]},
                submitter=PersonRef(first_name="John", last_name="Doe", email="john@x.test"),
                client=ClientRef(name="Pat Smith", contact_info={"email": "pat@x.test"}),
                form=FormRef(title="Daily Note", fields_schema=SCHEMA.to_json()))
    base.update(kw)
    return ExportSubmission(**base)

def test_simple_row_uses_labels_and_fixed_columns():
    row = flatten_submission(_sub(), SCHEMA)
    assert list(row) == ["Submitted By", "Client Name", "Name", "Meals", "Notes"]
    assert row == {"Submitted By": "John Doe", "Client Name": "Pat Smith", "Name": "Alice",
                   "Meals": "Lunch, Dinner", "Notes": ""}

def test_arrays_kept_for_checkbox_aware_rows():
    assert flatten_submission(_sub(), SCHEMA, join_arrays=False)["Meals"] == ["Lunch", "Dinner"]

def test_placeholders_for_missing_people():
    row = flatten_submission(_sub(submitter=None, client=None), SCHEMA)
    assert row["Submitted By"] == "Unknown User" and row["Client Name"] == "No Client"
    blank = flatten_submission(_sub(submitter=PersonRef(first_name=" ", last_name=None)), SCHEMA)
    assert blank["Submitted By"] == "Unknown User"

def test_flatten_is_idempotent():
    sub = _sub()
    assert flatten_submission(sub, SCHEMA) == flatten_submission(sub, SCHEMA)
    assert flatten_submission_record(sub) == flatten_submission_record(sub)

def test_same_label_collapses_into_one_column():
    schema = parse_schema([{"id": "a", "label": "Score"}, {"id": "b", "label": "Score"}])
    row = flatten_submission(_sub(submission_data={"a": "1", "b": "2"}), schema)
    assert row["Score"] == "2"

def test_unresolvable_form_does_not_raise():
    sub = _sub(form=None)
    assert flatten_for_form(sub) == {"Submitted By": "John Doe", "Client Name": "Pat Smith"}
    row = flatten_submission_record(sub)
    assert row["form_title"] == "Unknown Form" and row["form_description"] == ""
    assert row["form_field_name"] == "Alice"

def test_full_record_columns():
    row = flatten_submission_record(_sub(submitted_at=datetime(2024, 1, 2, 10, 0)))
    assert row["created_at"] == "2024-01-02 09:30:00"
    assert row["submitted_at"] == "2024-01-02 10:00:00" and row["reviewed_at"] == ""
    assert row["form_field_meals"] == ["Lunch", "Dinner"]
    assert row["client_email"] == "pat@x.test" and row["client_phone"] == ""
    assert row["submitted_by_name"] == "John Doe" and row["submitted_by_email"] == "john@x.test"

def test_flatten_client():
    c = Client(business_id="b1", name="Pat", date_of_birth=date(1980, 5, 1),
               contact_info={"email": "pat@x.test", "phone": "555"}, created_at=datetime(2024, 1, 1))
    row = flatten_client(c, PersonRef(first_name="Kim", last_name="Lee", email="kim@x.test"))
    assert "contact_info" not in row
    assert row["contact_email"] == "pat@x.test" and row["contact_phone"] == "555"
    assert row["date_of_birth"] == "1980-05-01" and row["created_at"] == "2024-01-01 00:00:00"
    assert row["created_by_name"] == "Kim Lee"
    assert flatten_client(c)["created_by_name"] == "Unknown User"
