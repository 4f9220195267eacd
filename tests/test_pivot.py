from datetime import date, datetime, timedelta, timezone
from clinicforms.services.export_views import ExportSubmission, FormRef, PersonRef
from clinicforms.services.pivot import date_columns, pivot

FIELDS = {"fields": [{"id": "f1", "type": "text", "label": "Mood"},
                     {"id": "f2", "type": "checkbox", "label": "Meals", "options": ["Lunch", "Dinner"]}]}

def _sub(i, created, data, first="John", last="Doe", schema=FIELDS):
    who = PersonRef(first_name=first, last_name=last) if first or last else None
    return ExportSubmission(id=f"s{i}", created_at=created, submission_data=data, submitter=who,
                            form=FormRef(title="Note", fields_schema=schema))

def test_date_range_is_inclusive():
    rows = pivot([_sub(1, datetime(2023, 12, 1), {})], "2024-01-01", "2024-01-03")
    assert [list(r) for r in rows][0] == ["Field", "2024-01-01", "2024-01-02", "2024-01-03"]
    assert date_columns(date(2024, 2, 28), date(2024, 3, 1)) == ["2024-02-28", "2024-02-29", "2024-03-01"]
    assert date_columns("2024-01-03", "2024-01-01") == []

def test_same_day_entries_keep_submission_order():
    subs = [_sub(1, datetime(2024, 1, 2, 18), {"f1": "A"}, "John", "Doe"),
            _sub(2, datetime(2024, 1, 2, 8), {"f1": "B"}, "kim", "lee")]
    rows = pivot(subs, date(2024, 1, 1), date(2024, 1, 3))
    mood = rows[0]
    assert mood["Field"] == "Mood"
    assert mood["2024-01-02"] == "A (JD)\nB (KL)"
    assert mood["2024-01-01"] == "" and mood["2024-01-03"] == ""

def test_arrays_empties_and_unknown_submitter():
    subs = [_sub(1, datetime(2024, 1, 1), {"f2": ["Lunch", "Dinner"], "f1": ""}, None, None),
            _sub(2, datetime(2024, 1, 1), {"f2": []})]
    rows = {r["Field"]: r for r in pivot(subs, "2024-01-01", "2024-01-01")}
    assert rows["Meals"]["2024-01-01"] == "Lunch, Dinner (UU)"
    assert rows["Mood"]["2024-01-01"] == ""

def test_fields_discovered_from_submissions_in_first_seen_order():
    other = {"fields": [{"id": "f9", "label": "Sleep", "description": "hours"},
                        {"id": "f1", "label": "Renamed Mood"}]}
    subs = [_sub(1, datetime(2024, 1, 1), {"f9": "7"}, schema=other),
            _sub(2, datetime(2024, 1, 1), {"f1": "ok"})]
    rows = pivot(subs, "2024-01-01", "2024-01-01")
    assert [r["Field"] for r in rows] == ["Sleep - hours", "Renamed Mood", "Meals"]
    assert rows[0]["2024-01-01"] == "7 (JD)"

def test_broken_schema_contributes_no_fields():
    subs = [_sub(1, datetime(2024, 1, 1), {"x": "1"}, schema={"fields": "bad"}),
            ExportSubmission(id="s2", created_at=datetime(2024, 1, 1), submission_data={"x": "2"})]
    assert pivot(subs, "2024-01-01", "2024-01-01") == []
    assert pivot([], "2024-01-01", "2024-01-05") == []

def test_aware_timestamps_bucket_on_utc_day():
    evening_in_ny = datetime(2024, 1, 2, 22, 30, tzinfo=timezone(timedelta(hours=-5)))
    rows = pivot([_sub(1, evening_in_ny, {"f1": "Late"})], "2024-01-02", "2024-01-03")
    assert rows[0]["2024-01-02"] == "" and rows[0]["2024-01-03"] == "Late (JD)"
