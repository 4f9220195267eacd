import pytest

@pytest.fixture
def activity(client, org, as_user):
    ids = [client.post("/submissions", json={"form_id": org["form"].id}, headers=as_user("staff")).json()["id"]
           for _ in range(3)]
    for sub_id in ids[1:]:
        r = client.post(f"/submissions/{sub_id}/submit", json={"submission_data": {"name": "Alice"}},
                        headers=as_user("staff"))
        assert r.status_code == 200
    r = client.post(f"/submissions/{ids[2]}/review", json={"decision": "approved"}, headers=as_user("manager"))
    assert r.status_code == 200
    return ids

def test_analytics_summary(client, org, activity, as_user):
    r = client.get("/reports/analytics", params={"days": 7}, headers=as_user("staff"))
    assert r.status_code == 200
    data = r.json()
    assert data["days"] == 7
    assert (data["total_submissions"], data["pending_review"], data["approved_submissions"],
            data["draft_submissions"], data["rejected_submissions"]) == (3, 1, 1, 1, 0)
    assert data["total_forms"] == 1 and data["active_forms"] == 1 and data["total_clients"] == 0
    assert data["submissions_by_form"] == [{"form_title": "Daily Note", "count": 3}]
    assert {s["status"]: s["count"] for s in data["submissions_by_status"]} == {"Draft": 1, "Submitted": 1, "Approved": 1}
    assert len(data["recent_activity"]) == 3
    assert {a["user_name"] for a in data["recent_activity"]} == {"John Doe"}
    assert {a["action"] for a in data["recent_activity"]} == {"Form draft", "Form submitted", "Form approved"}

def test_analytics_without_forms(client, outsider):
    data = client.get("/reports/analytics", headers=outsider).json()
    assert data["total_submissions"] == 0 and data["total_forms"] == 0 and data["recent_activity"] == []

def test_audit_trail_is_for_managers(client, org, activity, as_user):
    assert client.get("/reports/audit", headers=as_user("staff")).status_code == 403
    page = client.get("/reports/audit", headers=as_user("owner")).json()
    assert page["total"] == 6 and not page["has_more"]
    assert {e["table_name"] for e in page["entries"]} == {"form_submissions"}

def test_audit_trail_filters(client, org, activity, as_user):
    def fetch(**params):
        return client.get("/reports/audit", params=params, headers=as_user("manager")).json()

    inserts = fetch(action="INSERT")
    assert inserts["total"] == 3 and inserts["entries"][0]["new_values"]["status"] == "draft"
    assert fetch(search="john")["total"] == 5
    assert fetch(search="kim")["entries"][0]["new_values"]["status"] == "approved"
    assert fetch(table="forms")["total"] == 0
    assert fetch(end="2000-01-01")["total"] == 0
    page = fetch(limit=2)
    assert len(page["entries"]) == 2 and page["has_more"]

def test_changes_are_logged_with_before_and_after(client, org, as_user):
    r = client.patch(f"/forms/{org['form'].id}", json={"title": "Daily Note v2"}, headers=as_user("owner"))
    assert r.status_code == 200
    entry = client.get("/reports/audit", params={"table": "forms"}, headers=as_user("owner")).json()["entries"][0]
    assert entry["action"] == "UPDATE" and entry["user_name"] == "Olivia Owens"
    assert entry["old_values"]["title"] == "Daily Note" and entry["new_values"]["title"] == "Daily Note v2"
