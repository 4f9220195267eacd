from clinicforms.models import FormTemplate

def test_healthz(client):
    assert client.get("/healthz").json() == {"status": "ok"}

def test_unknown_user_rejected(client, org):
    assert client.get("/forms", headers={"X-User-Id": "nobody"}).status_code == 401

def test_create_and_update_form(client, as_user):
    payload = {"title": "Intake", "fields": [
        {"id": "name", "type": "text", "label": "Name", "required": True},
        {"id": "shift", "type": "select", "label": "Shift", "options": ["Day", "Day"]}]}
    r = client.post("/forms", json=payload, headers=as_user("manager"))
    assert r.status_code == 201
    form = r.json()
    assert form["status"] == "draft" and form["version"] == 1
    assert form["warnings"] == ["Field 'Shift' repeats options: Day"]

    r = client.patch(f"/forms/{form['id']}", json={"status": "active", "fields": payload["fields"][:1]},
                     headers=as_user("owner"))
    assert r.status_code == 200
    assert r.json()["version"] == 2 and r.json()["status"] == "active"
    assert r.json()["fields_schema"]["fields"] == [{"id": "name", "type": "text", "label": "Name", "required": True}]

def test_form_rules(client, as_user):
    r = client.post("/forms", json={"title": "Empty", "fields": []}, headers=as_user("owner"))
    assert r.status_code == 422 and r.json()["detail"] == "Please add at least one field to the form."
    dup = [{"id": "a", "label": "A"}, {"id": "a", "label": "B"}]
    assert client.post("/forms", json={"title": "Dup", "fields": dup}, headers=as_user("owner")).status_code == 422
    r = client.post("/forms", json={"title": "Nope", "fields": [{"id": "a", "label": "A"}]}, headers=as_user("staff"))
    assert r.status_code == 403

def test_create_from_template(client, session, as_user):
    t = FormTemplate(name="Consent", template_schema={"fields": [{"id": "ok", "type": "radio", "label": "OK", "options": ["Yes"]}]})
    session.add(t); session.commit()
    assert [x["name"] for x in client.get("/forms/templates", headers=as_user("staff")).json()] == ["Consent"]
    r = client.post("/forms", json={"title": "Consent", "template_id": t.id}, headers=as_user("owner"))
    assert r.status_code == 201 and r.json()["template_id"] == t.id
    assert r.json()["fields_schema"]["fields"][0]["options"] == ["Yes"]

def test_preview_renders_disabled_controls(client, org, as_user):
    r = client.post(f"/forms/{org['form'].id}/preview", json={"values": {"meals": ["Lunch"]}}, headers=as_user("staff"))
    assert r.status_code == 200
    controls = r.json()["controls"]
    assert [c["id"] for c in controls] == ["name", "mood", "meals", "pain"]
    assert all(c["disabled"] for c in controls)
    assert controls[0]["value"] == "" and controls[2]["value"] == ["Lunch"]
    assert controls[1]["input_type"] == "radio" and controls[3]["input_type"] == "number"

def test_forms_are_tenant_scoped(client, session, org, as_user):
    from clinicforms.models import Business, User, UserRole
    other = Business(name="Elsewhere")
    session.add(other); session.commit()
    outsider = User(business_id=other.id, email="x@y.test", role=UserRole.owner)
    session.add(outsider); session.commit()
    assert client.get(f"/forms/{org['form'].id}", headers={"X-User-Id": outsider.id}).status_code == 404
    assert client.get("/forms", headers={"X-User-Id": outsider.id}).json() == []

def test_duplicate_form_starts_as_draft(client, org, as_user):
    r = client.post(f"/forms/{org['form'].id}/duplicate", headers=as_user("manager"))
    assert r.status_code == 201
    copy = r.json()
    assert copy["title"] == "Daily Note (Copy)" and copy["status"] == "draft" and copy["id"] != org["form"].id
    assert copy["fields_schema"] == org["form"].fields_schema
    assert client.post(f"/forms/{org['form'].id}/duplicate", headers=as_user("staff")).status_code == 403

def test_delete_form_removes_submissions(client, org, as_user):
    form_id = org["form"].id
    sub_id = client.post("/submissions", json={"form_id": form_id}, headers=as_user("staff")).json()["id"]
    assert client.delete(f"/forms/{form_id}", headers=as_user("staff")).status_code == 403
    r = client.delete(f"/forms/{form_id}", headers=as_user("owner"))
    assert r.json() == {"status": "deleted", "submissions_deleted": 1}
    assert client.get(f"/forms/{form_id}", headers=as_user("owner")).status_code == 404
    assert client.get(f"/submissions/{sub_id}", headers=as_user("staff")).status_code == 404

def test_forms_cannot_be_deleted_across_businesses(client, org, outsider):
    assert client.delete(f"/forms/{org['form'].id}", headers=outsider).status_code == 404
