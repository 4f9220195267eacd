from datetime import date, datetime, timedelta, timezone
import streamlit as st
from sqlmodel import Session, select

from clinicforms.deps import engine, init_db
from clinicforms.errors import ClinicFormsError, EmptyResultError, SubmissionValidationError
from clinicforms.logging_config import setup_logging
from clinicforms.models import Form, FormStatus, Submission, SubmissionStatus, User
from clinicforms.services import exports, renderer, workflow
from clinicforms.services.capabilities import Action, can
from clinicforms.services.form_schema import parse_schema, parse_schema_lenient
from clinicforms.services.templates import seed_templates

setup_logging()
init_db()
with Session(engine) as _s:
    seed_templates(_s)

# ---------- Control drawing ----------
def draw(control: renderer.Control, key: str):
    """Draw one control; edits flow back through control.set / control.toggle."""
    f, dis = control.field, control.disabled
    label = f.label + (" *" if f.required else "")
    help_ = f.description or None
    t = control.input_type
    if t == "textarea":
        v = st.text_area(label, control.value, key=key, disabled=dis, placeholder=f.placeholder or "", help=help_)
    elif t == "date":
        cur = control.value
        d = st.date_input(label, date.fromisoformat(cur) if cur else None, key=key, disabled=dis, help=help_)
        v = d.isoformat() if d else ""
    elif t == "select":
        opts = [""] + control.options
        cur = control.value if control.value in opts else ""
        v = st.selectbox(label, opts, index=opts.index(cur), key=key, disabled=dis, help=help_)
    elif t == "radio":
        opts = control.options
        idx = opts.index(control.value) if control.value in opts else None
        v = st.radio(label, opts, index=idx, key=key, disabled=dis, help=help_) or ""
    elif t == "checkbox":
        st.markdown(f"**{label}**")
        for i, opt in enumerate(control.options):
            checked = st.checkbox(opt, control.is_checked(opt), key=f"{key}_{i}", disabled=dis)
            if not dis and checked != control.is_checked(opt):
                control.toggle(opt, checked)
        return
    else:
        v = st.text_input(label, control.value, key=key, disabled=dis, placeholder=f.placeholder or "", help=help_)
    if not dis and v != control.value:
        control.set(v)

# ---------- UI ----------
st.set_page_config(page_title="ClinicForms", page_icon="📋", layout="wide")

with Session(engine) as session:
    users = session.exec(select(User).where(User.is_active == True)).all()  # noqa: E712

with st.sidebar:
    st.header("Signed in as")
    if not users:
        st.warning("No users yet. Create a business with POST /businesses, then add members or invite codes under /team.")
        st.stop()
    me = st.selectbox("User", users, format_func=lambda u: f"{u.first_name or ''} {u.last_name or ''} ({u.role})")

st.title("ClinicForms")
tabs = st.tabs(["Preview", "Fill", "Review", "Export"])

with Session(engine) as session:
    forms = session.exec(select(Form).where(Form.business_id == me.business_id).order_by(Form.title)).all()

# ----- Preview -----
with tabs[0]:
    if not forms:
        st.info("No forms configured.")
    else:
        form = st.selectbox("Form", forms, format_func=lambda f: f"{f.title} (v{f.version}, {f.status})", key="pv_form")
        schema = parse_schema_lenient(form.fields_schema)
        if schema is None or not schema.fields:
            st.info("No fields configured for this form.")
        else:
            for c in renderer.render(schema, {}, renderer.RenderMode.preview):
                draw(c, f"pv_{form.id}_{c.field.id}")
            st.button("Submit Form (Preview Mode)", disabled=True)

# ----- Fill -----
with tabs[1]:
    with Session(engine) as session:
        mine = session.exec(select(Submission).where(
            Submission.submitted_by == me.id,
            Submission.status.in_([SubmissionStatus.draft, SubmissionStatus.submitted]))).all()
    active = [f for f in forms if f.status == FormStatus.active]
    if active:
        target = st.selectbox("New submission for", active, format_func=lambda f: f.title)
        if st.button("New submission"):
            with Session(engine) as session:
                sub = workflow.new_submission(target, me)
                session.add(sub); session.commit()
            st.rerun()
    if mine:
        sub = st.selectbox("Submission", mine, format_func=lambda s: f"{s.id[:8]} – {s.status}")
        form = next(f for f in forms if f.id == sub.form_id)
        editor = st.session_state.setdefault(f"editor_{sub.id}", renderer.FormEditor(parse_schema(form.fields_schema),
                                                                                     sub.submission_data))
        for c in editor.controls():
            draw(c, f"fill_{sub.id}_{c.field.id}")
        when = st.date_input("Submission date", datetime.now(timezone.utc).date())
        col1, col2 = st.columns(2)
        with Session(engine) as session:
            row = session.get(Submission, sub.id)
            try:
                if col1.button("Save draft"):
                    workflow.save_draft(row, me, editor.schema, editor.values)
                    session.add(row); session.commit()
                    st.success("Draft saved successfully!")
                if col2.button("Submit"):
                    workflow.submit(row, me, editor.schema, editor.values, datetime.combine(when, datetime.min.time()))
                    session.add(row); session.commit()
                    st.success("Form submitted successfully!")
            except SubmissionValidationError as exc:
                st.error(str(exc))
            except ClinicFormsError as exc:
                st.error(f"Failed to save form: {exc}")

# ----- Review -----
with tabs[2]:
    if not can(me.role, Action.review_submissions):
        st.info("Only owners and managers can review submissions.")
    else:
        with Session(engine) as session:
            pending = exports.load_submissions(session, me.business_id)
        pending = [s for s in pending if s.status in ("submitted", "reviewed")]
        for s in pending:
            with st.expander(f"{s.form.title if s.form else 'Unknown Form'} – {s.id[:8]}"):
                st.json(s.submission_data)
                notes = st.text_area("Review notes", s.notes or "", key=f"notes_{s.id}")
                a, r = st.columns(2)
                decision = None
                if a.button("Approve", key=f"ok_{s.id}"):
                    decision = "approved"
                if r.button("Reject", key=f"no_{s.id}"):
                    decision = "rejected"
                if decision:
                    try:
                        with Session(engine) as session:
                            row = session.get(Submission, s.id)
                            workflow.review(row, me, decision, notes)
                            session.add(row); session.commit()
                    except ClinicFormsError as exc:
                        st.error(f"Failed to review submission: {exc}")
                    else:
                        st.rerun()

# ----- Export -----
with tabs[3]:
    c1, c2 = st.columns(2)
    start = c1.date_input("From", datetime.now(timezone.utc).date() - timedelta(days=7))
    end = c2.date_input("To", datetime.now(timezone.utc).date())
    scope = st.selectbox("Form", [None] + forms, format_func=lambda f: "All forms" if f is None else f.title)
    if st.button("Build pivot export"):
        try:
            with Session(engine) as session:
                name, content, n = exports.export_pivot(session, me.business_id, start, end, scope.id if scope else None)
            st.download_button(f"Download {name} ({n} fields)", data=content, file_name=name, mime="text/csv")
        except EmptyResultError as exc:
            st.info(str(exc))
        except ClinicFormsError as exc:
            st.error(f"Export failed: {exc}")
