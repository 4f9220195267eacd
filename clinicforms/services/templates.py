"""System form templates offered in the form builder."""
import logging
from sqlmodel import Session, select
from clinicforms.models import FormTemplate

logger = logging.getLogger(__name__)

SYSTEM_TEMPLATES = [
    {
        "name": "Patient Intake",
        "category": "intake",
        "description": "Basic demographics and reason for visit.",
        "template_schema": {"fields": [
            {"id": "full_name", "type": "text", "label": "Full Name", "required": True},
            {"id": "dob", "type": "date", "label": "Date of Birth", "required": True},
            {"id": "phone", "type": "phone", "label": "Phone"},
            {"id": "email", "type": "email", "label": "Email"},
            {"id": "reason", "type": "textarea", "label": "Reason for Visit", "required": True},
        ]},
    },
    {
        "name": "Daily Progress Note",
        "category": "progress",
        "description": "Per-shift observations for residential care.",
        "template_schema": {"fields": [
            {"id": "mood", "type": "radio", "label": "Mood", "options": ["Calm", "Anxious", "Agitated"]},
            {"id": "meals", "type": "checkbox", "label": "Meals Eaten", "options": ["Breakfast", "Lunch", "Dinner"]},
            {"id": "pain", "type": "number", "label": "Pain Level", "description": "0-10"},
            {"id": "notes", "type": "textarea", "label": "Notes"},
        ]},
    },
    {
        "name": "Consent Form",
        "category": "consent",
        "description": "Treatment consent acknowledgement.",
        "template_schema": {"fields": [
            {"id": "consent", "type": "select", "label": "Consent to Treatment", "required": True,
             "options": ["I consent", "I do not consent"]},
            {"id": "signed_on", "type": "date", "label": "Date Signed", "required": True},
        ]},
    },
]


def seed_templates(session: Session) -> int:
    existing = {t.name for t in session.exec(select(FormTemplate).where(FormTemplate.is_system_template == True)).all()}  # noqa: E712
    added = 0
    for spec in SYSTEM_TEMPLATES:
        if spec["name"] in existing:
            continue
        session.add(FormTemplate(is_system_template=True, **spec))
        added += 1
    session.commit()
    if added:
        logger.info("Seeded %d system form templates", added)
    return added
