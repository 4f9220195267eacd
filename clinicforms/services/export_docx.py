from docx import Document
from clinicforms.config import settings
from clinicforms.services.export_views import ExportSubmission, client_name, submitter_name
from clinicforms.services.flatten import format_date_for_export
from clinicforms.services.form_schema import parse_schema_lenient
import logging
import os

logger = logging.getLogger(__name__)

def _h(doc, text, lvl=1): doc.add_heading(text, level=lvl)
def _p(doc, text): doc.add_paragraph(text)
def _bullets(doc, items):
    for it in items: doc.add_paragraph(it, style="List Bullet")

def build_doc(submission: ExportSubmission) -> str:
    os.makedirs(settings.EXPORT_DIR, exist_ok=True)
    doc = Document()
    form = submission.form
    _h(doc, (form.title if form else None) or "Unknown Form", 0)
    if form and form.description:
        _p(doc, form.description)
    _p(doc, f"Status: {submission.status} | Submission ID: {submission.id}")
    _p(doc, f"Patient: {client_name(submission.client)} | Submitted By: {submitter_name(submission.submitter)}")
    if submission.submitted_at:
        _p(doc, f"Submitted: {format_date_for_export(submission.submitted_at)}")

    _h(doc, "Answers", 1)
    data = submission.submission_data or {}
    schema = parse_schema_lenient(form.fields_schema) if form else None
    if schema is None:
        _p(doc, "Form structure unavailable; raw answers follow.")
        for k, v in data.items():
            _h(doc, k, 2)
            if isinstance(v, list): _bullets(doc, v)
            else: _p(doc, str(v))
    for field in (schema.fields if schema else []):
        _h(doc, field.display_label + (" *" if field.required else ""), 2)
        if field.description:
            _p(doc, field.description)
        v = data.get(field.id)
        if isinstance(v, list) and v: _bullets(doc, v)
        elif v in (None, "", []): _p(doc, "—")
        else: _p(doc, str(v))

    if submission.notes or submission.reviewed_at:
        _h(doc, "Review", 1)
        if submission.reviewed_at:
            _p(doc, f"Reviewed: {format_date_for_export(submission.reviewed_at)}")
        if submission.notes:
            _p(doc, submission.notes)

    outpath = os.path.join(settings.EXPORT_DIR, f"{submission.id}.docx")
    doc.save(outpath)
    logger.info("Wrote submission document %s", outpath)
    return outpath
