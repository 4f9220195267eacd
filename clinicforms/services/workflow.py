"""Submission lifecycle: draft -> submitted -> approved | rejected."""
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from clinicforms.errors import (PermissionDenied, SubmissionStateError,
                                SubmissionValidationError)
from clinicforms.models import Form, FormStatus, Submission, SubmissionStatus, User, as_utc, utcnow
from clinicforms.services import capabilities, validator
from clinicforms.services.capabilities import Action
from clinicforms.services.form_schema import FormSchema, decode_submission_data

logger = logging.getLogger(__name__)

EDITABLE = {SubmissionStatus.draft, SubmissionStatus.submitted}
REVIEWABLE = {SubmissionStatus.submitted, SubmissionStatus.reviewed}
TERMINAL = {SubmissionStatus.approved, SubmissionStatus.rejected}
DECISIONS = {SubmissionStatus.approved, SubmissionStatus.rejected}


def new_submission(form: Form, submitter: User, client_id: Optional[str] = None) -> Submission:
    if FormStatus(form.status) != FormStatus.active:
        raise SubmissionStateError(f"Form '{form.title}' is not active")
    return Submission(form_id=form.id, client_id=client_id, submitted_by=submitter.id,
                      status=SubmissionStatus.draft, submission_data={})


def _check_editable(submission: Submission, actor: User) -> None:
    status = SubmissionStatus(submission.status)
    if status not in EDITABLE:
        raise SubmissionStateError(f"Submission is {status.value} and can no longer be edited")
    if submission.submitted_by != actor.id:
        raise PermissionDenied("Only the original submitter can edit this submission")


def save_draft(submission: Submission, actor: User, schema: FormSchema, data: Dict[str, Any]) -> Submission:
    _check_editable(submission, actor)
    # JSON columns are replaced, never mutated in place
    submission.submission_data = decode_submission_data(schema, data)
    submission.updated_at = utcnow()
    return submission


def submit(submission: Submission, actor: User, schema: FormSchema, data: Optional[Dict[str, Any]] = None,
           submitted_at: Optional[datetime] = None) -> Submission:
    _check_editable(submission, actor)
    values = decode_submission_data(schema, data) if data is not None else dict(submission.submission_data or {})
    missing = validator.missing_labels(schema, values)
    if missing:
        raise SubmissionValidationError(missing)
    submission.submission_data = values
    submission.status = SubmissionStatus.submitted
    submission.submitted_at = as_utc(submitted_at) or utcnow()
    submission.updated_at = utcnow()
    logger.info("Submission %s submitted by %s", submission.id, actor.id)
    return submission


def review(submission: Submission, reviewer: User, decision, notes: Optional[str] = None) -> Submission:
    capabilities.require(reviewer.role, Action.review_submissions)
    decision = SubmissionStatus(decision)
    if decision not in DECISIONS:
        raise SubmissionStateError(f"Unsupported review decision: {decision.value}")
    status = SubmissionStatus(submission.status)
    if status not in REVIEWABLE:
        raise SubmissionStateError(f"Submission is {status.value}, not pending review")
    submission.status = decision
    submission.reviewed_by = reviewer.id
    submission.reviewed_at = utcnow()
    if notes is not None:
        submission.notes = notes
    submission.updated_at = utcnow()
    logger.info("Submission %s %s by %s", submission.id, decision.value, reviewer.id)
    return submission
