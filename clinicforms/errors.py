from typing import List


class ClinicFormsError(Exception):
    """Base class for errors raised by the form services."""


class SchemaError(ClinicFormsError, ValueError):
    pass


class SubmissionDataError(ClinicFormsError, ValueError):
    pass


class SubmissionValidationError(ClinicFormsError):
    """Required fields are missing at submit time."""

    def __init__(self, missing_labels: List[str]):
        self.missing_labels = list(missing_labels)
        super().__init__("Please fill in all required fields: " + ", ".join(self.missing_labels))


class SubmissionStateError(ClinicFormsError):
    pass


class PermissionDenied(ClinicFormsError):
    pass


class LimitReachedError(ClinicFormsError):
    pass


class NotFound(ClinicFormsError):
    pass


class ReadOnlyControlError(ClinicFormsError):
    pass


class EmptyResultError(ClinicFormsError):
    """An export query returned no rows. Reported as a notice, not a failure."""


class UpstreamFailure(ClinicFormsError):
    """The data fetch feeding an export or a render failed."""


class InviteError(ClinicFormsError):
    """An invite code was already redeemed, has expired, or cannot be used by this person."""
