"""Field schema model for custom forms.

A form's ``fields_schema`` column holds ``{"fields": [...]}``. The helpers here
turn that JSON into typed descriptors and decode submission value bags against
it at the HTTP boundary.
"""
import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from clinicforms.errors import SchemaError, SubmissionDataError

logger = logging.getLogger(__name__)


class FieldType(str, Enum):
    text = "text"
    textarea = "textarea"
    select = "select"
    radio = "radio"
    checkbox = "checkbox"
    date = "date"
    email = "email"
    phone = "phone"
    number = "number"


CHOICE_TYPES = {FieldType.select, FieldType.radio, FieldType.checkbox}
ARRAY_TYPES = {FieldType.checkbox}


class FieldDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    type: FieldType = FieldType.text
    label: str = ""
    description: Optional[str] = None
    placeholder: Optional[str] = None
    required: bool = False
    options: Optional[List[str]] = None

    @property
    def is_choice(self) -> bool:
        return self.type in CHOICE_TYPES

    @property
    def is_array(self) -> bool:
        return self.type in ARRAY_TYPES

    @property
    def display_label(self) -> str:
        return self.label or self.id or "Unknown Field"

    def empty_value(self):
        return [] if self.is_array else ""


class FormSchema(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    fields: List[FieldDescriptor] = []

    @model_validator(mode="after")
    def _unique_ids(self):
        seen = set()
        for f in self.fields:
            if f.id in seen:
                raise ValueError(f"Duplicate field id: {f.id}")
            seen.add(f.id)
        return self

    def field(self, field_id: str) -> Optional[FieldDescriptor]:
        return next((f for f in self.fields if f.id == field_id), None)

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


def parse_schema(raw: Any) -> FormSchema:
    if raw is None:
        raise SchemaError("Form schema missing")
    if isinstance(raw, list):
        raw = {"fields": raw}
    try:
        return FormSchema.model_validate(raw)
    except ValidationError as exc:
        raise SchemaError(str(exc)) from exc


def parse_schema_lenient(raw: Any) -> Optional[FormSchema]:
    """Like parse_schema, but a missing or malformed schema yields None."""
    try:
        return parse_schema(raw)
    except SchemaError as exc:
        logger.debug("Skipping unusable form schema: %s", exc)
        return None


def schema_warnings(schema: FormSchema) -> List[str]:
    warnings = []
    for f in schema.fields:
        if not f.is_choice:
            continue
        opts = f.options or []
        if not opts:
            warnings.append(f"Field '{f.display_label}' has no options")
        dupes = sorted({o for o in opts if opts.count(o) > 1})
        if dupes:
            warnings.append(f"Field '{f.display_label}' repeats options: {', '.join(dupes)}")
    return warnings


def check_form_definition(schema: FormSchema) -> None:
    """Rules enforced when a form is saved from the builder."""
    if not schema.fields:
        raise SchemaError("Please add at least one field to the form.")
    if any(not f.label.strip() for f in schema.fields):
        raise SchemaError("All fields must have a label.")


def decode_submission_data(schema: FormSchema, raw: Any) -> Dict[str, Any]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise SubmissionDataError("Answers must be an object")
    out: Dict[str, Any] = {}
    for key, value in raw.items():
        if value is None:
            continue
        field = schema.field(key)
        if field is None:
            # field ids from an older version of the form are kept as-is
            out[key] = value
            continue
        out[key] = _decode_value(field, value)
    return out


def _decode_value(field: FieldDescriptor, value: Any):
    if field.is_array:
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise SubmissionDataError(f"Field '{field.display_label}' must be a list of strings")
        return list(value)
    if field.type == FieldType.number and isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if not isinstance(value, str):
        raise SubmissionDataError(f"Field '{field.display_label}' must be a string")
    return value
