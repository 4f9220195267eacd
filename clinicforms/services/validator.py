from typing import Any, Dict, List

from clinicforms.services.form_schema import FieldDescriptor, FormSchema


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, set)):
        return len(value) == 0
    return False


def validate(schema: FormSchema, values: Dict[str, Any]) -> List[FieldDescriptor]:
    """Required fields with no usable answer, in schema order. Empty list means valid."""
    return [f for f in schema.fields if f.required and is_empty(values.get(f.id))]


def missing_labels(schema: FormSchema, values: Dict[str, Any]) -> List[str]:
    return [f.display_label for f in validate(schema, values)]
