"""Turns a form schema plus a value map into bound controls.

Front ends (the Streamlit app, the /forms/{id}/preview endpoint) draw the
controls; edits go back through ``Control.set`` / ``Control.toggle`` so the
value map is the single source of truth for the open editor.
"""
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from clinicforms.errors import ReadOnlyControlError
from clinicforms.services import validator
from clinicforms.services.form_schema import FieldDescriptor, FieldType, FormSchema

OnChange = Callable[[str, Any], None]


class RenderMode(str, Enum):
    fill = "fill"
    preview = "preview"


_INPUT_TYPES = {
    FieldType.text: "text",
    FieldType.email: "email",
    FieldType.phone: "tel",
    FieldType.number: "number",
    FieldType.date: "date",
    FieldType.textarea: "textarea",
    FieldType.select: "select",
    FieldType.radio: "radio",
    FieldType.checkbox: "checkbox",
}


class Control:
    def __init__(self, field: FieldDescriptor, values: Dict[str, Any], disabled: bool,
                 on_change: Optional[OnChange] = None):
        self.field = field
        self.disabled = disabled
        self._values = values
        self._on_change = on_change

    @property
    def input_type(self) -> str:
        return _INPUT_TYPES.get(self.field.type, "text")

    @property
    def options(self) -> List[str]:
        return list(self.field.options or []) if self.field.is_choice else []

    @property
    def value(self):
        v = self._values.get(self.field.id)
        if v is None:
            return self.field.empty_value()
        if self.field.is_array:
            # a scalar left over from an earlier schema version is one answer
            return list(v) if isinstance(v, (list, tuple)) else ([v] if v else [])
        return v

    def is_checked(self, option: str) -> bool:
        return option in self.value

    def set(self, value) -> None:
        if self.disabled:
            raise ReadOnlyControlError(f"'{self.field.display_label}' is read-only in preview mode")
        self._values[self.field.id] = value
        if self._on_change:
            self._on_change(self.field.id, value)

    def toggle(self, option: str, checked: bool) -> None:
        current = self.value
        if checked:
            new = current if option in current else current + [option]
        else:
            new = [o for o in current if o != option]
        self.set(new)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.field.id,
            "label": self.field.label,
            "description": self.field.description,
            "placeholder": self.field.placeholder,
            "required": self.field.required,
            "input_type": self.input_type,
            "options": self.options,
            "value": self.value,
            "disabled": self.disabled,
        }


def render(schema: FormSchema, current_values: Dict[str, Any], mode: RenderMode = RenderMode.fill,
           on_change: Optional[OnChange] = None) -> List[Control]:
    disabled = RenderMode(mode) == RenderMode.preview
    return [Control(f, current_values, disabled, None if disabled else on_change) for f in schema.fields]


class FormEditor:
    """Single in-memory editor for one open submission."""

    def __init__(self, schema: FormSchema, values: Optional[Dict[str, Any]] = None):
        self.schema = schema
        self.values: Dict[str, Any] = dict(values or {})
        self.dirty = False

    def _touched(self, field_id, value):
        self.dirty = True

    def controls(self) -> List[Control]:
        return render(self.schema, self.values, RenderMode.fill, on_change=self._touched)

    def control(self, field_id: str) -> Control:
        for c in self.controls():
            if c.field.id == field_id:
                return c
        raise KeyError(field_id)

    def missing_required(self) -> List[str]:
        return validator.missing_labels(self.schema, self.values)
