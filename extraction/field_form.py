"""
Invoice form state that tracks where each field value came from.

Auto-filled values from the field extractor never replace a value the
user typed: a user write always marks the field as user-edited, and an
auto-fill write to a user-edited field is rejected.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List

from .models import FieldSet


class FieldSource(Enum):
    EMPTY = "empty"
    AUTO = "auto"
    USER_EDITED = "user_edited"


@dataclass
class TrackedField:
    """A field value tagged with its origin."""
    value: str = ""
    source: FieldSource = FieldSource.EMPTY

    @property
    def is_auto_filled(self) -> bool:
        return self.source is FieldSource.AUTO

    def set_user_value(self, value: str):
        self.value = value
        self.source = FieldSource.USER_EDITED

    def auto_fill(self, value: str) -> bool:
        """
        Write an extracted value unless the user has edited this field.

        Returns True when the value was written.
        """
        if self.source is FieldSource.USER_EDITED or not value:
            return False
        self.value = value
        self.source = FieldSource.AUTO
        return True


class InvoiceForm:
    """The three scalar invoice fields with per-field origin tracking."""

    FIELD_NAMES = ('invoice_no', 'item', 'price')

    def __init__(self):
        self.fields: Dict[str, TrackedField] = {name: TrackedField() for name in self.FIELD_NAMES}

    def __getitem__(self, name: str) -> TrackedField:
        self._check_name(name)
        return self.fields[name]

    def set_user_value(self, name: str, value: str):
        """Record a user edit; clears the auto-filled flag for this field only."""
        self[name].set_user_value(value)

    def apply_auto_fill(self, field_set: FieldSet) -> List[str]:
        """
        Apply extracted values to every field the user has not edited.

        Args:
            field_set: Values produced by the field extractor

        Returns:
            Names of the fields that were actually filled
        """
        extracted = field_set.to_dict()
        return [name for name in self.FIELD_NAMES if self.fields[name].auto_fill(extracted[name])]

    def reset(self):
        for name in self.FIELD_NAMES:
            self.fields[name] = TrackedField()

    def to_field_set(self) -> FieldSet:
        return FieldSet(**{name: self.fields[name].value for name in self.FIELD_NAMES})

    def to_dict(self) -> Dict[str, Dict[str, str]]:
        return {
            name: {'value': field.value, 'source': field.source.value}
            for name, field in self.fields.items()
        }

    def _check_name(self, name: str):
        if name not in self.fields:
            raise KeyError(f"Unknown invoice field '{name}'. Fields: {', '.join(self.FIELD_NAMES)}")
