"""
Form State - the FIR form as an immutable two-level record

Sections:
- complainant: name, age, gender, address, phone, email
- incident: date, time, location, description, type, severity

Lifecycle:
- Created empty (or pre-seeded) at conversation start
- Field Mapper fills empty fields only
- Direct user edits always win and are recorded in user_edited,
  so auto-population never touches those fields again

Design principles:
- Frozen dataclasses; every update returns a copy
- Values are optional strings ('' is treated as empty)
"""

from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, FrozenSet, Optional, Tuple

SECTION_COMPLAINANT = "complainant"
SECTION_INCIDENT = "incident"


@dataclass(frozen=True)
class Complainant:
    name: Optional[str] = None
    age: Optional[str] = None
    gender: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


@dataclass(frozen=True)
class Incident:
    date: Optional[str] = None
    time: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    type: Optional[str] = None
    severity: Optional[str] = None


SECTION_FIELDS: Dict[str, Tuple[str, ...]] = {
    SECTION_COMPLAINANT: tuple(f.name for f in fields(Complainant)),
    SECTION_INCIDENT: tuple(f.name for f in fields(Incident)),
}


def validate_field(section: str, field_name: str) -> None:
    """
    Raises:
        ValueError: If section or field is not part of the form
    """
    if section not in SECTION_FIELDS:
        raise ValueError(f"Unknown form section: {section}")
    if field_name not in SECTION_FIELDS[section]:
        raise ValueError(f"Unknown field '{field_name}' in section '{section}'")


@dataclass(frozen=True)
class FormState:
    """
    Complete form state.

    Attributes:
        complainant: Complainant section
        incident: Incident section
        user_edited: 'section.field' keys set by direct user edit
    """
    complainant: Complainant = field(default_factory=Complainant)
    incident: Incident = field(default_factory=Incident)
    user_edited: FrozenSet[str] = frozenset()

    def get(self, section: str, field_name: str) -> Optional[str]:
        validate_field(section, field_name)
        return getattr(getattr(self, section), field_name)

    def is_empty(self, section: str, field_name: str) -> bool:
        value = self.get(section, field_name)
        return value is None or value == ""

    def is_user_edited(self, section: str, field_name: str) -> bool:
        return f"{section}.{field_name}" in self.user_edited

    def with_value(self, section: str, field_name: str, value: Optional[str],
                   user_edit: bool = False) -> "FormState":
        """
        Copy with one field replaced

        Args:
            section: 'complainant' or 'incident'
            field_name: Field within section
            value: New value
            user_edit: Record the field as user-edited

        Raises:
            ValueError: If section/field unknown
        """
        validate_field(section, field_name)
        updated_section = replace(getattr(self, section), **{field_name: value})
        user_edited = self.user_edited
        if user_edit:
            user_edited = user_edited | {f"{section}.{field_name}"}
        return replace(self, **{section: updated_section, 'user_edited': user_edited})

    @classmethod
    def from_dict(cls, data: Dict[str, Dict[str, Any]]) -> "FormState":
        """
        Build from {'complainant': {...}, 'incident': {...}}

        Unknown keys raise ValueError. Values are stringified.
        """
        form = cls()
        for section, values in (data or {}).items():
            for field_name, value in (values or {}).items():
                form = form.with_value(section, field_name, None if value is None else str(value))
        return form

    def to_dict(self) -> Dict[str, Any]:
        return {
            section: {name: getattr(getattr(self, section), name) for name in names}
            for section, names in SECTION_FIELDS.items()
        }
