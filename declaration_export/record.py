"""
record.py - The declaration field values.

Values arrive from the form layer as free text. They are trimmed on the way
in and an empty string means "unset"; unset fields render as dotted
placeholders so the document keeps its shape.
"""

import logging
from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any, List, Mapping

from .errors import ValidationIncomplete

logger = logging.getLogger(__name__)

PLACEHOLDER_CHAR = "."

# Human readable labels, used in validation messages
FIELD_LABELS = {
    "applicant_name": "applicant name",
    "father_name": "father/guardian name",
    "age": "age",
    "year": "year",
    "occupation": "occupation",
    "address": "address",
    "place": "place",
    "date": "date",
}


def _clean(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def placeholder(min_dots: int) -> str:
    """Dotted blank of a fixed width."""
    return PLACEHOLDER_CHAR * max(0, min_dots)


def format_reference_date(value: str) -> str:
    """
    Format an ISO date (YYYY-MM-DD) as DD/MM/YYYY.

    Empty input gives an empty string. Text that is not an ISO date is
    returned as-is (trimmed) rather than rejected.
    """
    text = _clean(value)
    if not text:
        return ""
    try:
        parsed = datetime.strptime(text[:10], "%Y-%m-%d").date()
    except ValueError:
        logger.debug(f"Date {text!r} is not ISO formatted, using it verbatim")
        return text
    return parsed.strftime("%d/%m/%Y")


@dataclass(frozen=True)
class DeclarationRecord:
    """Field values of one self-attested declaration."""
    applicant_name: str = ""
    father_name: str = ""
    age: str = ""
    year: str = ""
    occupation: str = ""
    address: str = ""
    place: str = ""
    date: str = ""

    def __post_init__(self):
        # Frozen, so normalise through object.__setattr__
        for f in fields(self):
            object.__setattr__(self, f.name, _clean(getattr(self, f.name)))

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "DeclarationRecord":
        """Build a record from a mapping; unknown keys are ignored."""
        names = {f.name for f in fields(cls)}
        unknown = sorted(set(mapping) - names)
        if unknown:
            logger.debug(f"Ignoring unknown record fields: {unknown}")
        return cls(**{k: mapping.get(k) for k in names})

    @staticmethod
    def today() -> str:
        return datetime.now().date().isoformat()

    @property
    def reference_date(self) -> str:
        return format_reference_date(self.date)

    def display_value(self, name: str, min_dots: int = 20) -> str:
        """Field value, or a dotted placeholder when unset."""
        value = getattr(self, name)
        return value if value else placeholder(min_dots)

    def missing_fields(self) -> List[str]:
        return [f.name for f in fields(self) if not getattr(self, f.name)]

    def as_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def validate_record(record: DeclarationRecord) -> DeclarationRecord:
    """Raise ValidationIncomplete unless every field is filled."""
    missing = record.missing_fields()
    if missing:
        raise ValidationIncomplete(missing)
    return record
