# mergemate/models.py

from dataclasses import dataclass, fields as dc_fields
from typing import Any, Dict, List, Mapping, Optional, Tuple


# -------------------------------------------------
# Field vocabulary
# -------------------------------------------------

class FieldType:
    TEXT = "text"
    EMAIL = "email"
    PHONE = "phone"
    DATE = "date"
    NUMBER = "number"
    URL = "url"

    ALL = (TEXT, EMAIL, PHONE, DATE, NUMBER, URL)


class FieldCategory:
    PERSONAL = "personal"
    CONTACT = "contact"
    WORK = "work"
    DATES = "dates"
    CUSTOM = "custom"

    ALL = (PERSONAL, CONTACT, WORK, DATES, CUSTOM)


def placeholder_for(name: str) -> str:
    return "{{" + name + "}}"


# -------------------------------------------------
# Value objects
# -------------------------------------------------

@dataclass(frozen=True)
class MergeField:
    """One discoverable merge field, derived from a record collection."""

    name: str
    display_name: str
    type: str
    placeholder: str
    description: str
    category: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "name": self.name,
            "displayName": self.display_name,
            "type": self.type,
            "placeholder": self.placeholder,
            "description": self.description,
            "category": self.category,
        }


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()

    @classmethod
    def from_findings(cls, errors: List[str], warnings: Optional[List[str]] = None) -> "ValidationResult":
        return cls(
            is_valid=not errors,
            errors=tuple(errors),
            warnings=tuple(warnings or ()),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


_OPTION_ALIASES = {
    "defaultValue": "default_value",
    "dateFormat": "date_format",
    "numberFormat": "number_format",
}


@dataclass(frozen=True)
class RenderOptions:
    """
    Per-call rendering knobs.

    date_format:   MM/DD/YYYY | DD/MM/YYYY | YYYY-MM-DD | long | short
    number_format: default | currency | percent | decimal
    """

    default_value: str = ""
    date_format: str = "MM/DD/YYYY"
    number_format: str = "default"

    @classmethod
    def coerce(cls, value: Any, base: Optional["RenderOptions"] = None) -> "RenderOptions":
        """
        Build options from None, a mapping (snake_case or camelCase keys)
        or an existing instance. Keys missing from a mapping fall back to
        ``base`` (or the class defaults).
        """
        base = base or cls()
        if value is None:
            return base
        if isinstance(value, RenderOptions):
            return value
        if not isinstance(value, Mapping):
            raise TypeError(f"Unsupported render options: {type(value).__name__}")

        known = {f.name for f in dc_fields(cls)}
        kwargs = {f.name: getattr(base, f.name) for f in dc_fields(cls)}
        for key, v in value.items():
            key = _OPTION_ALIASES.get(key, key)
            if key in known and v is not None:
                kwargs[key] = str(v)
        return cls(**kwargs)


@dataclass
class RenderResult:
    """Outcome of rendering one record in a batch."""

    index: int
    output: Optional[str] = None
    error: Optional[str] = None
    record_id: Any = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "id": self.record_id,
            "output": self.output,
            "error": self.error,
        }
