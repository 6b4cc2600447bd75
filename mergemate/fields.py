# mergemate/fields.py

import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from mergemate.errors import TemplateInputError
from mergemate.formatting import is_numeric, parse_date, to_text
from mergemate.models import FieldCategory, FieldType, MergeField, placeholder_for


SAMPLE_SIZE = 10

IDENTITY_KEY = "id"

FIELD_DESCRIPTIONS = {
    "firstName": "Staff member's first name",
    "lastName": "Staff member's last name",
    "email": "Staff member's email address",
    "company": "Company or department name",
    "jobTitle": "Job title or position",
    "phone": "Phone number",
    "department": "Department or division",
    "manager": "Manager or supervisor name",
    "startDate": "Employment start date",
    "location": "Office location or address",
    "employeeId": "Employee identification number",
}

# Order matters: the first group with a matching keyword wins.
CATEGORY_KEYWORDS = (
    (FieldCategory.PERSONAL, ("firstName", "lastName", "fullName", "name")),
    (FieldCategory.CONTACT, ("email", "phone", "address", "location")),
    (FieldCategory.WORK, ("jobTitle", "department", "company", "manager", "employeeId")),
    (FieldCategory.DATES, ("startDate", "endDate", "birthDate", "hireDate")),
)

_PHONE_CHARS_RE = re.compile(r"^\+?[\d\s\-()]+$")
_UPPER_RE = re.compile(r"(?<!^)([A-Z])")


# -------------------------
# Naming helpers
# -------------------------

def format_display_name(name: str) -> str:
    """firstName / first_name -> "First Name" / "First name"."""
    text = _UPPER_RE.sub(r" \1", name)
    text = text.replace("_", " ")
    return (text[:1].upper() + text[1:]).strip()


def describe_field(name: str) -> str:
    if name in FIELD_DESCRIPTIONS:
        return FIELD_DESCRIPTIONS[name]
    return f"Staff member's {format_display_name(name).lower()}"


def categorize_field(name: str) -> str:
    lowered = name.lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(k.lower() in lowered for k in keywords):
            return category
    return FieldCategory.CUSTOM


# -------------------------
# Type detection
# -------------------------

def _looks_like_phone(value: Any) -> bool:
    text = to_text(value).strip()
    if not _PHONE_CHARS_RE.match(text):
        return False
    # "2024-01-15" shares the phone character set
    return parse_date(text) is None


def sample_values(records: Sequence[Mapping[str, Any]], name: str) -> List[Any]:
    samples = []
    for record in records[:SAMPLE_SIZE]:
        value = record.get(name)
        if value is None or value == "":
            continue
        samples.append(value)
    return samples


def detect_field_type(records: Sequence[Mapping[str, Any]], name: str) -> str:
    """
    Infer a field type from its name and the first few sampled values.

    Checks run in a fixed order and the first match wins:
    email, phone, date, number, url, text.
    """
    samples = sample_values(records, name)
    if not samples:
        return FieldType.TEXT

    lowered = name.lower()
    texts = [to_text(v) for v in samples]

    if "email" in lowered or any("@" in t for t in texts):
        return FieldType.EMAIL

    if "phone" in lowered or "tel" in lowered or all(_looks_like_phone(v) for v in samples):
        return FieldType.PHONE

    if "date" in lowered or "time" in lowered or any(parse_date(v) is not None for v in samples):
        return FieldType.DATE

    if all(is_numeric(v) for v in samples):
        return FieldType.NUMBER

    if any(t.startswith("http") for t in texts):
        return FieldType.URL

    return FieldType.TEXT


# -------------------------
# Catalog construction
# -------------------------

def _collect_field_names(records: Iterable[Mapping[str, Any]], identity_key: Optional[str]) -> List[str]:
    seen: Dict[str, None] = {}
    for record in records:
        for key, value in record.items():
            if key == identity_key or value is None or key in seen:
                continue
            seen[key] = None
    return list(seen)


def build_field(records: Sequence[Mapping[str, Any]], name: str) -> MergeField:
    return MergeField(
        name=name,
        display_name=format_display_name(name),
        type=detect_field_type(records, name),
        placeholder=placeholder_for(name),
        description=describe_field(name),
        category=categorize_field(name),
    )


def extract_fields(
    records: Sequence[Mapping[str, Any]],
    identity_key: Optional[str] = IDENTITY_KEY,
) -> List[MergeField]:
    """
    Discover merge fields from a record collection.

    Returns fields in first-seen key order. The identity key is never
    reported as a field.
    """
    if records is None:
        raise TemplateInputError("records must be a list of mappings, got None")

    records = list(records)
    for idx, record in enumerate(records):
        if not isinstance(record, Mapping):
            raise TemplateInputError(
                f"record {idx} must be a mapping, got {type(record).__name__}"
            )

    names = _collect_field_names(records, identity_key)
    return [build_field(records, name) for name in names]
