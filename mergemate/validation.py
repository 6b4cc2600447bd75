# mergemate/validation.py

import re
from typing import Container, List

from mergemate.errors import TemplateInputError
from mergemate.models import ValidationResult


PLACEHOLDER_RE = re.compile(r"\{\{(\w+)\}\}")

# (label, opening marker, closing marker)
BLOCK_MARKERS = (
    ("if", "{{#if", "{{/if}}"),
    ("unless", "{{#unless", "{{/unless}}"),
)


def find_placeholders(template: str) -> List[str]:
    """Distinct names used as plain {{name}} placeholders, first-seen order."""
    names: List[str] = []
    for match in PLACEHOLDER_RE.finditer(template):
        name = match.group(1)
        if name not in names:
            names.append(name)
    return names


def validate_template(template: str, known_fields: Container[str]) -> ValidationResult:
    """
    Check a template against a field catalog without rendering it.

    Block balance is checked by counting opening and closing tags only;
    nesting order is not verified.
    """
    if template is None:
        raise TemplateInputError("template is required")
    if not isinstance(template, str):
        raise TemplateInputError(f"template must be a string, got {type(template).__name__}")

    errors: List[str] = []

    for name in find_placeholders(template):
        if name not in known_fields:
            errors.append(f"Unknown merge field: {name}")

    for label, opening, closing in BLOCK_MARKERS:
        if template.count(opening) != template.count(closing):
            errors.append(f"Unmatched conditional blocks ({{{{#{label}}}}} / {{{{/{label}}}}})")

    return ValidationResult.from_findings(errors)
