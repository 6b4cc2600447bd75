# mergemate/preview.py

import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence

from mergemate.errors import MergeEngineError
from mergemate.resolver import MergeEngine


logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


# ============================================================
# helpers
# ============================================================

def is_email_valid(email: Any) -> bool:
    """Basic email validation."""
    if not email or not isinstance(email, str):
        return False
    return bool(EMAIL_RE.match(email.strip()))


def record_email(record: Mapping[str, Any]) -> str:
    """First non-empty value of an email-like key, in record order."""
    for key, value in record.items():
        if "email" in str(key).lower() and value:
            return str(value).strip()
    return ""


# ============================================================
# preview row construction
# ============================================================

def build_preview_rows(
    engine: MergeEngine,
    records: Sequence[Mapping[str, Any]],
    template: str,
    subject_template: str = "",
    options: Optional[Any] = None,
    *,
    only_recipients: bool = True,
) -> List[Dict[str, Any]]:
    """
    Build preview table rows, one per record, in input order.

    Returns list of dicts with keys:
        id
        email         (display value, original casing)
        subject       (rendered subject, "" when no subject template)
        body          (rendered template, None when not eligible or failed)
        is_eligible   (record has a valid email address)
        error         (render failure message, else None)
    """
    out: List[Dict[str, Any]] = []

    for record in records:
        email = record_email(record)
        eligible = is_email_valid(email)

        if only_recipients and not eligible:
            continue

        row: Dict[str, Any] = {
            "id": record.get(engine.identity_key),
            "email": email,
            "subject": "",
            "body": None,
            "is_eligible": eligible,
            "error": None,
        }

        if eligible:
            try:
                row["subject"] = engine.render(subject_template or "", record, options)
                row["body"] = engine.render(template, record, options)
            except MergeEngineError as e:
                logger.warning("Preview failed for %s: %s", email, e)
                row["error"] = str(e)

        out.append(row)

    return out
