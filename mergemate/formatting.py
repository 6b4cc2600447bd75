# mergemate/formatting.py
"""
Value formatting for merge fields.

Everything in here degrades gracefully: a value that cannot be parsed as
its inferred type is returned as its original string form instead of
raising.
"""

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Any, Optional

from mergemate.models import FieldType, RenderOptions


MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

DATE_FORMATS = ("MM/DD/YYYY", "DD/MM/YYYY", "YYYY-MM-DD", "long", "short")
NUMBER_FORMATS = ("default", "currency", "percent", "decimal")

DEFAULT_TRUNCATE_LENGTH = 50

# Beyond double range the raw text is kept
MAX_INTEGER_DIGITS = 309

# Non-ISO spellings accepted when parsing dates
_STRPTIME_FORMATS = (
    "%m/%d/%Y",
    "%m/%d/%y",
    "%Y/%m/%d",
    "%B %d, %Y",
    "%b %d, %Y",
    "%B %d %Y",
    "%b %d %Y",
    "%d %B %Y",
    "%d %b %Y",
)

_ISO_PREFIX_RE = re.compile(r"^\d{4}-\d{2}-\d{2}")
_NON_DIGIT_RE = re.compile(r"[^0-9]")
_LEADING_INT_RE = re.compile(r"^\s*([-+]?\d+)")
_TITLE_WORD_RE = re.compile(r"\w\S*")


# -------------------------------------------------
# Stringification
# -------------------------------------------------

def to_text(value: Any) -> str:
    """Render a scalar record value as plain text."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


# -------------------------------------------------
# Parsing
# -------------------------------------------------

def parse_date(value: Any) -> Optional[date]:
    """
    Parse a record value into a calendar date.

    Numbers and booleans are never treated as dates.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    if _ISO_PREFIX_RE.match(text):
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            return None

    for fmt in _STRPTIME_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def parse_number(value: Any) -> Optional[Decimal]:
    if isinstance(value, bool) or value is None:
        return None

    if isinstance(value, Decimal):
        num = value
    elif isinstance(value, (int, float)):
        num = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        if not text or "_" in text:
            return None
        try:
            num = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None

    if not num.is_finite():
        return None
    return num


def is_numeric(value: Any) -> bool:
    return parse_number(value) is not None


# -------------------------------------------------
# Type formatters
# -------------------------------------------------

def format_phone(phone: str) -> str:
    digits = _NON_DIGIT_RE.sub("", phone)

    if len(digits) == 10:
        return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
    if len(digits) == 11 and digits[0] == "1":
        return f"+1 ({digits[1:4]}) {digits[4:7]}-{digits[7:]}"

    return phone


def format_date(value: Any, fmt: Optional[str] = "MM/DD/YYYY") -> str:
    d = parse_date(value)
    if d is None:
        return to_text(value)

    if fmt == "DD/MM/YYYY":
        return f"{d.day:02d}/{d.month:02d}/{d.year:04d}"
    if fmt == "YYYY-MM-DD":
        return d.isoformat()
    if fmt == "long":
        return f"{MONTH_NAMES[d.month - 1]} {d.day}, {d.year}"
    if fmt == "short":
        return f"{MONTH_NAMES[d.month - 1][:3]} {d.day}, {d.year}"

    # MM/DD/YYYY and anything unrecognised
    return f"{d.month:02d}/{d.day:02d}/{d.year:04d}"


def _round(num: Decimal, places: int) -> Decimal:
    return num.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def _strip_fraction(text: str) -> str:
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_number(value: Any, fmt: Optional[str] = "default") -> str:
    """
    en-US number formatting.

    default  -> 1,234.568 (grouped, up to three fraction digits)
    currency -> $1,234.57
    percent  -> value / 100 as a percentage, 0-2 fraction digits
    decimal  -> 1,234.57 (always two fraction digits)
    """
    num = parse_number(value)
    if num is None or num.adjusted() >= MAX_INTEGER_DIGITS:
        return to_text(value)

    try:
        with localcontext() as ctx:
            ctx.prec = max(ctx.prec, num.adjusted() + 8)
            if fmt == "currency":
                q = _round(num, 2)
                sign = "-" if q < 0 else ""
                return f"{sign}${abs(q):,.2f}"

            if fmt == "percent":
                q = _round(num, 2)
                return _strip_fraction(f"{q + 0:,f}") + "%"

            if fmt == "decimal":
                return f"{_round(num, 2) + 0:,.2f}"

            q = _round(num, 3)
            return _strip_fraction(f"{q + 0:,f}")
    except (InvalidOperation, ValueError):
        return to_text(value)


def format_value(value: Any, field_type: str, options: Optional[RenderOptions] = None) -> str:
    """Format a raw record value for placeholder substitution."""
    options = options or RenderOptions()

    if value is None or value == "":
        return options.default_value or ""

    if field_type == FieldType.EMAIL:
        return to_text(value).lower()
    if field_type == FieldType.PHONE:
        return format_phone(to_text(value))
    if field_type == FieldType.DATE:
        return format_date(value, options.date_format)
    if field_type == FieldType.NUMBER:
        return format_number(value, options.number_format)

    return to_text(value)


# -------------------------------------------------
# Inline directives: {{field|format[:argument]}}
# -------------------------------------------------

def _title_case(text: str) -> str:
    return _TITLE_WORD_RE.sub(lambda m: m.group(0)[:1].upper() + m.group(0)[1:].lower(), text)


def _truncate_length(argument: Optional[str]) -> int:
    if not argument:
        return DEFAULT_TRUNCATE_LENGTH
    m = _LEADING_INT_RE.match(argument)
    if not m:
        return DEFAULT_TRUNCATE_LENGTH
    return int(m.group(1)) or DEFAULT_TRUNCATE_LENGTH


def apply_directive(value: Any, format_type: str, argument: Optional[str] = None) -> str:
    if not value:
        return ""

    text = to_text(value)

    if format_type == "upper":
        return text.upper()
    if format_type == "lower":
        return text.lower()
    if format_type == "title":
        return _title_case(text)
    if format_type == "truncate":
        length = _truncate_length(argument)
        if len(text) > length:
            return text[:max(length, 0)] + "..."
        return text

    return text
