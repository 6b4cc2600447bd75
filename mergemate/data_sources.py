# mergemate/data_sources.py

import csv
import io
import logging
import re
import ssl
import urllib.parse
import urllib.request
from typing import Any, Dict, List, Optional, Sequence, Tuple

import certifi


logger = logging.getLogger(__name__)

GS_HOST = "docs.google.com"

RECORD_ID_KEY = "id"

# Headers consumed by the standard-field mapping; never copied as custom fields
STANDARD_HEADERS = (
    "email", "e-mail", "first name", "last name", "name", "full name",
    "company", "organization", "title", "position", "job title",
    "phone", "telephone",
)


# -------------------------------------------------
# Public API
# -------------------------------------------------

def load_csv(path: str, contacts_only: bool = False) -> Tuple[List[Dict[str, Any]], List[str]]:
    """
    Load recipient records from a local CSV file.

    Returns:
        records: one record per data row (see rows_to_records)
        headers: ordered list of the original column headers, stripped
    """
    with open(path, mode="r", encoding="utf-8-sig", newline="") as f:
        records, headers = _parse_csv_text(f.read(), contacts_only=contacts_only)

    logger.info("Loaded %d records from %s", len(records), path)
    return records, headers


def load_google_sheet(
    sheet_url: str,
    timeout: int = 20,
    contacts_only: bool = False,
) -> Tuple[List[Dict[str, Any]], List[str]]:
    """
    Load recipient records from a public Google Sheets URL.

    Accepts standard sharing links with optional gid.
    """
    export_url = _gsheet_to_export_csv_url(sheet_url)
    if not export_url:
        raise ValueError("Invalid Google Sheets URL")

    csv_text = _fetch_gsheet_csv_text(export_url, timeout=timeout)
    records, headers = _parse_csv_text(csv_text, contacts_only=contacts_only)

    logger.info("Loaded %d records from Google Sheet", len(records))
    return records, headers


def sanitize_field_name(header: str) -> str:
    """"Start Date (UTC)" -> "start_date_utc"."""
    name = re.sub(r"[^a-z0-9]", "_", str(header).lower())
    name = re.sub(r"_+", "_", name)
    return name.strip("_")


def rows_to_records(
    headers: Sequence[str],
    rows: Sequence[Sequence[Any]],
    contacts_only: bool = False,
) -> List[Dict[str, Any]]:
    """
    Turn tabular rows into merge records.

    Common header spellings are mapped onto standard fields (email,
    firstName, lastName, company, jobTitle, phone). Every other non-empty
    column is kept under its sanitised header name. Each record gets a
    1-based ``id`` from its row position.

    With ``contacts_only`` rows without an email address are skipped.
    """
    header_map = _build_header_map(headers)
    records: List[Dict[str, Any]] = []
    skipped = 0

    for index, row in enumerate(rows):
        email = _field_value(row, header_map, "email")
        if contacts_only and "@" not in email:
            skipped += 1
            continue

        record: Dict[str, Any] = {RECORD_ID_KEY: index + 1}
        for field_name in ("email", "firstName", "lastName", "company", "jobTitle", "phone"):
            record[field_name] = _field_value(row, header_map, field_name)

        for col, header in enumerate(headers):
            if not header or _is_standard_header(header):
                continue
            value = _cell(row, col)
            if value:
                name = sanitize_field_name(header)
                if name and name not in record:
                    record[name] = value

        records.append(record)

    if skipped:
        logger.warning("Skipped %d rows without an email address", skipped)
    return records


# -------------------------------------------------
# Internal helpers
# -------------------------------------------------

def _cell(row: Sequence[Any], index: Optional[int]) -> str:
    if index is None or index >= len(row) or row[index] is None:
        return ""
    return str(row[index]).strip()


def _build_header_map(headers: Sequence[str]) -> Dict[str, int]:
    """Map standard field names to column positions; last matching column wins."""
    header_map: Dict[str, int] = {}

    for index, header in enumerate(headers):
        if not header:
            continue
        h = str(header).strip().lower()

        if "email" in h or "e-mail" in h:
            header_map["email"] = index
        elif "first" in h and "name" in h:
            header_map["firstName"] = index
        elif "last" in h and "name" in h:
            header_map["lastName"] = index
        elif h in ("name", "full name"):
            header_map["fullName"] = index
        elif "company" in h or "organization" in h:
            header_map["company"] = index
        elif "title" in h or "position" in h or "job" in h:
            header_map["jobTitle"] = index
        elif "phone" in h or "tel" in h:
            header_map["phone"] = index

    return header_map


def _field_value(row: Sequence[Any], header_map: Dict[str, int], field_name: str) -> str:
    index = header_map.get(field_name)
    if index is not None and index < len(row):
        return _cell(row, index)

    full_name = _cell(row, header_map.get("fullName"))
    if field_name == "firstName" and full_name:
        return full_name.split(" ")[0]
    if field_name == "lastName" and full_name:
        parts = full_name.split(" ")
        return " ".join(parts[1:]) if len(parts) > 1 else ""

    return ""


def _is_standard_header(header: str) -> bool:
    h = str(header).strip().lower()
    return any(field in h for field in STANDARD_HEADERS)


def _parse_csv_text(csv_text: str, contacts_only: bool = False) -> Tuple[List[Dict[str, Any]], List[str]]:
    reader = csv.reader(io.StringIO(csv_text))

    try:
        headers = [str(h).strip() for h in next(reader)]
    except StopIteration:
        return [], []

    rows = [row for row in reader if any(str(c).strip() for c in row)]
    return rows_to_records(headers, rows, contacts_only=contacts_only), headers


def _gsheet_to_export_csv_url(url: str) -> str:
    try:
        parsed = urllib.parse.urlparse(url)
    except ValueError:
        return ""

    if GS_HOST not in parsed.netloc:
        return ""

    m = re.search(r"/spreadsheets/d/([a-zA-Z0-9\-_]+)", parsed.path)
    if not m:
        return ""

    ssid = m.group(1)

    gid = "0"
    for part in (parsed.fragment, parsed.query):
        mg = re.search(r"gid=(\d+)", part or "")
        if mg:
            gid = mg.group(1)
            break

    q = urllib.parse.urlencode({"format": "csv", "gid": gid})
    return f"https://{GS_HOST}/spreadsheets/d/{ssid}/export?{q}"


def _fetch_gsheet_csv_text(export_csv_url: str, timeout: int = 20) -> str:
    req = urllib.request.Request(
        export_csv_url,
        headers={
            "User-Agent": (
                "Mozilla/5.0 (X11; Linux x86_64) "
                "AppleWebKit/537.36 (KHTML, like Gecko) "
                "Chrome/122.0 Safari/537.36"
            )
        },
        method="GET",
    )

    context = ssl.create_default_context(cafile=certifi.where())

    with urllib.request.urlopen(req, timeout=timeout, context=context) as resp:
        if resp.status != 200:
            raise RuntimeError(f"HTTP {resp.status}")

        data = resp.read()

        try:
            return data.decode("utf-8-sig")
        except UnicodeDecodeError:
            return data.decode("utf-8", errors="replace")
