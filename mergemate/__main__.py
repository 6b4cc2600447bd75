#!/usr/bin/env python3
"""
MergeMate CLI

Command-line interface for the merge engine. Every command prints a single
JSON envelope to stdout: {"success": ..., "data": ..., "error": ...}.

Usage:
    python -m mergemate load-csv <path> [--contacts-only]
    python -m mergemate load-sheet <url> [--contacts-only]
    python -m mergemate fields --data <json>
    python -m mergemate render --data <json> --template <text> [--options <json>]
    python -m mergemate validate --data <json> --template <text>
    python -m mergemate preview --template <text> [--data <json>] [--subject <text>]
    python -m mergemate compose --data <json> --subject <text> --body <text> [--format html|text|markdown]
    python -m mergemate read-files <path>...
    python -m mergemate export --data <json> --template <text>

Any --data/--template/--subject/--body/--options value starting with "@" is
read from the named file.
"""

import argparse
import json
import logging
import re
import sys
import unicodedata
import zipfile
from pathlib import Path
from typing import Any, Dict, List, Optional

from mergemate.logging_config import setup_logging
from mergemate.resolver import MergeEngine
from mergemate.settings import Settings, load_settings


logger = logging.getLogger("mergemate.cli")


def output_json(data: Any, success: bool = True) -> None:
    """Output JSON response to stdout."""
    response = {
        "success": success,
        "data": data if success else None,
        "error": None if success else data,
    }
    print(json.dumps(response, indent=2, ensure_ascii=False, default=str))


def _read_arg(value: str) -> str:
    """Return the argument, or the file contents for "@path" arguments."""
    if value and value.startswith("@"):
        return Path(value[1:]).read_text(encoding="utf-8")
    return value


def _load_records(raw: str) -> List[Dict[str, Any]]:
    """Accept a JSON list of records or an object with "records"/"rows"."""
    data = json.loads(_read_arg(raw))
    if isinstance(data, dict):
        data = data.get("records", data.get("rows", []))
    if not isinstance(data, list):
        raise ValueError("--data must be a JSON list of records")
    return data


def _engine(settings: Settings) -> MergeEngine:
    return MergeEngine(identity_key=settings.identity_key, options=settings.render_options())


def _safe_filename(name: str, max_len: int = 60) -> str:
    s = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    s = re.sub(r"[^\w\s-]", "", s)
    s = re.sub(r"[\s_-]+", "_", s).strip("_")
    if not s:
        s = "message"
    return s[:max_len]


# -------------------------
# Commands
# -------------------------

def cmd_load_csv(args: argparse.Namespace, settings: Settings) -> None:
    """Load CSV file and return records + headers."""
    from mergemate.data_sources import load_csv

    records, headers = load_csv(args.path, contacts_only=args.contacts_only)
    output_json({"records": records, "headers": headers, "count": len(records)})


def cmd_load_sheet(args: argparse.Namespace, settings: Settings) -> None:
    """Load Google Sheet and return records + headers."""
    from mergemate.data_sources import load_google_sheet

    records, headers = load_google_sheet(args.url, contacts_only=args.contacts_only)
    output_json({"records": records, "headers": headers, "count": len(records)})


def cmd_fields(args: argparse.Namespace, settings: Settings) -> None:
    """Infer the merge field catalog from records."""
    engine = _engine(settings)
    fields = engine.extract_merge_fields(_load_records(args.data))
    output_json({
        "fields": [f.to_dict() for f in fields],
        "by_category": {
            category: [f.name for f in group]
            for category, group in engine.get_fields_by_category().items()
        },
    })


def cmd_render(args: argparse.Namespace, settings: Settings) -> None:
    """Render one template for every record."""
    engine = _engine(settings)
    records = _load_records(args.data)
    engine.extract_merge_fields(records)

    options = json.loads(_read_arg(args.options)) if args.options else None
    results = engine.render_many(_read_arg(args.template), records, options)
    output_json({"results": [r.to_dict() for r in results], "count": len(results)})


def cmd_validate(args: argparse.Namespace, settings: Settings) -> None:
    """Validate a template against the catalog inferred from records."""
    engine = _engine(settings)
    engine.extract_merge_fields(_load_records(args.data))
    output_json(engine.validate_template(_read_arg(args.template)).to_dict())


def cmd_preview(args: argparse.Namespace, settings: Settings) -> None:
    """Render a template against the first record, or the built-in sample."""
    engine = _engine(settings)
    records = _load_records(args.data) if args.data else [engine.create_sample_record()]
    engine.extract_merge_fields(records)

    sample = records[0] if records else None
    output_json({
        "subject": engine.preview_template(_read_arg(args.subject or ""), sample),
        "body": engine.preview_template(_read_arg(args.template), sample),
    })


def cmd_compose(args: argparse.Namespace, settings: Settings) -> None:
    """Compose (but do not send) one message per eligible record."""
    from mergemate.generator import compose_messages

    engine = _engine(settings)
    records = _load_records(args.data)
    engine.extract_merge_fields(records)

    messages = compose_messages(
        engine,
        records,
        subject_template=_read_arg(args.subject),
        body_template=_read_arg(args.body),
        body_format=args.format,
        dry_run=args.dry_run,
    )
    output_json({"messages": messages, "created": len(messages)})


def cmd_read_files(args: argparse.Namespace, settings: Settings) -> None:
    """Read multiple template files and return their contents."""
    files = []
    for filepath in args.paths:
        path = Path(filepath)
        if path.exists() and path.is_file():
            files.append({
                "name": path.stem,
                "content": path.read_text(encoding="utf-8").rstrip(),
            })
        else:
            logger.warning("Skipping missing template file: %s", filepath)
    output_json({"files": files})


def cmd_export(args: argparse.Namespace, settings: Settings) -> None:
    """Render every record and write the outputs into a ZIP in Downloads."""
    engine = _engine(settings)
    records = _load_records(args.data)
    engine.extract_merge_fields(records)
    results = engine.render_many(_read_arg(args.template), records)

    downloads = Path.home() / "Downloads"
    dest_dir = downloads if downloads.is_dir() else Path.cwd()

    base_name = "Merged Documents"
    zip_path = dest_dir / f"{base_name}.zip"
    counter = 1
    while zip_path.exists():
        zip_path = dest_dir / f"{base_name} ({counter}).zip"
        counter += 1

    written = 0
    with zipfile.ZipFile(zip_path, mode="w", compression=zipfile.ZIP_DEFLATED) as zf:
        for result in results:
            if not result.ok:
                continue
            label = _safe_filename(str(result.record_id if result.record_id is not None else result.index + 1))
            zf.writestr(f"{result.index + 1:03d}_{label}.txt", result.output)
            written += 1

    output_json({"path": zip_path.name, "count": written})


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mergemate",
        description="MergeMate CLI - mail-merge template engine with a JSON interface",
    )
    parser.add_argument("--log-level", help="Override the configured log level")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # load-csv
    p_csv = subparsers.add_parser("load-csv", help="Load records from a CSV file")
    p_csv.add_argument("path", help="Path to CSV file")
    p_csv.add_argument("--contacts-only", action="store_true", help="Drop rows without an email address")
    p_csv.set_defaults(func=cmd_load_csv)

    # load-sheet
    p_sheet = subparsers.add_parser("load-sheet", help="Load records from a Google Sheet")
    p_sheet.add_argument("url", help="Google Sheets URL")
    p_sheet.add_argument("--contacts-only", action="store_true", help="Drop rows without an email address")
    p_sheet.set_defaults(func=cmd_load_sheet)

    # fields
    p_fields = subparsers.add_parser("fields", help="Infer merge fields from records")
    p_fields.add_argument("--data", required=True, help="JSON list of records")
    p_fields.set_defaults(func=cmd_fields)

    # render
    p_render = subparsers.add_parser("render", help="Render a template for every record")
    p_render.add_argument("--data", required=True, help="JSON list of records")
    p_render.add_argument("--template", required=True, help="Template text or @file")
    p_render.add_argument("--options", help="JSON render options (defaultValue, dateFormat, numberFormat)")
    p_render.set_defaults(func=cmd_render)

    # validate
    p_validate = subparsers.add_parser("validate", help="Validate a template")
    p_validate.add_argument("--data", required=True, help="JSON list of records")
    p_validate.add_argument("--template", required=True, help="Template text or @file")
    p_validate.set_defaults(func=cmd_validate)

    # preview
    p_preview = subparsers.add_parser("preview", help="Preview a template")
    p_preview.add_argument("--template", required=True, help="Template text or @file")
    p_preview.add_argument("--data", help="JSON list of records (defaults to a sample record)")
    p_preview.add_argument("--subject", default="", help="Subject template")
    p_preview.set_defaults(func=cmd_preview)

    # compose
    p_compose = subparsers.add_parser("compose", help="Compose messages without sending them")
    p_compose.add_argument("--data", required=True, help="JSON list of records")
    p_compose.add_argument("--subject", required=True, help="Subject line template")
    p_compose.add_argument("--body", required=True, help="Body template or @file")
    p_compose.add_argument("--format", default="html", choices=("html", "text", "markdown"))
    p_compose.add_argument("--dry-run", action="store_true", help="Only report recipients and subjects")
    p_compose.set_defaults(func=cmd_compose)

    # read-files
    p_read = subparsers.add_parser("read-files", help="Read multiple template files")
    p_read.add_argument("paths", nargs="+", help="Paths to text files")
    p_read.set_defaults(func=cmd_read_files)

    # export
    p_export = subparsers.add_parser("export", help="Export rendered outputs to ZIP")
    p_export.add_argument("--data", required=True, help="JSON list of records")
    p_export.add_argument("--template", required=True, help="Template text or @file")
    p_export.set_defaults(func=cmd_export)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = load_settings()
    setup_logging(args.log_level or settings.log_level)

    try:
        args.func(args, settings)
    except Exception as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        output_json(str(e), success=False)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
