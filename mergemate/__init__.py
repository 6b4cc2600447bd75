# mergemate/__init__.py
"""
MergeMate - mail-merge template engine.

This package provides the core functionality for:
- Inferring merge fields (type, category, description) from recipient records
- Rendering templates with placeholders, conditional blocks and directives
- Validating templates against the inferred field catalog
- Loading records from CSV files or Google Sheets
- Composing per-recipient messages (rendering only, no delivery)

Public API:
-----------
Engine:
    MergeEngine(identity_key="id", options=None)
        .extract_merge_fields(records) -> List[MergeField]
        .render(template, record, options=None) -> str
        .render_many(template, records, options=None) -> List[RenderResult]
        .validate_template(template) -> ValidationResult
        .get_available_fields() / .get_fields_by_category()
        .preview_template(template, sample_record=None) -> str

Data Loading:
    load_csv(path) -> Tuple[List[Dict], List[str]]
    load_google_sheet(url) -> Tuple[List[Dict], List[str]]

Preview / Composition:
    build_preview_rows(engine, records, template, ...) -> List[Dict]
    compose_messages(engine, records, subject_template=..., body_template=...) -> List[Dict]

Template grammar:
    {{fieldName}}
    {{#if fieldName}}...{{/if}}
    {{#unless fieldName}}...{{/unless}}
    {{fieldName|upper}} {{fieldName|lower}} {{fieldName|title}} {{fieldName|truncate:N}}
"""

from mergemate.data_sources import load_csv, load_google_sheet, rows_to_records
from mergemate.errors import MergeEngineError, TemplateInputError, TemplateProcessingError
from mergemate.fields import extract_fields
from mergemate.generator import compose_messages
from mergemate.models import (
    FieldCategory,
    FieldType,
    MergeField,
    RenderOptions,
    RenderResult,
    ValidationResult,
)
from mergemate.preview import build_preview_rows
from mergemate.resolver import MergeEngine
from mergemate.settings import Settings, load_settings, save_settings
from mergemate.validation import validate_template

__version__ = "0.1.0"

__all__ = [
    # Engine
    "MergeEngine",
    "extract_fields",
    "validate_template",
    # Models
    "FieldCategory",
    "FieldType",
    "MergeField",
    "RenderOptions",
    "RenderResult",
    "ValidationResult",
    # Errors
    "MergeEngineError",
    "TemplateInputError",
    "TemplateProcessingError",
    # Data loading
    "load_csv",
    "load_google_sheet",
    "rows_to_records",
    # Preview / composition
    "build_preview_rows",
    "compose_messages",
    # Settings
    "Settings",
    "load_settings",
    "save_settings",
]
