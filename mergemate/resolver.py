# mergemate/resolver.py

import logging
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional

from mergemate.errors import MergeEngineError, TemplateInputError, TemplateProcessingError
from mergemate.fields import IDENTITY_KEY, extract_fields
from mergemate.formatting import apply_directive, format_value
from mergemate.models import MergeField, RenderOptions, RenderResult, ValidationResult
from mergemate.validation import validate_template


logger = logging.getLogger(__name__)


IF_BLOCK_RE = re.compile(r"\{\{#if\s+(\w+)\}\}(.*?)\{\{/if\}\}", re.DOTALL)
UNLESS_BLOCK_RE = re.compile(r"\{\{#unless\s+(\w+)\}\}(.*?)\{\{/unless\}\}", re.DOTALL)
DIRECTIVE_RE = re.compile(r"\{\{(\w+)\|(\w+)(?::([^}]+))?\}\}")


def _is_present(value: Any) -> bool:
    return bool(value)


def process_conditionals(text: str, record: Mapping[str, Any]) -> str:
    """
    Resolve {{#if name}}...{{/if}} and {{#unless name}}...{{/unless}}.

    Blocks are matched non-greedily and tested against the raw record
    value, never against already-substituted text.
    """
    text = IF_BLOCK_RE.sub(
        lambda m: m.group(2) if _is_present(record.get(m.group(1))) else "",
        text,
    )
    text = UNLESS_BLOCK_RE.sub(
        lambda m: "" if _is_present(record.get(m.group(1))) else m.group(2),
        text,
    )
    return text


def process_directives(text: str, record: Mapping[str, Any]) -> str:
    """Resolve {{name|format}} and {{name|format:argument}} tokens."""
    return DIRECTIVE_RE.sub(
        lambda m: apply_directive(record.get(m.group(1)), m.group(2), m.group(3)),
        text,
    )


class MergeEngine:
    """
    Renders merge templates against recipient records.

    The engine owns one field catalog, built by ``extract_merge_fields``
    and replaced wholesale on every call. Rendering and validation only
    read the catalog, so a single engine can serve many records in
    parallel.

    Template grammar:
    {{fieldName}}
    {{#if fieldName}}...{{/if}}
    {{#unless fieldName}}...{{/unless}}
    {{fieldName|upper}}, {{fieldName|truncate:20}}
    """

    def __init__(
        self,
        identity_key: Optional[str] = IDENTITY_KEY,
        options: Optional[RenderOptions] = None,
    ):
        self.identity_key = identity_key
        self.options = RenderOptions.coerce(options)
        self._catalog: Dict[str, MergeField] = {}

    # -------------------------
    # Catalog
    # -------------------------

    def extract_merge_fields(self, records: Iterable[Mapping[str, Any]]) -> List[MergeField]:
        fields = extract_fields(records, identity_key=self.identity_key)
        self._catalog = {f.name: f for f in fields}
        logger.info("Extracted %d merge fields", len(fields))
        logger.debug("Merge fields: %s", ", ".join(self._catalog))
        return fields

    def get_available_fields(self) -> List[MergeField]:
        return list(self._catalog.values())

    def get_field(self, name: str) -> Optional[MergeField]:
        return self._catalog.get(name)

    def get_fields_by_category(self) -> Dict[str, List[MergeField]]:
        grouped: Dict[str, List[MergeField]] = {}
        for field in self._catalog.values():
            grouped.setdefault(field.category, []).append(field)
        return grouped

    # -------------------------
    # Rendering
    # -------------------------

    @staticmethod
    def _substitute(
        text: str,
        record: Mapping[str, Any],
        options: RenderOptions,
        catalog: Mapping[str, MergeField],
    ) -> str:
        for name, field in catalog.items():
            if field.placeholder not in text:
                continue
            value = format_value(record.get(name), field.type, options)
            text = text.replace(field.placeholder, value)
        return text

    def render(
        self,
        template: str,
        record: Mapping[str, Any],
        options: Any = None,
    ) -> str:
        """
        Render ``template`` for one record.

        Stages run in order, each on the previous stage's output:
        placeholder substitution, conditional blocks, inline directives.

        Raises:
            TemplateInputError: template or record missing / wrong type.
            TemplateProcessingError: anything unexpected while rendering.
        """
        if template is None:
            raise TemplateInputError("template is required")
        if not isinstance(template, str):
            raise TemplateInputError(f"template must be a string, got {type(template).__name__}")
        if record is None:
            raise TemplateInputError("record is required")
        if not isinstance(record, Mapping):
            raise TemplateInputError(f"record must be a mapping, got {type(record).__name__}")

        try:
            opts = RenderOptions.coerce(options, base=self.options)
        except TypeError as e:
            raise TemplateInputError(str(e)) from e

        try:
            data = dict(record)
            # extraction swaps the catalog dict, never mutates it
            catalog = self._catalog

            text = self._substitute(template, data, opts, catalog)
            text = process_conditionals(text, data)
            text = process_directives(text, data)
            return text
        except MergeEngineError:
            raise
        except Exception as e:
            logger.error("Template processing failed: %s", e, exc_info=True)
            raise TemplateProcessingError() from e

    # alias
    process_template = render

    def render_many(
        self,
        template: str,
        records: Iterable[Mapping[str, Any]],
        options: Any = None,
    ) -> List[RenderResult]:
        """
        Render one template for many records.

        Results keep input order. A record that fails to render produces a
        result carrying the error instead of aborting the batch.
        """
        if template is None:
            raise TemplateInputError("template is required")
        if records is None:
            raise TemplateInputError("records are required")

        results: List[RenderResult] = []
        failed = 0

        for idx, record in enumerate(records):
            record_id = record.get(self.identity_key) if isinstance(record, Mapping) else None
            try:
                output = self.render(template, record, options)
                results.append(RenderResult(index=idx, output=output, record_id=record_id))
            except MergeEngineError as e:
                failed += 1
                logger.warning("Record %d failed to render: %s", idx, e)
                results.append(RenderResult(index=idx, error=str(e), record_id=record_id))

        logger.info("Rendered %d records (%d failed)", len(results), failed)
        return results

    # -------------------------
    # Validation
    # -------------------------

    def validate_template(self, template: str) -> ValidationResult:
        result = validate_template(template, self._catalog)
        if not result.is_valid:
            logger.debug("Template has %d validation errors", len(result.errors))
        return result

    # -------------------------
    # Preview
    # -------------------------

    @staticmethod
    def create_sample_record() -> Dict[str, Any]:
        return {
            "firstName": "John",
            "lastName": "Doe",
            "email": "john.doe@company.com",
            "jobTitle": "Senior Manager",
            "department": "Marketing",
            "company": "Acme Corporation",
            "phone": "+1-555-0123",
            "manager": "Jane Smith",
            "startDate": "2020-01-15",
            "location": "New York Office",
            "employeeId": "EMP001",
        }

    def preview_template(
        self,
        template: str,
        sample_record: Optional[Mapping[str, Any]] = None,
        options: Any = None,
    ) -> str:
        record = sample_record if sample_record is not None else self.create_sample_record()
        return self.render(template, record, options)
