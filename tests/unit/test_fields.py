"""Unit tests for merge field inference."""

import pytest

from mergemate.errors import TemplateInputError
from mergemate.fields import (
    categorize_field,
    describe_field,
    detect_field_type,
    extract_fields,
    format_display_name,
)


# =============================================================================
# Naming
# =============================================================================


class TestDisplayName:
    """Test suite for display name derivation."""

    def test_camel_case(self):
        """Test that camelCase names are split into words."""
        assert format_display_name("firstName") == "First Name"
        assert format_display_name("employeeId") == "Employee Id"

    def test_snake_case(self):
        """Test that underscores become spaces and the first letter is capitalised."""
        assert format_display_name("start_date") == "Start date"

    def test_leading_capital_has_no_leading_space(self):
        assert format_display_name("FirstName") == "First Name"

    def test_single_word(self):
        assert format_display_name("email") == "Email"

    def test_trim_happens_after_capitalising(self):
        """Test that a leading underscore swallows the capital before trimming."""
        assert format_display_name("_foo") == "foo"
        assert format_display_name("name_") == "Name"


class TestDescribeField:
    """Test suite for field descriptions."""

    def test_known_field(self):
        assert describe_field("jobTitle") == "Job title or position"
        assert describe_field("employeeId") == "Employee identification number"

    def test_fallback_description(self):
        """Test that unknown names fall back to a generated description."""
        assert describe_field("favoriteColor") == "Staff member's favorite color"


class TestCategorizeField:
    """Test suite for category assignment."""

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("firstName", "personal"),
            ("nickname", "personal"),
            ("workEmail", "contact"),
            ("homeAddress", "contact"),
            ("department", "work"),
            ("EMPLOYEEID", "work"),
            ("hireDate", "dates"),
            ("shoeSize", "custom"),
        ],
    )
    def test_categories(self, name, expected):
        assert categorize_field(name) == expected

    def test_first_matching_group_wins(self):
        """Test that "companyName" is personal because "name" is checked before "company"."""
        assert categorize_field("companyName") == "personal"


# =============================================================================
# Type detection
# =============================================================================


class TestDetectFieldType:
    """Test suite for field type inference."""

    def test_email_by_value(self):
        records = [{"contact": "a@b.com"}, {"contact": "c@d.com"}]
        assert detect_field_type(records, "contact") == "email"

    def test_email_by_name(self):
        records = [{"workEmail": "not-an-address"}]
        assert detect_field_type(records, "workEmail") == "email"

    def test_phone_by_value(self):
        records = [{"mobile": "5551234567"}, {"mobile": "+1 (555) 765-4321"}]
        assert detect_field_type(records, "mobile") == "phone"

    def test_phone_by_name(self):
        records = [{"phone": "ext. 42"}]
        assert detect_field_type(records, "phone") == "phone"

    def test_date_value_is_not_phone(self):
        """Test that ISO dates are not mistaken for phone numbers."""
        records = [{"startDate": "2020-01-15"}]
        assert detect_field_type(records, "startDate") == "date"

    def test_date_by_value_only(self):
        records = [{"joined": "January 15, 2024"}]
        assert detect_field_type(records, "joined") == "date"

    def test_date_by_name(self):
        records = [{"lastLoginTime": "yesterday"}]
        assert detect_field_type(records, "lastLoginTime") == "date"

    def test_number(self):
        records = [{"rate": "12.5"}, {"rate": 3.75}]
        assert detect_field_type(records, "rate") == "number"

    @pytest.mark.parametrize(
        "name, values",
        [
            ("zip", ["02134", "10001"]),
            ("ext", ["4521"]),
            ("code", [42, "(07) 12"]),
        ],
    )
    def test_short_digit_strings_are_phone(self, name, values):
        """Test that digit-only values of any length match the phone rule."""
        records = [{name: v} for v in values]
        assert detect_field_type(records, name) == "phone"

    def test_mixed_numbers_and_text_is_text(self):
        records = [{"score": "12"}, {"score": "high"}]
        assert detect_field_type(records, "score") == "text"

    def test_url(self):
        records = [{"profile": "https://example.com/u/1"}, {"profile": "n/a"}]
        assert detect_field_type(records, "profile") == "url"

    def test_text(self):
        records = [{"department": "Marketing"}]
        assert detect_field_type(records, "department") == "text"

    def test_no_samples_defaults_to_text(self):
        """Test that missing, None and empty values leave the type as text."""
        records = [{"nickname": None}, {"nickname": ""}, {}]
        assert detect_field_type(records, "nickname") == "text"

    def test_only_first_ten_records_are_sampled(self):
        records = [{"code": "1.5"} for _ in range(10)] + [{"code": "abc"}]
        assert detect_field_type(records, "code") == "number"


# =============================================================================
# Catalog extraction
# =============================================================================


class TestExtractFields:
    """Test suite for extract_fields."""

    @pytest.fixture
    def records(self):
        return [
            {"id": 1, "firstName": "John", "email": "John@Example.com", "manager": None},
            {"id": 2, "firstName": "Jane", "email": "jane@example.com", "startDate": "2021-03-01"},
        ]

    def test_identity_key_excluded(self, records):
        names = [f.name for f in extract_fields(records)]
        assert "id" not in names

    def test_first_seen_order(self, records):
        names = [f.name for f in extract_fields(records)]
        assert names == ["firstName", "email", "startDate"]

    def test_keys_with_only_none_values_are_skipped(self, records):
        names = [f.name for f in extract_fields(records)]
        assert "manager" not in names

    def test_field_metadata(self, records):
        fields = {f.name: f for f in extract_fields(records)}

        email = fields["email"]
        assert email.type == "email"
        assert email.placeholder == "{{email}}"
        assert email.display_name == "Email"
        assert email.description == "Staff member's email address"
        assert email.category == "contact"

        assert fields["startDate"].type == "date"
        assert fields["startDate"].category == "dates"

    def test_extraction_is_deterministic(self, records):
        first = extract_fields(records)
        second = extract_fields(records)
        assert first == second

    def test_custom_identity_key(self):
        records = [{"rowId": 7, "firstName": "John"}]
        names = [f.name for f in extract_fields(records, identity_key="rowId")]
        assert names == ["firstName"]

    def test_empty_records(self):
        assert extract_fields([]) == []

    def test_none_records_raises(self):
        with pytest.raises(TemplateInputError):
            extract_fields(None)

    def test_non_mapping_record_raises(self):
        with pytest.raises(TemplateInputError):
            extract_fields([{"a": 1}, ["not", "a", "record"]])

    def test_to_dict(self, records):
        field = extract_fields(records)[0]
        assert field.to_dict() == {
            "name": "firstName",
            "displayName": "First Name",
            "type": "text",
            "placeholder": "{{firstName}}",
            "description": "Staff member's first name",
            "category": "personal",
        }
