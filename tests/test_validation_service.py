"""
Unit tests for per-field answer validation
"""
import json

import pytest

from formbuilder.exceptions import FieldValidationError
from formbuilder.models.form_model import FormField
from formbuilder.services.validation_service import check_bounds, validate_answer


def make_field(type="text", validation=None, options=None, name="answer", label="Answer"):
    return FormField(name=name, label=label, type=type, validation=validation or {}, options=options)


def reason_for(field, value, required=False):
    with pytest.raises(FieldValidationError) as exc_info:
        validate_answer(field, value, required)
    assert exc_info.value.name == field.name
    assert exc_info.value.label == field.label
    return exc_info.value.reason


class TestRequired:
    """Blank answers"""

    @pytest.mark.parametrize("value", [None, "", "   ", []])
    def test_required_blank_fails(self, value):
        assert reason_for(make_field(), value, required=True) == "required"

    def test_optional_blank_returns_none(self):
        assert validate_answer(make_field(), "", required=False) is None

    def test_declared_required_is_not_consulted_directly(self):
        field = make_field(validation={"required": True})
        assert validate_answer(field, None, required=False) is None


class TestText:
    """Text, textarea, email, phone and url"""

    def test_text_is_stored_as_submitted(self):
        assert validate_answer(make_field(), "Alice ", required=True) == "Alice "

    def test_length_bounds(self):
        field = make_field(validation={"minLength": 3, "maxLength": 5})
        assert reason_for(field, "ab") == "must be at least 3 characters"
        assert reason_for(field, "abcdef") == "must be at most 5 characters"
        assert validate_answer(field, "abcd", required=False) == "abcd"

    def test_pattern_uses_declared_message(self):
        field = make_field(validation={"pattern": r"^\d{4}$", "message": "Enter a 4-digit code"})
        assert reason_for(field, "12a4") == "Enter a 4-digit code"

    def test_pattern_without_message(self):
        field = make_field(type="textarea", validation={"pattern": r"^[A-Z]"})
        assert reason_for(field, "lower") == "does not match the required format"

    def test_list_for_text_field_fails(self):
        assert reason_for(make_field(), ["a", "b"]) == "must be a single value"

    def test_email(self):
        field = make_field(type="email")
        assert validate_answer(field, "alice@example.com", required=True) == "alice@example.com"
        assert reason_for(field, "alice@") == "must be a valid email address"

    @pytest.mark.parametrize("value", ["alice@example..com", "alice@@example.com", "alice example@example.com", "@example.com"])
    def test_malformed_email(self, value):
        assert reason_for(make_field(type="email"), value) == "must be a valid email address"

    def test_phone_accepts_spaced_international_number(self):
        field = make_field(type="phone")
        assert validate_answer(field, "+250 788-123-456", required=True) == "+250 788-123-456"
        assert reason_for(field, "0788123456") == "must be a valid phone number with country code"

    def test_url(self):
        field = make_field(type="url")
        assert validate_answer(field, "https://example.com/a?b=1", required=True)
        assert reason_for(field, "example.com") == "must be a valid http(s) URL"
        assert reason_for(field, "ftp://example.com") == "must be a valid http(s) URL"


class TestNumberAndDate:
    """Numeric and date ranges"""

    def test_number_range(self):
        field = make_field(type="number", validation={"min": 18, "max": 65})
        assert validate_answer(field, 30, required=True) == "30"
        assert validate_answer(field, "42.5", required=True) == "42.5"
        assert reason_for(field, 17) == "must be at least 18"
        assert reason_for(field, "70") == "must be at most 65"

    def test_number_rejects_text_and_booleans(self):
        field = make_field(type="number")
        assert reason_for(field, "twelve") == "must be a number"
        assert reason_for(field, True) == "must be a number"

    @pytest.mark.parametrize("value", ["nan", "inf", "-inf", "NaN", float("nan")])
    def test_non_finite_numbers_are_rejected(self, value):
        field = make_field(type="number", validation={"min": 18, "max": 65})
        assert reason_for(field, value) == "must be a number"

    def test_date(self):
        field = make_field(type="date", validation={"min": "2024-01-01"})
        assert validate_answer(field, "2024-06-30", required=True) == "2024-06-30"
        assert reason_for(field, "30/06/2024") == "must be a valid date (YYYY-MM-DD)"
        assert reason_for(field, "2023-12-31") == "must be on or after 2024-01-01"


class TestChoices:
    """Select, radio and checkbox membership"""

    def test_select_membership(self):
        field = make_field(type="select", options=["RW", "KE"])
        assert validate_answer(field, "RW", required=True) == "RW"
        assert reason_for(field, "UG") == "is not one of the allowed options"

    def test_radio_with_labelled_options(self):
        field = make_field(type="radio", options=[{"value": "y", "label": "Yes"}, {"value": "n", "label": "No"}])
        assert validate_answer(field, "n", required=True) == "n"
        assert reason_for(field, "Yes") == "is not one of the allowed options"

    def test_checkbox_list_is_json_encoded(self):
        field = make_field(type="checkbox", options=["a", "b", "c"])
        stored = validate_answer(field, ["a", "c"], required=True)
        assert json.loads(stored) == ["a", "c"]

    def test_checkbox_rejects_unknown_item(self):
        field = make_field(type="checkbox", options=["a", "b"])
        assert reason_for(field, ["a", "z"]) == "is not one of the allowed options"

    def test_checkbox_selection_count(self):
        field = make_field(type="checkbox", options=["a", "b", "c"], validation={"maxLength": 1})
        assert reason_for(field, ["a", "b"]) == "must select at most 1 options"


class TestFile:
    """File descriptors"""

    def test_descriptor_is_json_encoded(self):
        field = make_field(type="file", validation={"allowedFileTypes": ["pdf"]})
        descriptor = {"name": "cv.pdf", "size": 2048, "type": "application/pdf"}
        assert json.loads(validate_answer(field, descriptor, required=True)) == descriptor

    def test_extension_not_allowed(self):
        field = make_field(type="file", validation={"allowedFileTypes": ["pdf", "docx"]})
        assert reason_for(field, {"name": "cv.exe", "size": 10}) == "file type must be one of: pdf, docx"

    def test_size_limit(self):
        field = make_field(type="file", validation={"maxFileSize": 100})
        assert reason_for(field, {"name": "a.png", "size": 101}) == "file must be at most 100 bytes"

    def test_plain_string_is_not_a_file(self):
        assert reason_for(make_field(type="file"), "cv.pdf") == "must be an uploaded file"


class TestBounds:
    """min/max declared on a field must suit its type"""

    @pytest.mark.parametrize("rule", [{"min": 1}, {"max": "2.5"}, {"min": 0, "max": 100}])
    def test_numeric_bounds_on_number_field(self, rule):
        assert check_bounds("number", rule) is None

    @pytest.mark.parametrize("rule,reason", [
        ({"min": "eighteen"}, "min must be a number for number fields"),
        ({"max": "nan"}, "max must be a number for number fields"),
        ({"min": True}, "min must be a number for number fields"),
    ])
    def test_bad_bounds_on_number_field(self, rule, reason):
        assert check_bounds("number", rule) == reason

    def test_date_bounds(self):
        assert check_bounds("date", {"min": "2024-01-01", "max": "2024-12-31"}) is None
        assert check_bounds("date", {"max": "next week"}) == "max must be a date (YYYY-MM-DD) for date fields"

    def test_other_types_ignore_bounds(self):
        assert check_bounds("text", {"min": "anything"}) is None
        assert check_bounds("number", None) is None
