"""
Answer validation for a single field.

`validate_answer` decodes the raw answer according to the field's type, checks
it against the declared rule and returns the string that gets stored. Blank
optional answers return None; the pipeline records those as "No response".
"""
import json
import math
import re
from datetime import date
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlparse

from pydantic import EmailStr, TypeAdapter, ValidationError

from formbuilder.config.env_config import settings
from formbuilder.constants.form_constants import FieldType
from formbuilder.exceptions.custom_exception import FieldValidationError
from formbuilder.services.condition_service import is_blank

EMAIL_ADAPTER = TypeAdapter(EmailStr)
PHONE_RE = re.compile(r"^\+[1-9]\d{1,14}$")

REQUIRED = "required"


class _Check:
    """Context passed to the per-type checkers."""

    def __init__(self, field):
        self.field = field
        self.rule: Dict[str, Any] = field.validation or {}

    def fail(self, reason: str, use_message: bool = False):
        if use_message and self.rule.get("message"):
            reason = self.rule["message"]
        raise FieldValidationError(name=self.field.name, label=self.field.label, reason=reason)


def option_values(options: Optional[List[Any]]) -> List[str]:
    values = []
    for option in options or []:
        if isinstance(option, dict):
            values.append(str(option.get("value")))
        else:
            values.append(str(option))
    return values


def normalize(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (list, dict, bool)):
        return json.dumps(value)
    return str(value)


def _finite_number(value: Any) -> Optional[float]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    # nan and inf parse but cannot be range-checked
    return number if math.isfinite(number) else None


def check_bounds(field_type: str, rule: Optional[Dict[str, Any]]) -> Optional[str]:
    """Reason a rule's min/max cannot apply to a field of this type, or None."""
    for key in ("min", "max"):
        bound = (rule or {}).get(key)
        if bound is None:
            continue
        if field_type == FieldType.NUMBER.value:
            if isinstance(bound, bool) or _finite_number(bound) is None:
                return f"{key} must be a number for number fields"
        elif field_type == FieldType.DATE.value:
            try:
                date.fromisoformat(str(bound))
            except ValueError:
                return f"{key} must be a date (YYYY-MM-DD) for date fields"
    return None


def _scalar(check: _Check, value: Any) -> str:
    if isinstance(value, (list, dict)):
        check.fail("must be a single value")
    return normalize(value)


def _check_length(check: _Check, text: str):
    min_length = check.rule.get("minLength")
    max_length = check.rule.get("maxLength")
    if min_length is not None and len(text) < min_length:
        check.fail(f"must be at least {min_length} characters")
    if max_length is not None and len(text) > max_length:
        check.fail(f"must be at most {max_length} characters")


def _check_pattern(check: _Check, text: str):
    pattern = check.rule.get("pattern")
    if pattern and not re.search(pattern, text):
        check.fail("does not match the required format", use_message=True)


def _check_text(check: _Check, value: Any) -> str:
    text = _scalar(check, value)
    _check_length(check, text)
    _check_pattern(check, text)
    return text


def _check_email(check: _Check, value: Any) -> str:
    text = _scalar(check, value).strip()
    try:
        EMAIL_ADAPTER.validate_python(text)
    except ValidationError:
        check.fail("must be a valid email address")
    _check_length(check, text)
    _check_pattern(check, text)
    return text


def _check_phone(check: _Check, value: Any) -> str:
    text = _scalar(check, value).strip()
    if not PHONE_RE.match(re.sub(r"[\s-]", "", text)):
        check.fail("must be a valid phone number with country code")
    _check_pattern(check, text)
    return text


def _check_url(check: _Check, value: Any) -> str:
    text = _scalar(check, value).strip()
    parsed = urlparse(text)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        check.fail("must be a valid http(s) URL")
    _check_pattern(check, text)
    return text


def _check_number(check: _Check, value: Any) -> str:
    if isinstance(value, bool):
        check.fail("must be a number")
    number = _finite_number(_scalar(check, value))
    if number is None:
        check.fail("must be a number")

    minimum = check.rule.get("min")
    maximum = check.rule.get("max")
    if minimum is not None and number < float(minimum):
        check.fail(f"must be at least {minimum}", use_message=True)
    if maximum is not None and number > float(maximum):
        check.fail(f"must be at most {maximum}", use_message=True)
    return normalize(value).strip()


def _check_date(check: _Check, value: Any) -> str:
    text = _scalar(check, value).strip()
    try:
        parsed = date.fromisoformat(text)
    except ValueError:
        check.fail("must be a valid date (YYYY-MM-DD)")

    minimum = check.rule.get("min")
    maximum = check.rule.get("max")
    if minimum is not None and parsed < date.fromisoformat(str(minimum)):
        check.fail(f"must be on or after {minimum}", use_message=True)
    if maximum is not None and parsed > date.fromisoformat(str(maximum)):
        check.fail(f"must be on or before {maximum}", use_message=True)
    return text


def _check_choice(check: _Check, value: Any) -> str:
    text = _scalar(check, value)
    if text not in option_values(check.field.options):
        check.fail("is not one of the allowed options")
    return text


def _check_checkbox(check: _Check, value: Any) -> str:
    if isinstance(value, dict):
        check.fail("must be a list of options")
    selected = value if isinstance(value, (list, tuple)) else [value]
    allowed = option_values(check.field.options)
    for item in selected:
        if normalize(item) not in allowed:
            check.fail("is not one of the allowed options")

    min_length = check.rule.get("minLength")
    max_length = check.rule.get("maxLength")
    if min_length is not None and len(selected) < min_length:
        check.fail(f"must select at least {min_length} options")
    if max_length is not None and len(selected) > max_length:
        check.fail(f"must select at most {max_length} options")
    return normalize(list(selected)) if isinstance(value, (list, tuple)) else normalize(value)


def _check_file(check: _Check, value: Any) -> str:
    if not isinstance(value, dict) or not value.get("name"):
        check.fail("must be an uploaded file")

    allowed = check.rule.get("allowedFileTypes")
    if allowed:
        extension = value["name"].rsplit(".", 1)[-1].lower() if "." in value["name"] else ""
        if extension not in [ext.lower().lstrip(".") for ext in allowed]:
            check.fail(f"file type must be one of: {', '.join(allowed)}")

    max_size = check.rule.get("maxFileSize") or settings.MAX_FILE_SIZE
    try:
        size = int(value.get("size") or 0)
    except (TypeError, ValueError):
        check.fail("must be an uploaded file")
    if size > max_size:
        check.fail(f"file must be at most {max_size} bytes")
    return normalize(value)


CHECKERS: Dict[str, Callable[[_Check, Any], str]] = {
    FieldType.TEXT.value: _check_text,
    FieldType.TEXTAREA.value: _check_text,
    FieldType.EMAIL.value: _check_email,
    FieldType.PHONE.value: _check_phone,
    FieldType.URL.value: _check_url,
    FieldType.NUMBER.value: _check_number,
    FieldType.DATE.value: _check_date,
    FieldType.SELECT.value: _check_choice,
    FieldType.RADIO.value: _check_choice,
    FieldType.CHECKBOX.value: _check_checkbox,
    FieldType.FILE.value: _check_file,
}


def validate_answer(field, raw_value: Any, required: bool) -> Optional[str]:
    """
    Check one answer against its field.

    Args:
        field: the FormField being answered
        raw_value: the submitted answer, any JSON shape
        required: effective required flag after conditional rules

    Returns:
        The string to store, or None for a blank optional answer

    Raises:
        FieldValidationError naming the violated constraint
    """
    check = _Check(field)
    if is_blank(raw_value):
        if required:
            check.fail(REQUIRED)
        return None

    checker = CHECKERS.get(field.type, _check_text)
    return checker(check, raw_value)
