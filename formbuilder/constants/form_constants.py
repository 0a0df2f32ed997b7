# constants/form_constants.py
from enum import Enum


class FieldType(str, Enum):
    TEXT = "text"
    TEXTAREA = "textarea"
    EMAIL = "email"
    PHONE = "phone"
    URL = "url"
    NUMBER = "number"
    SELECT = "select"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    DATE = "date"
    FILE = "file"


CHOICE_TYPES = {FieldType.SELECT, FieldType.RADIO, FieldType.CHECKBOX}


class Operator(str, Enum):
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"


class Action(str, Enum):
    SHOW = "show"
    HIDE = "hide"
    REQUIRE = "require"
    OPTIONAL = "optional"


NO_RESPONSE = "No response"

SLUG_MAX_LENGTH = 50
DEFAULT_SLUG = "form"
