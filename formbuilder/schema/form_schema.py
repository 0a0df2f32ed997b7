import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from formbuilder.constants.error import ERROR
from formbuilder.constants.form_constants import CHOICE_TYPES, Action, FieldType, Operator
from formbuilder.services.validation_service import check_bounds


class SelectOption(BaseModel):
    value: str
    label: str


class ConditionalRule(BaseModel):
    dependsOnFieldId: str
    operator: Operator
    comparisonValue: Optional[Any] = None
    action: Action = Action.SHOW


class ValidationRule(BaseModel):
    """Declared constraints of a field. Unknown keys are kept as-is."""

    model_config = ConfigDict(extra="allow")

    required: bool = False
    minLength: Optional[int] = Field(default=None, ge=0)
    maxLength: Optional[int] = Field(default=None, ge=0)
    min: Optional[Union[int, float, str]] = None
    max: Optional[Union[int, float, str]] = None
    pattern: Optional[str] = None
    message: Optional[str] = None
    allowedFileTypes: Optional[List[str]] = None
    maxFileSize: Optional[int] = Field(default=None, gt=0)

    @field_validator("pattern")
    @classmethod
    def pattern_must_compile(cls, value):
        if value is not None:
            try:
                re.compile(value)
            except re.error as e:
                raise ValueError(f"Invalid pattern: {e}")
        return value


OptionList = List[Union[str, SelectOption]]


class FieldCreate(BaseModel):
    type: FieldType
    label: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=255)
    placeholder: Optional[str] = None
    options: Optional[OptionList] = None
    required: Optional[bool] = None  # Shortcut for validation.required
    validation: Optional[ValidationRule] = None
    conditional: Optional[ConditionalRule] = None
    is_active: bool = True

    @model_validator(mode="after")
    def check_options_and_bounds(self):
        if self.type in CHOICE_TYPES and not self.options:
            raise ValueError(ERROR.OPTIONS_REQUIRED)
        reason = check_bounds(self.type.value, self.validation.model_dump() if self.validation else None)
        if reason:
            raise ValueError(reason)
        return self

    def validation_dict(self) -> Dict[str, Any]:
        rule = self.validation.model_dump(mode="json", exclude_none=True) if self.validation else {"required": False}
        if self.required is not None:
            rule["required"] = self.required
        return rule


class FieldUpdate(BaseModel):
    type: Optional[FieldType] = None
    label: Optional[str] = Field(default=None, min_length=1)
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    placeholder: Optional[str] = None
    options: Optional[OptionList] = None
    validation: Optional[ValidationRule] = None
    order: Optional[int] = None
    conditional: Optional[ConditionalRule] = None
    is_active: Optional[bool] = None


class SectionCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    conditional: Optional[ConditionalRule] = None
    is_active: bool = True


class NestedSectionCreate(SectionCreate):
    fields: List[FieldCreate] = []


class SectionUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    order: Optional[int] = None
    conditional: Optional[ConditionalRule] = None
    is_active: Optional[bool] = None


class FormCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    settings: Optional[Dict[str, Any]] = None
    is_active: bool = True
    is_public: bool = True
    sections: List[NestedSectionCreate] = []


class FormUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    settings: Optional[Dict[str, Any]] = None
    allowSubmissions: Optional[bool] = None
    is_active: Optional[bool] = None
    is_public: Optional[bool] = None


class FieldResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    field_id: str
    section_id: str
    name: str
    label: str
    type: str
    placeholder: Optional[str] = None
    options: Optional[List[Any]] = None
    validation: Optional[Dict[str, Any]] = None
    order: int
    conditional: Optional[Dict[str, Any]] = None
    is_active: bool


class SectionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    section_id: str
    form_id: str
    title: str
    description: Optional[str] = None
    order: int
    conditional: Optional[Dict[str, Any]] = None
    is_active: bool
    fields: List[FieldResponse] = []


class FormResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    form_id: str
    user_id: str
    title: str
    slug: str
    description: Optional[str] = None
    settings: Optional[Dict[str, Any]] = None
    is_active: bool
    is_public: bool
    created_at: datetime
    sections: List[SectionResponse] = []


class ValueResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    field_id: str
    field_name: str
    value: str


class EntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    entry_id: str
    form_id: str
    submitter_id: Optional[str] = None
    ip: Optional[str] = None
    meta: Optional[Dict[str, Any]] = None
    created_at: datetime
    values: List[ValueResponse] = []
