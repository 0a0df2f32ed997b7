from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from formbuilder.constants.error import ERROR
from formbuilder.constants.form_constants import NO_RESPONSE
from formbuilder.exceptions import (
    FieldValidationError,
    NotFoundError,
    UnavailableError,
    ValidationFailure,
)
from formbuilder.models.form_model import Form, FormEntry, FormField, FormSection, FormValue
from formbuilder.services.condition_service import field_state, section_visible
from formbuilder.services.validation_service import validate_answer
from formbuilder.utils.logger_utils import handle_service_error, log_database_operation, log_info

UNKNOWN_FIELD = "unknown field"


@dataclass
class SubmissionMeta:
    ip: Optional[str] = None
    user_agent: Optional[str] = None
    referrer: Optional[str] = None


def load_form(db: Session, form_ref: str) -> Form:
    """Find a form by id or slug, with its sections and fields loaded."""
    form = (
        db.query(Form)
        .options(selectinload(Form.sections).selectinload(FormSection.fields))
        .filter(or_(Form.form_id == form_ref, Form.slug == form_ref))
        .first()
    )
    if not form:
        raise NotFoundError(ERROR.FORM_NOT_FOUND)
    return form


def ensure_public(form: Form) -> None:
    if not form.is_active or not form.is_public:
        raise UnavailableError(ERROR.FORM_UNAVAILABLE)


def flatten_fields(form: Form) -> List[Tuple[FormSection, FormField]]:
    """Active fields of active sections, section order first, then field order."""
    return [
        (section, field)
        for section in form.sections
        if section.is_active
        for field in section.fields
        if field.is_active
    ]


def validate_submission(form: Form, payload: Mapping[str, Any]) -> List[Tuple[FormField, str]]:
    """
    Run conditions and validation over a whole payload.

    Returns (field, stored value) pairs for every active field in order, or
    raises ValidationFailure carrying every error at once.
    """
    flattened = flatten_fields(form)
    answers = {field.field_id: payload.get(field.name) for _, field in flattened}
    known_names = {field.name for section in form.sections for field in section.fields}

    errors: Dict[str, str] = {}
    rows: List[Tuple[FormField, str]] = []
    visibility: Dict[str, bool] = {}

    for section, field in flattened:
        if section.section_id not in visibility:
            visibility[section.section_id] = section_visible(section, answers)

        state = field_state(field, answers, visibility[section.section_id])
        if not state.visible:
            rows.append((field, NO_RESPONSE))
            continue

        try:
            stored = validate_answer(field, payload.get(field.name), state.required)
        except FieldValidationError as e:
            errors[e.name] = e.reason
            continue
        rows.append((field, NO_RESPONSE if stored is None else stored))

    for name in payload:
        if name not in known_names:
            errors[name] = UNKNOWN_FIELD

    if errors:
        raise ValidationFailure(errors)
    return rows


def submit_entry(
    db: Session,
    form_ref: str,
    payload: Mapping[str, Any],
    submitter_id: Optional[str] = None,
    meta: Optional[SubmissionMeta] = None,
) -> str:
    """Validate a submission and persist one entry with a value per active field."""
    meta = meta or SubmissionMeta()
    form = load_form(db, form_ref)
    ensure_public(form)
    if (form.settings or {}).get("allowSubmissions") is False:
        raise UnavailableError(ERROR.SUBMISSIONS_CLOSED)

    try:
        rows = validate_submission(form, payload)
    except ValidationFailure as e:
        log_info(context="SUBMIT", message=f"Rejected submission for form {form.form_id}: {e.errors}")
        raise

    try:
        entry = FormEntry(
            form_id=form.form_id,
            submitter_id=submitter_id,
            ip=meta.ip,
            meta={
                "userAgent": meta.user_agent,
                "referrer": meta.referrer,
                "submittedAt": datetime.now(timezone.utc).isoformat(),
            },
        )
        entry.values = [
            FormValue(
                field_id=field.field_id,
                field_name=field.name,
                value=value,
                position=position,
            )
            for position, (field, value) in enumerate(rows)
        ]
        db.add(entry)
        db.commit()

        log_database_operation("INSERT", "form_entries", {"entry_id": entry.entry_id, "values": len(rows)})
        log_info(context="SUBMIT", message=f"Entry {entry.entry_id} stored for form {form.form_id}")
        return entry.entry_id

    except SQLAlchemyError as e:
        db.rollback()
        handle_service_error(error=e, context="submit_entry")
