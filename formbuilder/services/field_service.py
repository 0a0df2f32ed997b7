from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from formbuilder.constants.error import ERROR
from formbuilder.constants.form_constants import CHOICE_TYPES, FieldType
from formbuilder.exceptions import (
    AuthorizationError,
    BadRequestError,
    ConflictError,
    CustomException,
    NotFoundError,
)
from formbuilder.models.form_model import Form, FormField
from formbuilder.schema.form_schema import FieldCreate, FieldUpdate
from formbuilder.schema.user_schema import UserData
from formbuilder.services.form_service import check_conditional
from formbuilder.services.section_service import get_owned_section
from formbuilder.services.validation_service import check_bounds
from formbuilder.utils.logger_utils import handle_service_error, log_database_operation, log_warning


def get_owned_field(db: Session, field_id: str, user: UserData) -> FormField:
    row = (
        db.query(FormField, Form.user_id)
        .join(Form, Form.form_id == FormField.form_id)
        .filter(FormField.field_id == field_id)
        .first()
    )
    if not row:
        raise NotFoundError(ERROR.FIELD_NOT_FOUND)
    field, owner_id = row
    if owner_id != user.id:
        raise AuthorizationError()
    return field


def _name_taken(db: Session, form_id: str, name: str, exclude_field_id: str = None) -> bool:
    query = db.query(FormField.field_id).filter(FormField.form_id == form_id, FormField.name == name)
    if exclude_field_id:
        query = query.filter(FormField.field_id != exclude_field_id)
    return query.first() is not None


def _dump_options(options):
    if options is None:
        return None
    return [o if isinstance(o, str) else o.model_dump() for o in options]


def create_field(db: Session, section_id: str, data: FieldCreate, user: UserData) -> FormField:
    try:
        section = get_owned_section(db, section_id, user)

        if _name_taken(db, section.form_id, data.name):
            raise ConflictError(ERROR.FIELD_NAME_CONFLICT)

        last_order = (
            db.query(func.max(FormField.order)).filter(FormField.section_id == section_id).scalar()
        )
        field = FormField(
            section_id=section.section_id,
            form_id=section.form_id,
            name=data.name,
            label=data.label,
            type=data.type.value,
            placeholder=data.placeholder,
            options=_dump_options(data.options),
            validation=data.validation_dict(),
            order=(last_order or 0) + 1,
            conditional=check_conditional(db, section.form_id, data.conditional),
            is_active=data.is_active,
        )
        db.add(field)
        db.commit()
        db.refresh(field)

        log_database_operation("INSERT", "form_fields", {"field_id": field.field_id, "name": field.name})
        return field

    except CustomException:
        db.rollback()
        raise
    except IntegrityError as e:
        # Lost a race with a concurrent create of the same name
        db.rollback()
        log_warning(context="create_field", message=f"Integrity error for name '{data.name}': {e}")
        raise ConflictError(ERROR.FIELD_NAME_CONFLICT)
    except SQLAlchemyError as e:
        db.rollback()
        handle_service_error(error=e, context="create_field")


def update_field(db: Session, field_id: str, data: FieldUpdate, user: UserData) -> FormField:
    try:
        field = get_owned_field(db, field_id, user)

        changes = data.model_dump(exclude_unset=True)

        if changes.get("name") and changes["name"] != field.name:
            if _name_taken(db, field.form_id, changes["name"], exclude_field_id=field.field_id):
                raise ConflictError(ERROR.FIELD_NAME_CONFLICT)

        if "conditional" in changes:
            field.conditional = check_conditional(db, field.form_id, data.conditional, owner_field_id=field.field_id)
            changes.pop("conditional")
        if "options" in changes:
            field.options = _dump_options(data.options)
            changes.pop("options")
        if "validation" in changes:
            field.validation = (
                data.validation.model_dump(mode="json", exclude_none=True) if data.validation else None
            )
            changes.pop("validation")
        if changes.get("type"):
            changes["type"] = FieldType(changes["type"]).value

        for key, value in changes.items():
            if value is None and key != "placeholder":
                continue
            setattr(field, key, value)

        if FieldType(field.type) in CHOICE_TYPES and not field.options:
            raise BadRequestError(ERROR.OPTIONS_REQUIRED)
        reason = check_bounds(field.type, field.validation)
        if reason:
            raise BadRequestError(reason)

        db.commit()
        db.refresh(field)

        log_database_operation("UPDATE", "form_fields", {"field_id": field_id})
        return field

    except CustomException:
        db.rollback()
        raise
    except IntegrityError as e:
        db.rollback()
        log_warning(context="update_field", message=f"Integrity error for field {field_id}: {e}")
        raise ConflictError(ERROR.FIELD_NAME_CONFLICT)
    except SQLAlchemyError as e:
        db.rollback()
        handle_service_error(error=e, context="update_field")


def delete_field(db: Session, field_id: str, user: UserData) -> None:
    try:
        get_owned_field(db, field_id, user)

        db.query(FormField).filter(FormField.field_id == field_id).delete(synchronize_session=False)
        db.commit()

        log_database_operation("DELETE", "form_fields", {"field_id": field_id})

    except CustomException:
        raise
    except SQLAlchemyError as e:
        db.rollback()
        handle_service_error(error=e, context="delete_field")
