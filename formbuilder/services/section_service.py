from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from formbuilder.constants.error import ERROR
from formbuilder.exceptions import AuthorizationError, CustomException, NotFoundError
from formbuilder.models.form_model import Form, FormField, FormSection
from formbuilder.schema.form_schema import SectionCreate, SectionUpdate
from formbuilder.schema.user_schema import UserData
from formbuilder.services.form_service import check_conditional, get_owned_form
from formbuilder.utils.logger_utils import handle_service_error, log_database_operation


def get_owned_section(db: Session, section_id: str, user: UserData) -> FormSection:
    row = (
        db.query(FormSection, Form.user_id)
        .join(Form, Form.form_id == FormSection.form_id)
        .filter(FormSection.section_id == section_id)
        .first()
    )
    if not row:
        raise NotFoundError(ERROR.SECTION_NOT_FOUND)
    section, owner_id = row
    if owner_id != user.id:
        raise AuthorizationError()
    return section


def create_section(db: Session, form_id: str, data: SectionCreate, user: UserData) -> FormSection:
    try:
        form = get_owned_form(db, form_id, user)

        last_order = (
            db.query(func.max(FormSection.order)).filter(FormSection.form_id == form.form_id).scalar()
        )
        section = FormSection(
            form_id=form.form_id,
            title=data.title,
            description=data.description,
            order=(last_order or 0) + 1,
            conditional=check_conditional(db, form.form_id, data.conditional),
            is_active=data.is_active,
        )
        db.add(section)
        db.commit()
        db.refresh(section)

        log_database_operation("INSERT", "form_sections", {"section_id": section.section_id, "form_id": form_id})
        return section

    except CustomException:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        handle_service_error(error=e, context="create_section")


def update_section(db: Session, section_id: str, data: SectionUpdate, user: UserData) -> FormSection:
    try:
        section = get_owned_section(db, section_id, user)

        changes = data.model_dump(exclude_unset=True)
        if "conditional" in changes:
            section.conditional = check_conditional(db, section.form_id, data.conditional)
            changes.pop("conditional")

        for key, value in changes.items():
            if value is None and key != "description":
                continue
            setattr(section, key, value)

        db.commit()
        db.refresh(section)

        log_database_operation("UPDATE", "form_sections", {"section_id": section_id})
        return section

    except CustomException:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        handle_service_error(error=e, context="update_section")


def delete_section(db: Session, section_id: str, user: UserData) -> None:
    try:
        get_owned_section(db, section_id, user)

        # Children first; entries and values are left untouched
        db.query(FormField).filter(FormField.section_id == section_id).delete(synchronize_session=False)
        db.query(FormSection).filter(FormSection.section_id == section_id).delete(synchronize_session=False)
        db.commit()

        log_database_operation("DELETE", "form_sections", {"section_id": section_id})

    except CustomException:
        raise
    except SQLAlchemyError as e:
        db.rollback()
        handle_service_error(error=e, context="delete_section")
