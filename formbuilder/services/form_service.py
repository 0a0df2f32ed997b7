from typing import Any, Dict, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from formbuilder.constants.error import ERROR
from formbuilder.exceptions import (
    AuthorizationError,
    BadRequestError,
    ConflictError,
    CustomException,
    NotFoundError,
)
from formbuilder.models.form_model import Form, FormEntry, FormField, FormSection, FormValue
from formbuilder.schema.form_schema import ConditionalRule, FormCreate, FormResponse, FormUpdate
from formbuilder.schema.user_schema import UserData
from formbuilder.services.submission_service import ensure_public, load_form
from formbuilder.utils.logger_utils import handle_service_error, log_database_operation, log_warning
from formbuilder.utils.slug_utils import unique_slug


def get_owned_form(db: Session, form_id: str, user: UserData) -> Form:
    form = (
        db.query(Form)
        .options(selectinload(Form.sections).selectinload(FormSection.fields))
        .filter(Form.form_id == form_id)
        .first()
    )
    if not form:
        raise NotFoundError(ERROR.FORM_NOT_FOUND)
    if form.user_id != user.id:
        raise AuthorizationError()
    return form


def check_conditional(
    db: Session,
    form_id: str,
    rule: Optional[ConditionalRule],
    owner_field_id: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """Rule as stored JSON, after making sure it points at another field of the form."""
    if rule is None:
        return None
    stored = rule.model_dump(mode="json")
    depends_on = stored["dependsOnFieldId"]
    exists = (
        db.query(FormField.field_id)
        .filter(FormField.field_id == depends_on, FormField.form_id == form_id)
        .first()
    )
    if not exists or depends_on == owner_field_id:
        raise BadRequestError(ERROR.UNKNOWN_DEPENDENCY)
    return stored


def serialize_form(form: Form, active_only: bool = False) -> Dict[str, Any]:
    data = FormResponse.model_validate(form).model_dump(mode="json")
    if active_only:
        data["sections"] = [
            {**section, "fields": [f for f in section["fields"] if f["is_active"]]}
            for section in data["sections"]
            if section["is_active"]
        ]
    return data


def _slug_taken(db: Session, slug: str) -> bool:
    return db.query(Form.form_id).filter(Form.slug == slug).first() is not None


def create_form(db: Session, data: FormCreate, user: UserData) -> Form:
    try:
        form = Form(
            user_id=user.id,
            title=data.title,
            slug=unique_slug(data.title, lambda slug: _slug_taken(db, slug)),
            description=data.description,
            settings=data.settings,
            is_active=data.is_active,
            is_public=data.is_public,
        )
        db.add(form)
        db.flush()

        fields_by_name: Dict[str, FormField] = {}
        pending_rules = []

        for section_order, section_data in enumerate(data.sections, start=1):
            section = FormSection(
                form_id=form.form_id,
                title=section_data.title,
                description=section_data.description,
                order=section_order,
                is_active=section_data.is_active,
            )
            db.add(section)
            if section_data.conditional:
                pending_rules.append((section, section_data.conditional))

            for field_order, field_data in enumerate(section_data.fields, start=1):
                if field_data.name in fields_by_name:
                    raise ConflictError(f"{ERROR.FIELD_NAME_CONFLICT}: {field_data.name}")
                field = FormField(
                    section=section,
                    form_id=form.form_id,
                    name=field_data.name,
                    label=field_data.label,
                    type=field_data.type.value,
                    placeholder=field_data.placeholder,
                    options=[o if isinstance(o, str) else o.model_dump() for o in field_data.options or []] or None,
                    validation=field_data.validation_dict(),
                    order=field_order,
                    is_active=field_data.is_active,
                )
                db.add(field)
                fields_by_name[field_data.name] = field
                if field_data.conditional:
                    pending_rules.append((field, field_data.conditional))

        db.flush()

        # Nested rules may name their dependency by field name
        field_ids = {field.field_id for field in fields_by_name.values()}
        for owner, rule in pending_rules:
            stored = rule.model_dump(mode="json")
            depends_on = stored["dependsOnFieldId"]
            if depends_on in fields_by_name:
                stored["dependsOnFieldId"] = fields_by_name[depends_on].field_id
            elif depends_on not in field_ids:
                raise BadRequestError(ERROR.UNKNOWN_DEPENDENCY)
            if isinstance(owner, FormField) and stored["dependsOnFieldId"] == owner.field_id:
                raise BadRequestError(ERROR.UNKNOWN_DEPENDENCY)
            owner.conditional = stored

        db.commit()
        log_database_operation("INSERT", "forms", {"form_id": form.form_id, "slug": form.slug})
        return get_owned_form(db, form.form_id, user)

    except CustomException:
        db.rollback()
        raise
    except IntegrityError as e:
        db.rollback()
        log_warning(context="create_form", message=f"Integrity error creating form '{data.title}': {e}")
        raise ConflictError(ERROR.SLUG_CONFLICT)
    except SQLAlchemyError as e:
        db.rollback()
        handle_service_error(error=e, context="create_form")


def get_form_list(db: Session, user: UserData, page: int, size: int) -> Dict[str, Any]:
    try:
        query = db.query(Form).filter(Form.user_id == user.id)
        total = query.count()
        forms = (
            query.order_by(Form.created_at.desc())
            .offset((page - 1) * size)
            .limit(size)
            .all()
        )

        counts = dict(
            db.query(FormEntry.form_id, func.count(FormEntry.entry_id))
            .filter(FormEntry.form_id.in_([form.form_id for form in forms]))
            .group_by(FormEntry.form_id)
            .all()
        ) if forms else {}

        result = []
        for form in forms:
            result.append({
                "form_id": form.form_id,
                "title": form.title,
                "slug": form.slug,
                "description": form.description,
                "is_active": form.is_active,
                "is_public": form.is_public,
                "created_at": form.created_at,
                "entry_count": counts.get(form.form_id, 0),
            })

        return {"result": result, "total": total, "page": page, "size": size}

    except SQLAlchemyError as e:
        handle_service_error(error=e, context="get_form_list")


def get_form(db: Session, form_id: str, user: UserData) -> Dict[str, Any]:
    try:
        form = get_owned_form(db, form_id, user)
        data = serialize_form(form)
        data["entry_count"] = (
            db.query(func.count(FormEntry.entry_id)).filter(FormEntry.form_id == form.form_id).scalar()
        )
        return data
    except CustomException:
        raise
    except SQLAlchemyError as e:
        handle_service_error(error=e, context="get_form")


def get_public_form(db: Session, form_ref: str) -> Dict[str, Any]:
    try:
        form = load_form(db, form_ref)
        ensure_public(form)
        data = serialize_form(form, active_only=True)
        data.pop("user_id", None)
        return data
    except CustomException:
        raise
    except SQLAlchemyError as e:
        handle_service_error(error=e, context="get_public_form")


def update_form(db: Session, form_id: str, data: FormUpdate, user: UserData) -> Form:
    try:
        form = get_owned_form(db, form_id, user)

        changes = data.model_dump(exclude_unset=True)
        allow_submissions = changes.pop("allowSubmissions", None)
        settings_patch = changes.pop("settings", None)

        for key, value in changes.items():
            if value is None and key != "description":
                continue
            setattr(form, key, value)

        if settings_patch is not None or allow_submissions is not None:
            merged = dict(form.settings or {})
            merged.update(settings_patch or {})
            if allow_submissions is not None:
                merged["allowSubmissions"] = allow_submissions
            form.settings = merged

        db.commit()
        log_database_operation("UPDATE", "forms", {"form_id": form_id, "fields": list(changes)})
        db.refresh(form)
        return form

    except CustomException:
        raise
    except SQLAlchemyError as e:
        db.rollback()
        handle_service_error(error=e, context="update_form")


def delete_form(db: Session, form_id: str, user: UserData) -> None:
    try:
        get_owned_form(db, form_id, user)

        entry_ids = select(FormEntry.entry_id).where(FormEntry.form_id == form_id)
        db.query(FormValue).filter(FormValue.entry_id.in_(entry_ids)).delete(synchronize_session=False)
        db.query(FormEntry).filter(FormEntry.form_id == form_id).delete(synchronize_session=False)
        db.query(FormField).filter(FormField.form_id == form_id).delete(synchronize_session=False)
        db.query(FormSection).filter(FormSection.form_id == form_id).delete(synchronize_session=False)
        db.query(Form).filter(Form.form_id == form_id).delete(synchronize_session=False)
        db.commit()

        log_database_operation("DELETE", "forms", {"form_id": form_id})

    except CustomException:
        raise
    except SQLAlchemyError as e:
        db.rollback()
        handle_service_error(error=e, context="delete_form")
