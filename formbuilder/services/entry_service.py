import csv
import io
import json
from typing import Any, Dict, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from formbuilder.constants.form_constants import FieldType
from formbuilder.exceptions import CustomException
from formbuilder.models.form_model import FormEntry
from formbuilder.schema.form_schema import EntryResponse
from formbuilder.schema.user_schema import UserData
from formbuilder.services.form_service import get_owned_form
from formbuilder.services.submission_service import flatten_fields
from formbuilder.utils.logger_utils import handle_service_error

CSV_LEADING_COLUMNS = ["Submitted At", "Submitter", "IP"]


def get_entry_list(db: Session, form_id: str, user: UserData, page: int, size: int) -> Dict[str, Any]:
    try:
        get_owned_form(db, form_id, user)

        query = db.query(FormEntry).filter(FormEntry.form_id == form_id)
        total = query.count()
        entries = (
            query.options(selectinload(FormEntry.values))
            .order_by(FormEntry.created_at.desc())
            .offset((page - 1) * size)
            .limit(size)
            .all()
        )

        return {
            "result": [EntryResponse.model_validate(entry).model_dump(mode="json") for entry in entries],
            "total": total,
            "page": page,
            "size": size,
        }

    except CustomException:
        raise
    except SQLAlchemyError as e:
        handle_service_error(error=e, context="get_entry_list")


def format_cell(value: str, field_type: str) -> str:
    if field_type == FieldType.FILE.value and value.startswith("{"):
        try:
            descriptor = json.loads(value)
            return f"{descriptor['name']} ({int(descriptor.get('size') or 0) / 1024:.1f} KB)"
        except (ValueError, KeyError, TypeError):
            return value
    return value


def export_entries_csv(db: Session, form_id: str, user: UserData) -> Tuple[str, str]:
    """Render every entry of a form as CSV. Returns (filename, content)."""
    try:
        form = get_owned_form(db, form_id, user)
        fields = [field for _, field in flatten_fields(form)]

        entries = (
            db.query(FormEntry)
            .options(selectinload(FormEntry.values))
            .filter(FormEntry.form_id == form_id)
            .order_by(FormEntry.created_at.asc())
            .all()
        )

        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(CSV_LEADING_COLUMNS + [field.label for field in fields])

        for entry in entries:
            by_field = {value.field_id: value.value for value in entry.values}
            writer.writerow(
                [
                    entry.created_at.isoformat() if entry.created_at else "",
                    entry.submitter_id or "Anonymous",
                    entry.ip or "",
                ]
                + [
                    format_cell(by_field[field.field_id], field.type) if field.field_id in by_field else ""
                    for field in fields
                ]
            )

        return f"{form.slug}_entries.csv", buffer.getvalue()

    except CustomException:
        raise
    except SQLAlchemyError as e:
        handle_service_error(error=e, context="export_entries_csv")
