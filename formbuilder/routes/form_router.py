
from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response
from sqlalchemy.orm import Session
from formbuilder.config.database_config import get_db
from formbuilder.constants.messages import MESSAGE
from formbuilder.middleware.auth_middleware import auth_middleware
from formbuilder.utils.logger_utils import handle_route_error
from formbuilder.services.form_service import (
    create_form,
    get_form,
    get_form_list,
    update_form,
    delete_form,
    serialize_form,
)
from formbuilder.services.entry_service import get_entry_list, export_entries_csv
from formbuilder.schema.form_schema import FormCreate, FormUpdate

form_controller = APIRouter()


@form_controller.post("", response_model=dict, status_code=201, dependencies=[Depends(auth_middleware)])
def handle_create_form(request: Request, data: FormCreate, db: Session = Depends(get_db)):
    try:
        form = create_form(db, data, request.state.user)
        return {"statusCode": 201, "message": MESSAGE.FORM_CREATED, "data": serialize_form(form)}
    except Exception as e:
        handle_route_error(error=e, context="POST /forms")


@form_controller.get("", response_model=dict, dependencies=[Depends(auth_middleware)])
def handle_form_list(
    request: Request,
    page: int = 1,
    size: int = 10,
    db: Session = Depends(get_db),
):
    try:
        response = get_form_list(db, request.state.user, max(page, 1), max(size, 1))
        return {"statusCode": 200, "message": MESSAGE.FORMS_FOUND, "data": response}
    except Exception as e:
        handle_route_error(error=e, context="GET /forms")


@form_controller.get("/{form_id}", response_model=dict, dependencies=[Depends(auth_middleware)])
def handle_get_form(request: Request, form_id: str, db: Session = Depends(get_db)):
    try:
        response = get_form(db, form_id, request.state.user)
        return {"statusCode": 200, "message": MESSAGE.FORM_FOUND, "data": response}
    except Exception as e:
        handle_route_error(error=e, context=f"GET /forms/{form_id}")


@form_controller.put("/{form_id}", response_model=dict, dependencies=[Depends(auth_middleware)])
def handle_update_form(
    request: Request,
    form_id: str,
    data: FormUpdate,
    db: Session = Depends(get_db),
):
    try:
        form = update_form(db, form_id, data, request.state.user)
        return {"statusCode": 200, "message": MESSAGE.FORM_UPDATED, "data": serialize_form(form)}
    except Exception as e:
        handle_route_error(error=e, context=f"PUT /forms/{form_id}")


@form_controller.delete("/{form_id}", response_model=dict, dependencies=[Depends(auth_middleware)])
def handle_delete_form(request: Request, form_id: str, db: Session = Depends(get_db)):
    try:
        delete_form(db, form_id, request.state.user)
        return {"statusCode": 200, "message": MESSAGE.FORM_DELETED, "data": []}
    except Exception as e:
        handle_route_error(error=e, context=f"DELETE /forms/{form_id}")


@form_controller.get("/{form_id}/entries", response_model=dict, dependencies=[Depends(auth_middleware)])
def handle_entry_list(
    request: Request,
    form_id: str,
    page: int = 1,
    size: int = 10,
    db: Session = Depends(get_db),
):
    try:
        response = get_entry_list(db, form_id, request.state.user, max(page, 1), max(size, 1))
        return {"statusCode": 200, "message": MESSAGE.ENTRIES_FOUND, "data": response}
    except Exception as e:
        handle_route_error(error=e, context=f"GET /forms/{form_id}/entries")


@form_controller.get("/{form_id}/entries/export", dependencies=[Depends(auth_middleware)])
def handle_entry_export(request: Request, form_id: str, db: Session = Depends(get_db)):
    try:
        filename, content = export_entries_csv(db, form_id, request.state.user)
        return Response(
            content=content,
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )
    except Exception as e:
        handle_route_error(error=e, context=f"GET /forms/{form_id}/entries/export")
