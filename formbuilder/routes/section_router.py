from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from formbuilder.config.database_config import get_db
from formbuilder.constants.messages import MESSAGE
from formbuilder.middleware.auth_middleware import auth_middleware
from formbuilder.utils.logger_utils import handle_route_error
from formbuilder.services.section_service import create_section, update_section, delete_section
from formbuilder.services.field_service import create_field, update_field, delete_field
from formbuilder.schema.form_schema import (
    FieldCreate,
    FieldResponse,
    FieldUpdate,
    SectionCreate,
    SectionResponse,
    SectionUpdate,
)

section_controller = APIRouter(dependencies=[Depends(auth_middleware)])


def _section_data(section):
    return SectionResponse.model_validate(section).model_dump(mode="json")


def _field_data(field):
    return FieldResponse.model_validate(field).model_dump(mode="json")


@section_controller.post("/{form_id}/sections", response_model=dict, status_code=201)
def handle_create_section(request: Request, form_id: str, data: SectionCreate, db: Session = Depends(get_db)):
    try:
        section = create_section(db, form_id, data, request.state.user)
        return {"statusCode": 201, "message": MESSAGE.SECTION_CREATED, "data": _section_data(section)}
    except Exception as e:
        handle_route_error(error=e, context=f"POST /forms/{form_id}/sections")


@section_controller.put("/sections/{section_id}", response_model=dict)
def handle_update_section(request: Request, section_id: str, data: SectionUpdate, db: Session = Depends(get_db)):
    try:
        section = update_section(db, section_id, data, request.state.user)
        return {"statusCode": 200, "message": MESSAGE.SECTION_UPDATED, "data": _section_data(section)}
    except Exception as e:
        handle_route_error(error=e, context=f"PUT /forms/sections/{section_id}")


@section_controller.delete("/sections/{section_id}", response_model=dict)
def handle_delete_section(request: Request, section_id: str, db: Session = Depends(get_db)):
    try:
        delete_section(db, section_id, request.state.user)
        return {"statusCode": 200, "message": MESSAGE.SECTION_DELETED, "data": []}
    except Exception as e:
        handle_route_error(error=e, context=f"DELETE /forms/sections/{section_id}")


@section_controller.post("/sections/{section_id}/fields", response_model=dict, status_code=201)
def handle_create_field(request: Request, section_id: str, data: FieldCreate, db: Session = Depends(get_db)):
    try:
        field = create_field(db, section_id, data, request.state.user)
        return {"statusCode": 201, "message": MESSAGE.FIELD_CREATED, "data": _field_data(field)}
    except Exception as e:
        handle_route_error(error=e, context=f"POST /forms/sections/{section_id}/fields")


@section_controller.put("/fields/{field_id}", response_model=dict)
def handle_update_field(request: Request, field_id: str, data: FieldUpdate, db: Session = Depends(get_db)):
    try:
        field = update_field(db, field_id, data, request.state.user)
        return {"statusCode": 200, "message": MESSAGE.FIELD_UPDATED, "data": _field_data(field)}
    except Exception as e:
        handle_route_error(error=e, context=f"PUT /forms/fields/{field_id}")


@section_controller.delete("/fields/{field_id}", response_model=dict)
def handle_delete_field(request: Request, field_id: str, db: Session = Depends(get_db)):
    try:
        delete_field(db, field_id, request.state.user)
        return {"statusCode": 200, "message": MESSAGE.FIELD_DELETED, "data": []}
    except Exception as e:
        handle_route_error(error=e, context=f"DELETE /forms/fields/{field_id}")
