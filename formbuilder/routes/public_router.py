from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from formbuilder.config.database_config import get_db
from formbuilder.constants.messages import MESSAGE
from formbuilder.middleware.auth_middleware import optional_user
from formbuilder.schema.user_schema import UserData
from formbuilder.services.form_service import get_public_form
from formbuilder.services.submission_service import SubmissionMeta, submit_entry
from formbuilder.utils.logger_utils import handle_route_error
from formbuilder.utils.request_utils import client_ip, read_submission_payload

public_controller = APIRouter()


@public_controller.get("/{form_ref}", response_model=dict)
def handle_public_form(form_ref: str, db: Session = Depends(get_db)):
    try:
        response = get_public_form(db, form_ref)
        return {"statusCode": 200, "message": MESSAGE.FORM_FOUND, "data": response}
    except Exception as e:
        handle_route_error(error=e, context=f"GET /forms/public/{form_ref}")


@public_controller.post("/{form_ref}/submit", response_model=dict, status_code=201)
def handle_submit(
    request: Request,
    form_ref: str,
    payload: Dict[str, Any] = Depends(read_submission_payload),
    user: Optional[UserData] = Depends(optional_user),
    db: Session = Depends(get_db),
):
    try:
        entry_id = submit_entry(
            db,
            form_ref,
            payload,
            submitter_id=user.id if user else None,
            meta=SubmissionMeta(
                ip=client_ip(request),
                user_agent=request.headers.get("user-agent"),
                referrer=request.headers.get("referer"),
            ),
        )
        return {"statusCode": 201, "message": MESSAGE.ENTRY_SUBMITTED, "success": True, "entryId": entry_id}
    except Exception as e:
        handle_route_error(error=e, context=f"POST /forms/public/{form_ref}/submit")
