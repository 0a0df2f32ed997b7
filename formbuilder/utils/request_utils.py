import json
from typing import Any, Dict, Optional

from fastapi import Request
from starlette.datastructures import UploadFile

from formbuilder.exceptions.custom_exception import BadRequestError

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


def _decode_part(value: Any) -> Any:
    if isinstance(value, UploadFile):
        return {"name": value.filename, "size": value.size, "type": value.content_type}
    # Array answers arrive JSON-encoded inside form parts; scalars stay as sent
    if not value.lstrip().startswith(("[", "{")):
        return value
    try:
        return json.loads(value)
    except ValueError:
        return value


async def read_submission_payload(request: Request) -> Dict[str, Any]:
    """Submission body as a mapping of field name to answer."""
    content_type = request.headers.get("content-type", "")

    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        payload: Dict[str, Any] = {}
        for key, value in form.multi_items():
            decoded = _decode_part(value)
            if key in payload:
                existing = payload[key]
                payload[key] = (existing if isinstance(existing, list) else [existing]) + [decoded]
            else:
                payload[key] = decoded
        return payload

    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        body = json.loads(raw)
    except ValueError:
        raise BadRequestError("Request body must be valid JSON")
    if not isinstance(body, dict):
        raise BadRequestError("Request body must be a JSON object of field names to answers")
    return body


def client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.headers.get("x-real-ip") or (request.client.host if request.client else None)
