from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi import status
from formbuilder.constants.error import ERROR


def validation_exception_handler(request, exc: RequestValidationError):

    errors = []

    for err in exc.errors():
        field = err["loc"][-1] if err["loc"] else "body"

        default_msg = err["msg"]

        custom_msg = default_msg
        if err["type"] == "missing":
            custom_msg = getattr(ERROR, f"REQUIRED_{str(field).upper()}", default_msg)

        errors.append({
            "field": field,
            "message": custom_msg
        })

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "statusCode": 400,
            "errors": ERROR.VALIDATION_FAILED,
            "message": errors
        }
    )
