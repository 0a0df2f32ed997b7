from fastapi.responses import JSONResponse
from formbuilder.constants.error import ERROR
from formbuilder.exceptions.custom_exception import CustomException, ValidationFailure
import logging

logger = logging.getLogger(__name__)


def custom_exception_handler(request, exc: CustomException):
    content = {
        "statusCode": exc.status_code,
        "message": exc.message
    }
    if isinstance(exc, ValidationFailure):
        content["errors"] = exc.errors

    return JSONResponse(status_code=exc.status_code, content=content)


def unhandled_exception_handler(request, exc: Exception):
    logger.error(f"[UNHANDLED] {request.method} {request.url.path}: {exc!r}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={
            "statusCode": 500,
            "message": ERROR.INTERNAL_ERROR
        }
    )
