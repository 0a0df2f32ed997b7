from formbuilder.exceptions.custom_exception import (
    CustomException,
    NotFoundError,
    UnavailableError,
    ConflictError,
    BadRequestError,
    AuthorizationError,
    InternalError,
    FieldValidationError,
    ValidationFailure,
)
from formbuilder.exceptions.custom_exception_handler import custom_exception_handler, unhandled_exception_handler
from formbuilder.exceptions.validation_exception_handler import validation_exception_handler

__all__ = [
    "CustomException",
    "NotFoundError",
    "UnavailableError",
    "ConflictError",
    "BadRequestError",
    "AuthorizationError",
    "InternalError",
    "FieldValidationError",
    "ValidationFailure",
    "custom_exception_handler",
    "unhandled_exception_handler",
    "validation_exception_handler",
]
