from typing import Dict, Optional

from formbuilder.constants.error import ERROR


class CustomException(Exception):
    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(message)


class NotFoundError(CustomException):
    def __init__(self, message: str):
        super().__init__(status_code=404, message=message)


class UnavailableError(CustomException):
    def __init__(self, message: str = ERROR.FORM_UNAVAILABLE):
        super().__init__(status_code=403, message=message)


class ConflictError(CustomException):
    def __init__(self, message: str):
        super().__init__(status_code=409, message=message)


class BadRequestError(CustomException):
    def __init__(self, message: str):
        super().__init__(status_code=400, message=message)


class AuthorizationError(CustomException):
    """Missing credentials (401) or a non-owner touching a form tree (403)."""

    def __init__(self, message: str = ERROR.ACCESS_DENIED, status_code: int = 403):
        super().__init__(status_code=status_code, message=message)


class InternalError(CustomException):
    def __init__(self, message: str = ERROR.INTERNAL_ERROR):
        super().__init__(status_code=500, message=message)


class FieldValidationError(Exception):
    """A single answer failed its field's rule."""

    def __init__(self, name: str, label: str, reason: str):
        self.name = name
        self.label = label
        self.reason = reason
        super().__init__(f"{label}: {reason}")


class ValidationFailure(CustomException):
    """Every field error of one submission, keyed by field name in form order."""

    def __init__(self, errors: Dict[str, str], message: Optional[str] = None):
        self.errors = errors
        super().__init__(status_code=400, message=message or ERROR.VALIDATION_FAILED)
