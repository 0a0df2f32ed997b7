from typing import Optional

from fastapi import Request
from pydantic import ValidationError
from formbuilder.utils.auth_utils import verify_jwt, extract_bearer_token
from formbuilder.config.env_config import settings
from formbuilder.exceptions.custom_exception import AuthorizationError
from formbuilder.constants.error import ERROR
from formbuilder.schema.user_schema import UserData
from formbuilder.utils.logger_utils import handle_middleware_error


def _decode_user(token: str) -> Optional[UserData]:
    payload = verify_jwt(
        token=token,
        secret_key=settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )
    if not payload:
        return None
    try:
        return UserData(**payload)
    except ValidationError:
        return None


def auth_middleware(request: Request):
    try:
        token = extract_bearer_token(request.headers.get("Authorization"))
        if token is None:
            raise AuthorizationError(message="Authorization header missing", status_code=401)

        user = _decode_user(token)
        if not user:
            raise AuthorizationError(message=ERROR.UNAUTHORIZED, status_code=401)

        request.state.user = user

    except Exception as e:
        handle_middleware_error(
            error=e,
            context="auth_middleware",
            custom_exception=AuthorizationError(message=ERROR.UNAUTHORIZED, status_code=401)
        )


def optional_user(request: Request) -> Optional[UserData]:
    """Identify the caller when a valid bearer token is sent; anonymous otherwise."""
    token = extract_bearer_token(request.headers.get("Authorization"))
    if token is None:
        return None
    return _decode_user(token)
