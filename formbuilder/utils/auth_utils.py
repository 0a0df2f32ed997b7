from jose import JWTError, jwt


def verify_jwt(token: str, secret_key: str, algorithm: str):
    try:
        payload = jwt.decode(token, secret_key, algorithms=[algorithm])
        return payload
    except JWTError:
        return None


def extract_bearer_token(header_value: str | None) -> str | None:
    if not header_value:
        return None
    if header_value.startswith("Bearer "):
        return header_value[7:]
    return header_value
