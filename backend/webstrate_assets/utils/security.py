"""JWT handling for identifying the uploading user."""
from jose import JWTError, jwt

from webstrate_assets.config import get_settings

ANONYMOUS_USER_ID = "anonymous:"


def decode_token(token: str) -> dict | None:
    """Decode and validate JWT token."""
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm]
        )
        return payload
    except JWTError:
        return None


def get_user_id_from_token(token: str | None) -> str:
    """User id carried by a token. Missing or invalid tokens mean an anonymous user."""
    if not token:
        return ANONYMOUS_USER_ID
    payload = decode_token(token)
    if payload is None:
        return ANONYMOUS_USER_ID
    user_id = payload.get("sub")
    if not user_id:
        return ANONYMOUS_USER_ID
    return str(user_id)
