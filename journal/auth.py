# journal/auth.py

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from journal.config import Settings, get_settings
from journal.errors import AuthError
from logger import logger

# auto_error=False so a missing header surfaces as 401 rather than FastAPI's 403
security = HTTPBearer(auto_error=False)


def decode_user_id(token: str, settings: Settings) -> str:
    """
    Verifies a bearer token issued by the identity provider.

    Args:
        token (str): Encoded JWT.
        settings (Settings): Supplies the signing secret, algorithm and audience.

    Returns:
        str: The owner id carried in the "sub" claim.

    Raises:
        AuthError: If the token is malformed, expired, wrongly signed or has no subject.
    """
    options = {"verify_aud": settings.jwt_audience is not None}
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            options=options,
        )
    except JWTError as e:
        logger.warning(f"Rejected bearer token: {e}")
        raise AuthError()

    user_id: Optional[str] = payload.get("sub")
    if not user_id:
        logger.warning("Bearer token has no subject claim.")
        raise AuthError()
    return str(user_id)


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings),
) -> str:
    if credentials is None or not credentials.credentials:
        raise AuthError()
    return decode_user_id(credentials.credentials, settings)
