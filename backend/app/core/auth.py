from typing import Optional

from fastapi import Cookie, Depends, Header
from supabase import Client

from app.auth.schema import CurrentUser
from app.core.config import settings
from app.core.database import get_supabase
from app.core.exceptions import Unauthorized
from app.core.logging import get_logger

logger = get_logger()


def _extract_token(
    authorization: Optional[str], access_token: Optional[str]
) -> Optional[str]:
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() == "bearer" and token:
            return token.strip()
    return access_token


async def get_current_user(
    authorization: Optional[str] = Header(None),
    access_token: Optional[str] = Cookie(None, alias=settings.COOKIE_ACCESS_NAME),
    supabase_client: Client = Depends(get_supabase),
) -> CurrentUser:
    """Resolve the caller from a bearer token or the session cookie"""
    token = _extract_token(authorization, access_token)
    if not token:
        raise Unauthorized(details="Auth session missing")

    try:
        response = supabase_client.auth.get_user(token)
    except Exception as e:
        logger.warning(f"Authentication error: {e}")
        raise Unauthorized(details=str(e))

    if response is None or response.user is None:
        raise Unauthorized(details="User not found for token")

    return CurrentUser.from_supabase(response.user)
