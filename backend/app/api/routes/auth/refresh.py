from typing import Optional

from fastapi import APIRouter, Cookie, Depends, Response, status

from app.api.services.user_auth import UserAuthService, get_user_auth_service
from app.auth.schema import RefreshRequestSchema
from app.auth.utils import set_auth_cookies
from app.core.config import settings

router = APIRouter()


@router.post("/refresh", status_code=status.HTTP_200_OK)
async def refresh_session(
    response: Response,
    body: Optional[RefreshRequestSchema] = None,
    refresh_cookie: Optional[str] = Cookie(None, alias=settings.COOKIE_REFRESH_NAME),
    auth_service: UserAuthService = Depends(get_user_auth_service),
):
    """Exchange a refresh token (body or cookie) for a new session"""
    refresh_token = (body.refresh_token if body else None) or refresh_cookie
    session = await auth_service.refresh(refresh_token)
    set_auth_cookies(
        response,
        session.access_token,
        session.refresh_token,
        expires_in=getattr(session, "expires_in", None),
    )
    return {"message": "Session refreshed"}
