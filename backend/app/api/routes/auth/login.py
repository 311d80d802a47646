from typing import Optional

from fastapi import APIRouter, Cookie, Depends, Response, status

from app.api.services.user_auth import UserAuthService, get_user_auth_service
from app.auth.schema import AuthRedirectSchema, LoginRequestSchema
from app.auth.utils import delete_auth_cookies, set_auth_cookies
from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger()
router = APIRouter()


@router.post("/login", response_model=AuthRedirectSchema, status_code=status.HTTP_200_OK)
async def login(
    login_data: LoginRequestSchema,
    response: Response,
    auth_service: UserAuthService = Depends(get_user_auth_service),
):
    result, session = await auth_service.sign_in(login_data)

    if session is not None:
        set_auth_cookies(
            response,
            session.access_token,
            session.refresh_token,
            expires_in=getattr(session, "expires_in", None),
        )
        logger.info(f"User {result.user_id} logged in")

    return result


@router.post("/logout", status_code=status.HTTP_200_OK)
async def logout(
    response: Response,
    access_token: Optional[str] = Cookie(None, alias=settings.COOKIE_ACCESS_NAME),
    auth_service: UserAuthService = Depends(get_user_auth_service),
):
    await auth_service.sign_out(access_token)
    delete_auth_cookies(response)
    return {"message": "Logged out successfully", "redirect": "/login"}
