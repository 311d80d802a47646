from typing import Optional
from urllib.parse import quote

from fastapi import Response

from app.core.config import settings


def set_auth_cookies(
    response: Response,
    access_token: str,
    refresh_token: Optional[str] = None,
    expires_in: Optional[int] = None,
) -> None:
    cookie_settings = {
        "path": settings.COOKIE_PATH,
        "domain": settings.COOKIE_DOMAIN,
        "secure": settings.COOKIE_SECURE,
        "httponly": settings.COOKIE_HTTP_ONLY,
        "samesite": settings.COOKIE_SAMESITE,
    }
    access_max_age = expires_in or settings.ACCESS_TOKEN_MAX_AGE_SECONDS

    access_cookie_settings = cookie_settings.copy()
    access_cookie_settings["max_age"] = access_max_age
    response.set_cookie(
        settings.COOKIE_ACCESS_NAME, access_token, **access_cookie_settings
    )

    if refresh_token:
        refresh_cookie_settings = cookie_settings.copy()
        refresh_cookie_settings["max_age"] = (
            settings.REFRESH_TOKEN_MAX_AGE_DAYS * 24 * 60 * 60
        )
        response.set_cookie(
            settings.COOKIE_REFRESH_NAME,
            refresh_token,
            **refresh_cookie_settings,
        )

    # Readable by the front end so it can tell a session exists
    logged_in_cookie_settings = cookie_settings.copy()
    logged_in_cookie_settings["httponly"] = False
    logged_in_cookie_settings["max_age"] = access_max_age
    response.set_cookie(
        settings.COOKIE_LOGGED_IN_NAME, "true", **logged_in_cookie_settings
    )


def delete_auth_cookies(response: Response) -> None:
    for name in (
        settings.COOKIE_ACCESS_NAME,
        settings.COOKIE_REFRESH_NAME,
        settings.COOKIE_LOGGED_IN_NAME,
    ):
        response.delete_cookie(name, path=settings.COOKIE_PATH, domain=settings.COOKIE_DOMAIN)


def email_confirmation_redirect(email: str) -> str:
    return f"/email-confirmation?email={quote(email)}"
