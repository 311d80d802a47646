from typing import Any, Callable, Dict, Optional, Tuple

import httpx
from supabase import Client
from supabase_auth.errors import AuthError

from app.auth.schema import (
    AuthRedirectSchema,
    CurrentUser,
    LoginRequestSchema,
    RoleChoicesSchema,
    SignupRequestSchema,
)
from app.auth.utils import email_confirmation_redirect
from app.core.config import settings
from app.core.database import get_auth_client, get_supabase
from app.core.exceptions import (
    AuthRequestFailed,
    NetworkError,
    Unauthorized,
    ValidationFailed,
)
from app.core.logging import get_logger

logger = get_logger()

RATE_LIMIT_MARKERS = ("rate limit", "security purposes")

DASHBOARD_REDIRECT = "/dashboard"
DOCTOR_REDIRECT = "/doctor"
DOCTOR_REGISTRATION_REDIRECT = "/doctor-registration"


def _is_email_not_confirmed(error: AuthError) -> bool:
    return getattr(error, "code", None) == "email_not_confirmed" or (
        "not confirmed" in str(error.message).lower()
    )


def _is_rate_limited(error: AuthError) -> bool:
    message = str(error.message).lower()
    return any(marker in message for marker in RATE_LIMIT_MARKERS)


class UserAuthService:
    """Thin wrapper over Supabase Auth for the account flows"""

    def __init__(
        self,
        auth_client_factory: Callable[[], Client] = get_auth_client,
        admin_client_factory: Callable[[], Client] = get_supabase,
    ) -> None:
        self._auth_client = auth_client_factory
        self._admin_client = admin_client_factory

    # ---------------------------
    # Sign-up / sign-in
    # ---------------------------
    async def sign_up(self, data: SignupRequestSchema) -> AuthRedirectSchema:
        try:
            response = self._auth_client().auth.sign_up(
                {
                    "email": data.email,
                    "password": data.password,
                    "options": {
                        "data": {
                            "full_name": data.full_name,
                            "first_name": data.firstName,
                            "last_name": data.lastName,
                        },
                        "email_redirect_to": f"{settings.FRONTEND_URL}/auth/callback",
                    },
                }
            )
        except AuthError as e:
            logger.warning(f"Signup failed for {data.email}: {e.message}")
            raise AuthRequestFailed("Signup failed", details=e.message)

        if response.user is None:
            raise AuthRequestFailed("Signup failed", details="Could not create user")

        logger.info(f"User signed up: {response.user.id}")
        return AuthRedirectSchema(
            message="Signup successful. Please confirm your email address.",
            redirect=email_confirmation_redirect(data.email),
            user_id=str(response.user.id),
        )

    async def sign_in(
        self, data: LoginRequestSchema
    ) -> Tuple[AuthRedirectSchema, Optional[Any]]:
        """Returns the redirect and, when the login completed, the session"""
        missing = [
            {"path": name, "message": "Please enter both email and password"}
            for name in ("email", "password")
            if not getattr(data, name)
        ]
        if missing:
            raise ValidationFailed(missing)

        try:
            response = self._auth_client().auth.sign_in_with_password(
                {"email": data.email, "password": data.password}
            )
        except AuthError as e:
            if _is_email_not_confirmed(e):
                logger.info(f"Login for unconfirmed email {data.email}")
                return (
                    AuthRedirectSchema(
                        message="Email not confirmed",
                        redirect=email_confirmation_redirect(data.email),
                    ),
                    None,
                )
            logger.warning(f"Login failed for {data.email}: {e.message}")
            raise Unauthorized(details=e.message)

        user = response.user
        if user is None or response.session is None:
            raise Unauthorized(details="Invalid login credentials")

        if not user.email_confirmed_at:
            return (
                AuthRedirectSchema(
                    message="Email not confirmed",
                    redirect=email_confirmation_redirect(data.email),
                    user_id=str(user.id),
                ),
                None,
            )

        return (
            AuthRedirectSchema(
                message="Login successful",
                redirect=DASHBOARD_REDIRECT,
                user_id=str(user.id),
            ),
            response.session,
        )

    async def sign_out(self, access_token: Optional[str]) -> None:
        if not access_token:
            return
        try:
            self._admin_client().auth.admin.sign_out(access_token)
        except AuthError as e:
            # Cookies are cleared regardless; an expired token is already signed out
            logger.warning(f"Sign out failed: {e.message}")

    async def refresh(self, refresh_token: Optional[str]) -> Any:
        if not refresh_token:
            raise Unauthorized(details="Refresh token missing")
        try:
            response = self._auth_client().auth.refresh_session(refresh_token)
        except AuthError as e:
            raise Unauthorized(details=f"Could not refresh session: {e.message}")
        if not response.session:
            raise Unauthorized(details="Invalid refresh token")
        return response.session

    # ---------------------------
    # Emails
    # ---------------------------
    async def resend_confirmation(self, email: str) -> Dict[str, str]:
        try:
            self._auth_client().auth.resend(
                {
                    "type": "signup",
                    "email": email,
                    "options": {
                        "email_redirect_to": f"{settings.FRONTEND_URL}/auth/callback"
                    },
                }
            )
        except AuthError as e:
            if _is_rate_limited(e):
                logger.info(f"Resend rate limited for {email}: {e.message}")
                return {
                    "type": "info",
                    "message": "Email was already sent recently. Please check your inbox and spam folder.",
                }
            logger.error(f"Error sending verification email to {email}: {e.message}")
            raise AuthRequestFailed(
                "Failed to send verification email", details=e.message
            )

        return {
            "type": "success",
            "message": "Verification email sent! Please check your inbox and spam folder.",
        }

    async def request_password_reset(self, email: str) -> Dict[str, str]:
        try:
            self._auth_client().auth.reset_password_for_email(
                email, {"redirect_to": f"{settings.FRONTEND_URL}/reset-password"}
            )
        except AuthError as e:
            logger.warning(f"Password reset request for {email} failed: {e.message}")

        # Same answer either way to prevent email enumeration
        return {
            "type": "success",
            "message": "If the email exists, you will receive password reset instructions",
        }

    # ---------------------------
    # Lookups
    # ---------------------------
    async def get_user_by_id(self, user_id: str) -> Optional[CurrentUser]:
        try:
            response = self._admin_client().auth.admin.get_user_by_id(user_id)
        except AuthError as e:
            raise NetworkError("Could not fetch user", details=e.message)
        except httpx.HTTPError as e:
            logger.warning(f"User lookup for {user_id} failed: {e}")
            raise NetworkError("Could not fetch user", details=str(e))
        if response is None or response.user is None:
            return None
        return CurrentUser.from_supabase(response.user)

    async def get_role(self, user_id: str) -> Optional[str]:
        response = (
            self._admin_client()
            .table(settings.PROFILES_TABLE)
            .select("role")
            .eq("id", user_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return response.data[0].get("role")

    async def role_redirect(self, user_id: str) -> str:
        try:
            role = await self.get_role(user_id)
        except Exception as e:
            logger.error(f"Error checking user role for {user_id}: {e}")
            return DOCTOR_REGISTRATION_REDIRECT

        if role == RoleChoicesSchema.DOCTOR.value:
            return DOCTOR_REDIRECT
        return DOCTOR_REGISTRATION_REDIRECT


user_auth_service = UserAuthService()


def get_user_auth_service() -> UserAuthService:
    return user_auth_service
