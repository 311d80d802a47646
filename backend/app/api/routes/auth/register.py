from fastapi import APIRouter, Depends, status

from app.api.services.user_auth import UserAuthService, get_user_auth_service
from app.auth.schema import AuthRedirectSchema, EmailRequestSchema, SignupRequestSchema
from app.core.logging import get_logger

logger = get_logger()

router = APIRouter()


@router.post(
    "/signup", response_model=AuthRedirectSchema, status_code=status.HTTP_201_CREATED
)
async def signup(
    user_data: SignupRequestSchema,
    auth_service: UserAuthService = Depends(get_user_auth_service),
):
    """Create the account and send the user to the email confirmation page"""
    result = await auth_service.sign_up(user_data)
    logger.info(f"New user {user_data.email} registered, awaiting email confirmation")
    return result


@router.post("/resend", status_code=status.HTTP_200_OK)
async def resend_confirmation(
    request: EmailRequestSchema,
    auth_service: UserAuthService = Depends(get_user_auth_service),
):
    """Resend the sign-up confirmation email; rate limits come back as ``type: info``"""
    return await auth_service.resend_confirmation(request.email)
