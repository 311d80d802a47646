from fastapi import APIRouter, Depends, status

from app.api.services.user_auth import UserAuthService, get_user_auth_service
from app.auth.schema import EmailRequestSchema

router = APIRouter()


@router.post("/password-reset", status_code=status.HTTP_200_OK)
async def request_password_reset(
    request: EmailRequestSchema,
    auth_service: UserAuthService = Depends(get_user_auth_service),
):
    """Send a reset link; the answer does not reveal whether the email exists"""
    return await auth_service.request_password_reset(request.email)
