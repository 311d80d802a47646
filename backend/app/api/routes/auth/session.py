from fastapi import APIRouter, Depends

from app.api.services.user_auth import UserAuthService, get_user_auth_service
from app.auth.schema import CurrentUser
from app.core.auth import get_current_user

router = APIRouter()


@router.get("/me")
async def read_current_user(current_user: CurrentUser = Depends(get_current_user)):
    return {
        **current_user.model_dump(),
        "full_name": current_user.full_name,
        "is_email_confirmed": current_user.is_email_confirmed,
    }


@router.get("/redirect")
async def role_redirect(
    current_user: CurrentUser = Depends(get_current_user),
    auth_service: UserAuthService = Depends(get_user_auth_service),
):
    """Doctors go to their dashboard, everyone else to doctor registration"""
    return {"redirect": await auth_service.role_redirect(current_user.id)}
