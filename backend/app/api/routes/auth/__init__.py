from fastapi import APIRouter
from .login import router as login_router
from .register import router as register_router
from .password_reset import router as password_reset_router
from .refresh import router as refresh_router
from .session import router as session_router
from .email_confirmation import router as email_confirmation_router

router = APIRouter()

# Include routers
router.include_router(login_router)
router.include_router(register_router)
router.include_router(password_reset_router)
router.include_router(refresh_router)
router.include_router(session_router)
router.include_router(email_confirmation_router)
