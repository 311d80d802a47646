from fastapi import APIRouter
from .auth import router as auth_router
from .doctor_profile import router as doctor_profile_router
from .geocoding import router as geocoding_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["authentication"])
api_router.include_router(doctor_profile_router, tags=["doctor-profile"])
api_router.include_router(geocoding_router, prefix="/geocoding", tags=["geocoding"])
