import json
from typing import Any, Optional

from fastapi import APIRouter, Depends, Request, status
from starlette.datastructures import UploadFile
from supabase import Client

from app.api.services.doctor_profile import DoctorProfileService
from app.auth.schema import CurrentUser
from app.core.auth import get_current_user
from app.core.config import settings
from app.core.database import get_supabase
from app.core.exceptions import OnboardingError, ValidationFailed
from app.core.logging import get_logger
from app.doctor_profile.schema import DocumentFile

logger = get_logger()
router = APIRouter()


def get_doctor_profile_service(
    supabase_client: Client = Depends(get_supabase),
) -> DoctorProfileService:
    return DoctorProfileService(supabase_client)


async def read_document(form: Any, name: str) -> Optional[DocumentFile]:
    """Multipart part to ``DocumentFile``; plain text parts and absent parts are None"""
    part = form.get(name)
    if not isinstance(part, UploadFile):
        return None
    content = await part.read()
    if len(content) > settings.MAX_FILE_SIZE:
        limit_mb = settings.MAX_FILE_SIZE // (1024 * 1024)
        raise ValidationFailed(
            [{"path": name, "message": f"File must be smaller than {limit_mb}MB"}]
        )
    return DocumentFile(
        filename=part.filename or "upload",
        content_type=part.content_type or "application/octet-stream",
        content=content,
    )


def parse_data_part(raw: Any) -> Any:
    if not isinstance(raw, str):
        raise ValidationFailed([{"path": "data", "message": "Required"}])
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValidationFailed([{"path": "data", "message": f"Invalid JSON: {e.msg}"}])


@router.post("/doctor-profile", status_code=status.HTTP_200_OK)
async def submit_doctor_profile(
    request: Request,
    current_user: CurrentUser = Depends(get_current_user),
    service: DoctorProfileService = Depends(get_doctor_profile_service),
):
    """
    Create or replace the caller's doctor profile.

    Multipart body: ``data`` (JSON), ``identityProof``, ``medicalLicense``,
    optional ``profileImage`` and ``additionalDocument0..N``.
    """
    logger.info(f"Doctor profile submission received from {current_user.id}")
    try:
        form = await request.form()
        data = parse_data_part(form.get("data"))

        additional_documents = []
        index = 0
        while True:
            doc = await read_document(form, f"additionalDocument{index}")
            if doc is None:
                break
            additional_documents.append(doc)
            index += 1

        return await service.submit(
            current_user,
            data,
            identity_proof=await read_document(form, "identityProof"),
            medical_license=await read_document(form, "medicalLicense"),
            additional_documents=additional_documents,
            profile_image=await read_document(form, "profileImage"),
        )
    except OnboardingError:
        raise
    except Exception as e:
        logger.error(f"Error in doctor profile update: {e}")
        raise OnboardingError("Internal server error")
