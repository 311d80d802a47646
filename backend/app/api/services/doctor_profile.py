import json
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from supabase import Client

from app.auth.schema import CurrentUser
from app.core.config import settings
from app.core.exceptions import DatabaseError, UploadFailed, ValidationFailed
from app.core.logging import get_logger
from app.core.services.storage import DocumentStorageService, build_document_path
from app.doctor_profile.schema import DocumentFile, DoctorProfileSubmission
from app.doctor_profile.validation import errors_to_details

logger = get_logger()

IDENTITY_PROOF_FOLDER = "identity_proof"
MEDICAL_LICENSE_FOLDER = "Medical_License"
ADDITIONAL_DOCUMENTS_FOLDER = "additional_documents"


class DoctorProfileService:
    """
    Re-validates, stores and persists one doctor onboarding submission.

    Steps run strictly in order: validate, upload the two required
    documents, upload additional documents one at a time, check the
    profiles table, upsert the profile, then best-effort child rows.
    """

    def __init__(
        self, supabase: Client, storage: Optional[DocumentStorageService] = None
    ) -> None:
        self.supabase = supabase
        self.storage = storage or DocumentStorageService(supabase)

    # ---------------------------
    # Validation
    # ---------------------------
    def validate_submission(
        self,
        data: Any,
        identity_proof: Optional[DocumentFile],
        medical_license: Optional[DocumentFile],
        additional_documents: List[DocumentFile],
    ) -> DoctorProfileSubmission:
        if not isinstance(data, dict):
            raise ValidationFailed(
                [{"path": "data", "message": "Expected a JSON object"}]
            )

        verification = data.get("verificationDocuments") or {}
        if not isinstance(verification, dict):
            raise ValidationFailed(
                [{"path": "verificationDocuments", "message": "Expected a JSON object"}]
            )

        combined = {
            **data,
            "verificationDocuments": {
                **verification,
                "identityProof": identity_proof,
                "medicalLicense": medical_license,
                "additionalDocuments": additional_documents,
            },
        }
        try:
            return DoctorProfileSubmission.model_validate(combined)
        except ValidationError as e:
            details = errors_to_details(e)
            logger.warning(f"Doctor profile validation failed: {details}")
            raise ValidationFailed(details)

    # ---------------------------
    # Uploads
    # ---------------------------
    async def _upload(self, doc: DocumentFile, folder: str) -> str:
        path = build_document_path(folder, doc.filename)
        logger.info(
            f"Uploading {doc.filename} ({doc.content_type}, {doc.size} bytes) to {path}"
        )
        return await self.storage.upload(doc.content, path, doc.content_type)

    async def upload_required_document(
        self, doc: DocumentFile, folder: str, label: str
    ) -> str:
        try:
            url = await self._upload(doc, folder)
        except UploadFailed as e:
            raise UploadFailed(f"Failed to upload {label}", details=e.details)
        logger.info(f"{label.capitalize()} uploaded successfully: {url}")
        return url

    async def upload_additional_documents(self, docs: List[DocumentFile]) -> List[str]:
        urls = []
        for doc in docs:
            try:
                urls.append(await self._upload(doc, ADDITIONAL_DOCUMENTS_FOLDER))
            except UploadFailed as e:
                # Optional documents never abort the submission
                logger.error(f"Error uploading additional document {doc.filename}: {e.details}")
        return urls

    # ---------------------------
    # Persistence
    # ---------------------------
    def ensure_profiles_table(self) -> None:
        try:
            self.supabase.table(settings.PROFILES_TABLE).select("*").limit(1).execute()
        except Exception as e:
            logger.error(f"Error checking profiles table: {e}")
            raise DatabaseError(
                "Database table error",
                details=getattr(e, "message", None) or str(e),
                code=getattr(e, "code", None),
            )

    @staticmethod
    def build_profile_record(
        user: CurrentUser,
        submission: DoctorProfileSubmission,
        files: Dict[str, Any],
        has_profile_image: bool,
    ) -> Dict[str, Any]:
        personal = submission.personalInfo
        professional = submission.professionalInfo
        address = submission.practiceDetails.address
        location = address.location
        return {
            "id": user.id,
            "full_name": user.full_name,
            "phone_number": personal.phone,
            "gender": personal.gender,
            "date_of_birth": personal.dateOfBirth,
            "bio": personal.bio,
            "specialization": professional.specialization,
            "license_number": professional.licenseNumber,
            "years_of_experience": professional.experience,
            "address": json.dumps(address.model_dump(exclude_none=True)),
            "profile_picture": "uploaded" if has_profile_image else None,
            "identity_proof": files["identityProof"],
            "medical_license": files["medicalLicense"],
            "additional_documents": json.dumps(files["additionalDocuments"]),
            "lat": location.lat if location else None,
            "long": location.lng if location else None,
        }

    def upsert_profile(self, record: Dict[str, Any]) -> None:
        try:
            self.supabase.table(settings.PROFILES_TABLE).upsert(record).execute()
        except Exception as e:
            logger.error(f"Error updating profile {record['id']}: {e}")
            raise DatabaseError(
                "Failed to update profile",
                details=getattr(e, "message", None) or str(e),
                code=getattr(e, "code", None),
            )

    def _upsert_best_effort(self, table: str, rows: List[Dict[str, Any]]) -> bool:
        if not rows:
            return True
        try:
            self.supabase.table(table).upsert(rows).execute()
            return True
        except Exception as e:
            logger.error(f"Error inserting {table}: {e}")
            return False

    def upsert_qualifications(self, user_id: str, submission: DoctorProfileSubmission) -> bool:
        rows = [
            {
                "profile_id": user_id,
                "Degree": q.degree,
                "Institution": q.institution,
                "Year": q.year,
            }
            for q in submission.professionalInfo.qualifications
        ]
        return self._upsert_best_effort(settings.QUALIFICATIONS_TABLE, rows)

    def upsert_languages(self, user_id: str, submission: DoctorProfileSubmission) -> bool:
        rows = [
            {"profile_id": user_id, "language": language}
            for language in submission.professionalInfo.languages
        ]
        return self._upsert_best_effort(settings.LANGUAGES_TABLE, rows)

    # ---------------------------
    # Orchestration
    # ---------------------------
    async def submit(
        self,
        user: CurrentUser,
        data: Any,
        identity_proof: Optional[DocumentFile],
        medical_license: Optional[DocumentFile],
        additional_documents: List[DocumentFile],
        profile_image: Optional[DocumentFile] = None,
    ) -> Dict[str, Any]:
        logger.info(f"Starting doctor profile submission for user {user.id}")

        submission = self.validate_submission(
            data, identity_proof, medical_license, additional_documents
        )
        docs = submission.verificationDocuments

        identity_url = await self.upload_required_document(
            docs.identityProof, IDENTITY_PROOF_FOLDER, "identity proof"
        )
        license_url = await self.upload_required_document(
            docs.medicalLicense, MEDICAL_LICENSE_FOLDER, "medical license"
        )
        additional_urls = await self.upload_additional_documents(docs.additionalDocuments)

        files = {
            "identityProof": identity_url,
            "medicalLicense": license_url,
            "additionalDocuments": additional_urls,
        }

        # Uploaded objects are not rolled back if anything below fails
        self.ensure_profiles_table()
        has_profile_image = profile_image is not None or bool(
            submission.personalInfo.profileImage
        )
        self.upsert_profile(
            self.build_profile_record(user, submission, files, has_profile_image)
        )
        self.upsert_qualifications(user.id, submission)
        self.upsert_languages(user.id, submission)

        logger.info(f"Profile updated successfully for user {user.id}")
        return {"message": "Profile updated successfully", "files": files}
