from dataclasses import dataclass
from typing import Tuple, Type

from pydantic import BaseModel

from app.doctor_profile.schema import (
    PersonalInfo,
    PracticeDetails,
    ProfessionalInfo,
    VerificationDocuments,
)


@dataclass(frozen=True)
class FormStep:
    title: str
    description: str
    section: str
    schema: Type[BaseModel]
    fields: Tuple[str, ...]


FORM_STEPS: Tuple[FormStep, ...] = (
    FormStep(
        title="Personal Information",
        description="Tell us about yourself",
        section="personalInfo",
        schema=PersonalInfo,
        fields=("phone", "gender", "dateOfBirth", "bio", "profileImage"),
    ),
    FormStep(
        title="Professional Information",
        description="Your qualifications and specialties",
        section="professionalInfo",
        schema=ProfessionalInfo,
        fields=(
            "specialization",
            "licenseNumber",
            "experience",
            "qualifications",
            "languages",
        ),
    ),
    FormStep(
        title="Practice Details",
        description="Where you practice medicine",
        section="practiceDetails",
        schema=PracticeDetails,
        fields=("practiceName", "address", "consultationFee", "availableHours"),
    ),
    FormStep(
        title="Verification Documents",
        description="Upload your credentials for verification",
        section="verificationDocuments",
        schema=VerificationDocuments,
        fields=(
            "identityProof",
            "medicalLicense",
            "additionalDocuments",
            "termsAgreed",
        ),
    ),
)

ADDRESS_TEXT_FIELDS = ("streetAddress", "city", "state", "postalCode", "country")
