"""
Validation schemas for the doctor onboarding form.

Two families live here:

* the per-step client schemas (``PersonalInfo``, ``ProfessionalInfo``,
  ``PracticeDetails``, ``VerificationDocuments``) with user-facing messages,
  combined into ``DoctorProfileForm``;
* the server master schema ``DoctorProfileSubmission`` used by
  ``POST /api/doctor-profile`` to re-validate the whole payload.

Field names are camelCase so error paths match the JSON the client sends.
"""
from typing import Annotated, Any, Callable, List, Literal, Optional

from pydantic import BaseModel, Field, Strict, StrictBool
from pydantic.functional_validators import AfterValidator
from pydantic_core import PydanticCustomError

ACCEPTED_DOCUMENT_TYPES = ("application/pdf", "image/jpeg", "image/png")


class DocumentFile(BaseModel):
    """A binary upload held in memory (form state or multipart part)."""

    filename: str
    content_type: str = "application/octet-stream"
    content: bytes = b""

    @property
    def extension(self) -> str:
        return self.filename.split(".")[-1]

    @property
    def size(self) -> int:
        return len(self.content)

    def __repr__(self) -> str:
        return f"DocumentFile({self.filename!r}, {self.content_type!r}, {self.size} bytes)"


# ---------------------------
# Reusable constraints
# ---------------------------
def text_rule(
    min_length: Optional[int] = None,
    max_length: Optional[int] = None,
    too_short: str = "Value is too short",
    too_long: str = "Value is too long",
) -> AfterValidator:
    def check(v: str) -> str:
        if min_length is not None and len(v) < min_length:
            raise PydanticCustomError("too_short", too_short)
        if max_length is not None and len(v) > max_length:
            raise PydanticCustomError("too_long", too_long)
        return v

    return AfterValidator(check)


def minimum_rule(minimum: float, message: str) -> AfterValidator:
    def check(v: float) -> float:
        if v < minimum:
            raise PydanticCustomError("too_small", message)
        return v

    return AfterValidator(check)


def non_empty_list(message: str) -> AfterValidator:
    def check(v: list) -> list:
        if not v:
            raise PydanticCustomError("too_short", message)
        return v

    return AfterValidator(check)


def required_document(message: str) -> Callable[[Optional[DocumentFile]], DocumentFile]:
    def check(v: Optional[DocumentFile]) -> DocumentFile:
        if v is None:
            raise PydanticCustomError("missing_document", message)
        if v.content_type not in ACCEPTED_DOCUMENT_TYPES:
            raise PydanticCustomError(
                "document_type", "File must be PDF, JPG, or PNG"
            )
        return v

    return check


def must_be_true(v: bool) -> bool:
    if v is not True:
        raise PydanticCustomError(
            "terms_not_agreed", "You must agree to the terms and conditions"
        )
    return v


Gender = Literal["male", "female", "other"]
Bio = Annotated[str, text_rule(max_length=500, too_long="Bio must be less than 500 characters")]
TermsAgreed = Annotated[StrictBool, AfterValidator(must_be_true)]
# JSON numbers only; numeric strings are rejected rather than coerced
Number = Annotated[float, Strict()]
IdentityProof = Annotated[
    Optional[DocumentFile],
    AfterValidator(required_document("Identity proof document is required")),
]
MedicalLicense = Annotated[
    Optional[DocumentFile],
    AfterValidator(required_document("Medical license document is required")),
]


class Location(BaseModel):
    lat: float
    lng: float


class TimeSlot(BaseModel):
    start: str
    end: str


class AvailableDay(BaseModel):
    day: str
    slots: List[TimeSlot]


# ---------------------------
# Step schemas (client side)
# ---------------------------
class PersonalInfo(BaseModel):
    phone: Annotated[
        str,
        text_rule(
            4,
            15,
            too_short="Phone number must be at least 4 digits",
            too_long="Phone number cannot exceed 15 digits",
        ),
    ]
    gender: Gender
    dateOfBirth: Annotated[str, text_rule(1, too_short="Date of birth is required")]
    bio: Bio
    profileImage: Optional[Any] = None


class Qualification(BaseModel):
    degree: Annotated[str, text_rule(2, too_short="Degree is required")]
    institution: Annotated[str, text_rule(2, too_short="Institution is required")]
    year: Annotated[int, minimum_rule(1950, "Year must be after 1950")]


class ProfessionalInfo(BaseModel):
    specialization: Annotated[str, text_rule(2, too_short="Specialization is required")]
    licenseNumber: Annotated[str, text_rule(5, too_short="License number is required")]
    experience: Annotated[float, minimum_rule(0, "Experience must be a positive number")]
    qualifications: Annotated[
        List[Qualification],
        non_empty_list("At least one qualification is required"),
    ]
    languages: Annotated[List[str], non_empty_list("At least one language is required")]


class Address(BaseModel):
    streetAddress: Annotated[str, text_rule(5, too_short="Street address is required")]
    city: Annotated[str, text_rule(2, too_short="City is required")]
    state: Annotated[str, text_rule(2, too_short="State is required")]
    postalCode: Annotated[str, text_rule(1, too_short="Postal code is required")]
    country: Annotated[str, text_rule(2, too_short="Country is required")]
    location: Optional[Location] = None


class PracticeDetails(BaseModel):
    practiceName: Annotated[str, text_rule(2, too_short="Practice name is required")]
    address: Address
    consultationFee: Annotated[
        float, minimum_rule(0, "Consultation fee must be a positive number")
    ]
    availableHours: Optional[List[AvailableDay]] = None


class VerificationDocuments(BaseModel):
    identityProof: IdentityProof = Field(default=None, validate_default=True)
    medicalLicense: MedicalLicense = Field(default=None, validate_default=True)
    additionalDocuments: List[DocumentFile] = Field(default_factory=list)
    termsAgreed: TermsAgreed = Field(default=False, validate_default=True)


class DoctorProfileForm(BaseModel):
    personalInfo: PersonalInfo
    professionalInfo: ProfessionalInfo
    practiceDetails: PracticeDetails
    verificationDocuments: VerificationDocuments


# ---------------------------
# Master schema (server side)
# ---------------------------
class PersonalInfoSubmission(BaseModel):
    phone: Annotated[str, text_rule(4, too_short="Phone number must be at least 4 digits")]
    gender: Gender
    dateOfBirth: str
    bio: Bio
    profileImage: Optional[Any] = None


class QualificationSubmission(BaseModel):
    degree: str
    institution: str
    year: Number


class ProfessionalInfoSubmission(BaseModel):
    specialization: str
    licenseNumber: str
    experience: Number
    qualifications: List[QualificationSubmission]
    languages: List[str]


class LocationSubmission(BaseModel):
    lat: Number
    lng: Number


class AddressSubmission(BaseModel):
    streetAddress: str
    city: str
    state: str
    postalCode: str
    country: str
    location: Optional[LocationSubmission] = None


class PracticeDetailsSubmission(BaseModel):
    practiceName: str
    address: AddressSubmission
    consultationFee: Number
    availableHours: Optional[List[AvailableDay]] = None


class DoctorProfileSubmission(BaseModel):
    personalInfo: PersonalInfoSubmission
    professionalInfo: ProfessionalInfoSubmission
    practiceDetails: PracticeDetailsSubmission
    verificationDocuments: VerificationDocuments
