"""
Tests for the per-step onboarding schemas and the pure step validator
"""
import pytest

from app.core.exceptions import ValidationFailed
from app.doctor_profile.schema import (
    DocumentFile,
    PersonalInfo,
    PracticeDetails,
    ProfessionalInfo,
    VerificationDocuments,
)
from app.doctor_profile.steps import FORM_STEPS
from app.doctor_profile.validation import validate_step


def personal_info(**overrides):
    data = {
        "phone": "21655123456",
        "gender": "male",
        "dateOfBirth": "1980-01-01",
        "bio": "General practitioner.",
    }
    data.update(overrides)
    return data


def test_steps_are_ordered():
    assert [step.title for step in FORM_STEPS] == [
        "Personal Information",
        "Professional Information",
        "Practice Details",
        "Verification Documents",
    ]
    assert FORM_STEPS[0].schema is PersonalInfo


def test_valid_personal_info_returns_typed_value():
    result = validate_step(PersonalInfo, personal_info())

    assert result.is_valid
    assert result.value.gender == "male"
    assert result.errors == {}


def test_validation_does_not_mutate_input():
    data = personal_info(phone="12")
    snapshot = dict(data)

    validate_step(PersonalInfo, data, prefix="personalInfo")

    assert data == snapshot


def test_missing_field_is_keyed_by_path():
    data = personal_info()
    del data["phone"]

    result = validate_step(PersonalInfo, data, prefix="personalInfo")

    assert not result.is_valid
    assert "personalInfo.phone" in result.errors


@pytest.mark.parametrize(
    "phone, message",
    [
        ("123", "Phone number must be at least 4 digits"),
        ("1234567890123456", "Phone number cannot exceed 15 digits"),
    ],
)
def test_phone_length_messages(phone, message):
    result = validate_step(PersonalInfo, personal_info(phone=phone))

    assert result.errors == {"phone": message}


def test_bio_boundary():
    assert validate_step(PersonalInfo, personal_info(bio="x" * 500)).is_valid

    result = validate_step(PersonalInfo, personal_info(bio="x" * 501))
    assert result.errors == {"bio": "Bio must be less than 500 characters"}


def test_gender_must_be_in_enum():
    result = validate_step(PersonalInfo, personal_info(gender="unknown"))

    assert "gender" in result.errors


def test_empty_date_of_birth():
    result = validate_step(PersonalInfo, personal_info(dateOfBirth=""))

    assert result.errors == {"dateOfBirth": "Date of birth is required"}


def test_professional_info_nested_errors():
    result = validate_step(
        ProfessionalInfo,
        {
            "specialization": "Neurology",
            "licenseNumber": "LIC-00921",
            "experience": -1,
            "qualifications": [{"degree": "MD", "institution": "Sfax", "year": 1949}],
            "languages": [],
        },
        prefix="professionalInfo",
    )

    assert result.errors == {
        "professionalInfo.experience": "Experience must be a positive number",
        "professionalInfo.qualifications.0.year": "Year must be after 1950",
        "professionalInfo.languages": "At least one language is required",
    }


def test_practice_details_requires_address_fields():
    result = validate_step(
        PracticeDetails,
        {
            "practiceName": "City Clinic",
            "address": {
                "streetAddress": "12 Main Street",
                "city": "",
                "state": "Tunis",
                "postalCode": "1000",
                "country": "Tunisia",
            },
            "consultationFee": 50,
        },
    )

    assert result.errors == {"address.city": "City is required"}


@pytest.mark.parametrize("content_type", ["application/pdf", "image/jpeg", "image/png"])
def test_verification_accepts_document_types(content_type):
    doc = DocumentFile(filename="scan", content_type=content_type, content=b"1")

    result = validate_step(
        VerificationDocuments,
        {"identityProof": doc, "medicalLicense": doc, "termsAgreed": True},
    )

    assert result.is_valid


def test_verification_rejects_other_types_and_missing_terms():
    doc = DocumentFile(filename="scan.gif", content_type="image/gif", content=b"1")

    result = validate_step(VerificationDocuments, {"identityProof": doc})

    assert result.errors == {
        "identityProof": "File must be PDF, JPG, or PNG",
        "medicalLicense": "Medical license document is required",
        "termsAgreed": "You must agree to the terms and conditions",
    }


def test_document_file_helpers():
    doc = DocumentFile(filename="archive.tar.gz", content_type="application/gzip", content=b"abc")

    assert doc.extension == "gz"
    assert doc.size == 3


def test_validation_failed_keeps_first_message_per_path():
    error = ValidationFailed(
        [
            {"path": "personalInfo.phone", "message": "Phone number must be at least 4 digits"},
            {"path": "personalInfo.phone", "message": "Phone number is invalid"},
            {"path": "personalInfo.bio", "message": "Bio must be less than 500 characters"},
        ]
    )

    assert error.field_errors == {
        "personalInfo.phone": "Phone number must be at least 4 digits",
        "personalInfo.bio": "Bio must be less than 500 characters",
    }
