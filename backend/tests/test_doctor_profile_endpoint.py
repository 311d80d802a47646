"""
Tests for POST /api/doctor-profile
"""
import json

import pytest

from app.core.config import settings
from conftest import TEST_USER_ID, multipart, pdf_part

ENDPOINT = "/api/doctor-profile"


def required_parts():
    return [
        pdf_part("identityProof", "passport.pdf"),
        pdf_part("medicalLicense", "license.png", "image/png"),
    ]


def test_happy_path_returns_urls_and_upserts_profile(client, fake_supabase, profile_data):
    """Valid data with two PDFs returns 200 and the profile row points at the uploads"""
    response = client.post(ENDPOINT, **multipart(profile_data, required_parts()))

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["message"] == "Profile updated successfully"
    files = body["files"]
    assert files["identityProof"].startswith("https://storage.test/documents/identity_proof/")
    assert files["medicalLicense"].startswith("https://storage.test/documents/Medical_License/")
    assert files["identityProof"].endswith(".pdf")
    assert files["medicalLicense"].endswith(".png")
    assert files["additionalDocuments"] == []

    profiles = fake_supabase.get_table("profiles")
    assert len(profiles.upsert_calls) == 1
    record = profiles.upsert_calls[0]
    assert record["id"] == TEST_USER_ID
    assert record["full_name"] == "Jane Doe"
    assert record["phone_number"] == "21655123456"
    assert record["years_of_experience"] == 12
    assert record["identity_proof"] == files["identityProof"]
    assert record["medical_license"] == files["medicalLicense"]
    assert record["additional_documents"] == "[]"
    assert record["profile_picture"] is None
    assert record["lat"] == 36.8
    assert record["long"] == 10.18
    assert json.loads(record["address"])["city"] == "Tunis"


def test_child_rows_are_written(client, fake_supabase, profile_data):
    """Qualifications and languages are upserted keyed by the profile id"""
    client.post(ENDPOINT, **multipart(profile_data, required_parts()))

    qualifications = fake_supabase.get_table("qualifications").rows
    assert {row["Degree"] for row in qualifications} == {"MD", "Cardiology Residency"}
    assert all(row["profile_id"] == TEST_USER_ID for row in qualifications)

    languages = fake_supabase.get_table("languages").rows
    assert [row["language"] for row in languages] == ["Arabic", "French", "English"]


def test_uploads_use_documents_bucket_without_overwrite(client, fake_supabase, profile_data):
    """Files go to the documents bucket with cache-control 3600 and upsert disabled"""
    client.post(ENDPOINT, **multipart(profile_data, required_parts()))

    upload = fake_supabase.storage.uploads[0]
    assert upload["bucket"] == "documents"
    assert upload["file_options"]["content-type"] == "application/pdf"
    assert upload["file_options"]["cache-control"] == "3600"
    assert upload["file_options"]["upsert"] == "false"


def test_profile_image_part_marks_picture_uploaded(client, fake_supabase, profile_data):
    parts = required_parts() + [pdf_part("profileImage", "me.jpg", "image/jpeg")]
    response = client.post(ENDPOINT, **multipart(profile_data, parts))

    assert response.status_code == 200
    assert fake_supabase.get_table("profiles").upsert_calls[0]["profile_picture"] == "uploaded"
    # The profile image itself is not stored
    assert len(fake_supabase.storage.uploads) == 2


def test_unauthenticated_request_is_rejected(anonymous_client, fake_supabase, profile_data):
    response = anonymous_client.post(ENDPOINT, **multipart(profile_data, required_parts()))

    assert response.status_code == 401
    assert response.json()["error"] == "Unauthorized"
    assert fake_supabase.storage.uploads == []


def test_missing_medical_license_fails_validation(client, fake_supabase, profile_data):
    response = client.post(
        ENDPOINT, **multipart(profile_data, [pdf_part("identityProof")])
    )

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Validation failed"
    assert {
        "path": "verificationDocuments.medicalLicense",
        "message": "Medical license document is required",
    } in body["details"]
    assert fake_supabase.storage.uploads == []


@pytest.mark.parametrize("content_type", ["application/pdf", "image/jpeg", "image/png"])
def test_accepted_document_types(client, profile_data, content_type):
    parts = [
        pdf_part("identityProof", "id.bin", content_type),
        pdf_part("medicalLicense", "license.bin", content_type),
    ]
    response = client.post(ENDPOINT, **multipart(profile_data, parts))

    assert response.status_code == 200, response.text


def test_other_document_type_is_rejected(client, fake_supabase, profile_data):
    parts = [
        pdf_part("identityProof", "id.txt", "text/plain"),
        pdf_part("medicalLicense"),
    ]
    response = client.post(ENDPOINT, **multipart(profile_data, parts))

    assert response.status_code == 400
    assert {
        "path": "verificationDocuments.identityProof",
        "message": "File must be PDF, JPG, or PNG",
    } in response.json()["details"]
    assert fake_supabase.storage.uploads == []


def test_bio_length_boundary(client, profile_data):
    """500 characters pass, 501 fail with an error on personalInfo.bio"""
    profile_data["personalInfo"]["bio"] = "a" * 500
    assert client.post(ENDPOINT, **multipart(profile_data, required_parts())).status_code == 200

    profile_data["personalInfo"]["bio"] = "a" * 501
    response = client.post(ENDPOINT, **multipart(profile_data, required_parts()))
    assert response.status_code == 400
    paths = [item["path"] for item in response.json()["details"]]
    assert paths == ["personalInfo.bio"]


def test_terms_must_be_agreed(client, profile_data):
    profile_data["verificationDocuments"]["termsAgreed"] = False
    response = client.post(ENDPOINT, **multipart(profile_data, required_parts()))

    assert response.status_code == 400
    assert response.json()["details"][0]["path"] == "verificationDocuments.termsAgreed"


@pytest.mark.parametrize(
    "section, field, value",
    [
        ("verificationDocuments", "termsAgreed", "yes"),
        ("professionalInfo", "experience", "12"),
        ("practiceDetails", "consultationFee", "80"),
    ],
)
def test_string_values_are_not_coerced(client, fake_supabase, profile_data, section, field, value):
    profile_data[section][field] = value
    response = client.post(ENDPOINT, **multipart(profile_data, required_parts()))

    assert response.status_code == 400
    paths = [item["path"] for item in response.json()["details"]]
    assert f"{section}.{field}" in paths
    assert fake_supabase.storage.uploads == []


def test_string_qualification_year_is_rejected(client, profile_data):
    profile_data["professionalInfo"]["qualifications"][0]["year"] = "2010"
    response = client.post(ENDPOINT, **multipart(profile_data, required_parts()))

    assert response.status_code == 400
    paths = [item["path"] for item in response.json()["details"]]
    assert "professionalInfo.qualifications.0.year" in paths


@pytest.mark.parametrize("verification", ["yes", [True]])
def test_non_object_verification_section(client, fake_supabase, profile_data, verification):
    profile_data["verificationDocuments"] = verification
    response = client.post(ENDPOINT, **multipart(profile_data, required_parts()))

    assert response.status_code == 400
    assert response.json()["details"] == [
        {"path": "verificationDocuments", "message": "Expected a JSON object"}
    ]
    assert fake_supabase.storage.uploads == []


def test_oversized_document_is_rejected(client, fake_supabase, profile_data, monkeypatch):
    monkeypatch.setattr(settings, "MAX_FILE_SIZE", 8)
    parts = [
        ("identityProof", ("passport.pdf", b"%PDF-1.4 well over eight bytes", "application/pdf")),
        pdf_part("medicalLicense"),
    ]
    response = client.post(ENDPOINT, **multipart(profile_data, parts))

    assert response.status_code == 400
    assert response.json()["details"][0]["path"] == "identityProof"
    assert fake_supabase.storage.uploads == []


def test_invalid_json_part(client):
    response = client.post(
        ENDPOINT, data={"data": "{not json"}, files=required_parts()
    )

    assert response.status_code == 400
    assert response.json()["details"][0]["path"] == "data"


def test_identity_upload_failure_aborts(client, fake_supabase, profile_data):
    """A failed required upload returns 500 and nothing is written to the database"""
    fake_supabase.storage.fail_when = lambda path: path.startswith("identity_proof/")

    response = client.post(ENDPOINT, **multipart(profile_data, required_parts()))

    assert response.status_code == 500
    assert response.json()["error"] == "Failed to upload identity proof"
    assert fake_supabase.get_table("profiles").upsert_calls == []


def test_medical_license_upload_failure_aborts(client, fake_supabase, profile_data):
    fake_supabase.storage.fail_when = lambda path: path.startswith("Medical_License/")

    response = client.post(ENDPOINT, **multipart(profile_data, required_parts()))

    assert response.status_code == 500
    assert response.json()["error"] == "Failed to upload medical license"
    # The identity proof is already stored and stays there
    assert len(fake_supabase.storage.uploads) == 1


def test_additional_document_failure_is_skipped(client, fake_supabase, profile_data):
    """One of two additional documents fails; the request still succeeds with one URL"""
    attempts = []

    def fail_first_additional(path):
        if path.startswith("additional_documents/"):
            attempts.append(path)
            return len(attempts) == 1
        return False

    fake_supabase.storage.fail_when = fail_first_additional
    parts = required_parts() + [
        pdf_part("additionalDocument0", "board.pdf"),
        pdf_part("additionalDocument1", "award.pdf"),
    ]

    response = client.post(ENDPOINT, **multipart(profile_data, parts))

    assert response.status_code == 200
    additional = response.json()["files"]["additionalDocuments"]
    assert len(additional) == 1
    record = fake_supabase.get_table("profiles").upsert_calls[0]
    assert json.loads(record["additional_documents"]) == additional


def test_additional_documents_stop_at_first_gap(client, fake_supabase, profile_data):
    parts = required_parts() + [
        pdf_part("additionalDocument0", "a.pdf"),
        pdf_part("additionalDocument2", "c.pdf"),
    ]

    response = client.post(ENDPOINT, **multipart(profile_data, parts))

    assert len(response.json()["files"]["additionalDocuments"]) == 1


def test_table_check_failure(client, fake_supabase, profile_data):
    fake_supabase.get_table("profiles").fail("select")

    response = client.post(ENDPOINT, **multipart(profile_data, required_parts()))

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Database table error"
    assert body["code"] == "42P01"
    # Uploaded objects are not rolled back
    assert len(fake_supabase.storage.uploads) == 2


def test_profile_upsert_failure(client, fake_supabase, profile_data):
    fake_supabase.get_table("profiles").fail("upsert", "permission denied", "42501")

    response = client.post(ENDPOINT, **multipart(profile_data, required_parts()))

    assert response.status_code == 500
    assert response.json()["error"] == "Failed to update profile"
    assert fake_supabase.get_table("qualifications").upsert_calls == []


def test_qualification_failure_is_not_fatal(client, fake_supabase, profile_data):
    """The qualifications batch is rejected but the request still reports success"""
    fake_supabase.get_table("qualifications").fail("upsert")

    response = client.post(ENDPOINT, **multipart(profile_data, required_parts()))

    assert response.status_code == 200
    assert fake_supabase.get_table("qualifications").rows == []
    assert len(fake_supabase.get_table("languages").rows) == 3


def test_resubmission_overwrites_profile_and_keeps_old_files(client, fake_supabase, profile_data):
    """Two identical submissions upsert the same id twice and store four distinct objects"""
    first = client.post(ENDPOINT, **multipart(profile_data, required_parts()))
    profile_data["personalInfo"]["phone"] = "21699000000"
    second = client.post(ENDPOINT, **multipart(profile_data, required_parts()))

    assert first.status_code == second.status_code == 200
    profiles = fake_supabase.get_table("profiles")
    assert [call["id"] for call in profiles.upsert_calls] == [TEST_USER_ID, TEST_USER_ID]
    assert len(profiles.rows) == 1
    assert profiles.rows[0]["phone_number"] == "21699000000"
    assert profiles.rows[0]["identity_proof"] == second.json()["files"]["identityProof"]

    paths = fake_supabase.storage.paths
    assert len(paths) == 4
    assert len(set(paths)) == 4
