"""
Turns the accumulated form state into the multipart submission.

The JSON ``data`` part carries every section except binaries; files travel
as named parts (``identityProof``, ``medicalLicense``, ``profileImage``,
``additionalDocument{N}``).
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple
import copy
import json

from app.core.config import settings
from app.core.exceptions import NetworkError, ValidationFailed
from app.core.logging import get_logger
from app.core.services.geocoding import GeocodingService, build_search_query
from app.doctor_profile.schema import DocumentFile

logger = get_logger()

MultipartFile = Tuple[str, Tuple[str, bytes, str]]


class SubmissionBlocked(ValidationFailed):
    """The payload cannot be built yet; nothing is sent."""

    error = "City Required"


@dataclass
class Notice:
    title: str
    message: str


@dataclass
class SubmissionPayload:
    data: Dict[str, Any]
    identity_proof: DocumentFile
    medical_license: DocumentFile
    profile_image: Optional[DocumentFile] = None
    additional_documents: List[DocumentFile] = field(default_factory=list)
    notices: List[Notice] = field(default_factory=list)

    def multipart_data(self) -> Dict[str, str]:
        return {"data": json.dumps(self.data)}

    def multipart_files(self) -> List[MultipartFile]:
        def part(name: str, doc: DocumentFile) -> MultipartFile:
            return (name, (doc.filename, doc.content, doc.content_type))

        files = [
            part("identityProof", self.identity_proof),
            part("medicalLicense", self.medical_license),
        ]
        if self.profile_image is not None:
            files.append(part("profileImage", self.profile_image))
        for index, doc in enumerate(self.additional_documents):
            files.append(part(f"additionalDocument{index}", doc))
        return files


def default_location() -> Dict[str, float]:
    return {"lat": settings.DEFAULT_LOCATION_LAT, "lng": settings.DEFAULT_LOCATION_LNG}


def _has_coordinates(location: Any) -> bool:
    return (
        isinstance(location, Mapping)
        and isinstance(location.get("lat"), (int, float))
        and isinstance(location.get("lng"), (int, float))
    )


async def resolve_location(
    address: Mapping[str, Any], geocoder: GeocodingService
) -> Tuple[Dict[str, float], List[Notice]]:
    """
    Coordinates for the practice address.

    Uses the map location when set, otherwise geocodes the text fields and
    falls back to the default location. Raises ``SubmissionBlocked`` when
    there is no city to search for.
    """
    location = address.get("location")
    if _has_coordinates(location):
        return {"lat": float(location["lat"]), "lng": float(location["lng"])}, []

    query = build_search_query(address)
    if query is None:
        raise SubmissionBlocked(
            [
                {
                    "path": "practiceDetails.address.city",
                    "message": "Please enter at least the city to locate your practice",
                }
            ]
        )

    try:
        result = await geocoder.forward(query)
    except NetworkError as e:
        logger.warning(f"Geocoding failed during submission: {e.details}")
        return default_location(), [
            Notice(
                "Geocoding Error",
                "Could not connect to location service. Using default location.",
            )
        ]

    if result is None:
        return default_location(), [
            Notice(
                "Location Not Found",
                "Could not find exact coordinates. Using default location.",
            )
        ]

    return {"lat": result.lat, "lng": result.lng}, []


async def assemble_payload(
    state: Mapping[str, Any], geocoder: GeocodingService
) -> SubmissionPayload:
    personal = dict(state.get("personalInfo") or {})
    professional = copy.deepcopy(dict(state.get("professionalInfo") or {}))
    practice = copy.deepcopy(dict(state.get("practiceDetails") or {}))
    verification = state.get("verificationDocuments") or {}

    address = dict(practice.get("address") or {})
    location, notices = await resolve_location(address, geocoder)
    address["location"] = location
    practice["address"] = address

    profile_image = personal.pop("profileImage", None)
    if not isinstance(profile_image, DocumentFile):
        profile_image = None

    additional = [
        doc
        for doc in verification.get("additionalDocuments") or []
        if isinstance(doc, DocumentFile)
    ]

    data = {
        "personalInfo": personal,
        "professionalInfo": professional,
        "practiceDetails": practice,
        "verificationDocuments": {"termsAgreed": True},
    }
    return SubmissionPayload(
        data=data,
        identity_proof=verification["identityProof"],
        medical_license=verification["medicalLicense"],
        profile_image=profile_image,
        additional_documents=additional,
        notices=notices,
    )
