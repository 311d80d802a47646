from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from app.core.config import settings
from app.core.exceptions import NetworkError
from app.core.logging import get_logger
from app.doctor_profile.payload import SubmissionPayload

logger = get_logger()


@dataclass
class SubmissionResult:
    ok: bool
    status_code: int
    message: Optional[str] = None
    error: Optional[str] = None
    details: List[Dict[str, str]] = field(default_factory=list)
    files: Dict[str, Any] = field(default_factory=dict)


class DoctorProfileClient:
    """Posts an assembled onboarding payload to ``/api/doctor-profile``"""

    def __init__(
        self,
        access_token: Optional[str] = None,
        endpoint: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.endpoint = endpoint or settings.DOCTOR_PROFILE_ENDPOINT
        self.access_token = access_token
        self.timeout = timeout or settings.SUBMISSION_TIMEOUT_SECONDS
        self._transport = transport

    async def submit(self, payload: SubmissionPayload) -> SubmissionResult:
        headers = {"Accept": "application/json"}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                resp = await client.post(
                    self.endpoint,
                    data=payload.multipart_data(),
                    files=payload.multipart_files(),
                    headers=headers,
                )
        except httpx.HTTPError as e:
            logger.error(f"Profile submission failed: {e}")
            raise NetworkError("Could not reach the server", details=str(e))

        try:
            body = resp.json()
        except ValueError:
            body = {}

        if resp.is_success:
            return SubmissionResult(
                ok=True,
                status_code=resp.status_code,
                message=body.get("message"),
                files=body.get("files") or {},
            )

        details = body.get("details")
        logger.warning(
            f"Profile submission rejected with {resp.status_code}: {body.get('error')}"
        )
        return SubmissionResult(
            ok=False,
            status_code=resp.status_code,
            error=body.get("error") or f"HTTP {resp.status_code}",
            details=details if isinstance(details, list) else [],
        )
