"""
Error taxonomy for the onboarding flow.

Every error carries the HTTP status it maps to and renders as
``{"error": ..., "details": ...}`` so the front end can show a banner
(and, for validation failures, the list of offending field paths).
"""
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.logging import get_logger

logger = get_logger()


def details_to_field_errors(details: List[Dict[str, str]]) -> Dict[str, str]:
    field_errors: Dict[str, str] = {}
    for item in details:
        # First message per field wins, as shown inline next to the input
        field_errors.setdefault(item["path"], item["message"])
    return field_errors


class OnboardingError(Exception):
    status_code: int = 500
    error: str = "Internal server error"

    def __init__(
        self,
        error: Optional[str] = None,
        details: Any = None,
        code: Optional[str] = None,
    ):
        self.error = error or self.error
        self.details = details
        self.code = code
        super().__init__(self.error)

    def to_response(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.error}
        if self.details is not None:
            body["details"] = self.details
        if self.code is not None:
            body["code"] = self.code
        return body


class ValidationFailed(OnboardingError):
    """Schema mismatch. ``details`` is a list of ``{path, message}``."""

    status_code = 400
    error = "Validation failed"

    def __init__(self, details: List[Dict[str, str]]):
        super().__init__(details=details)

    @property
    def field_errors(self) -> Dict[str, str]:
        return details_to_field_errors(self.details)


class Unauthorized(OnboardingError):
    status_code = 401
    error = "Unauthorized"


class AuthRequestFailed(OnboardingError):
    """Rejected by the auth provider (bad credentials, duplicate email, ...)."""

    status_code = 400
    error = "Authentication request failed"


class UploadFailed(OnboardingError):
    status_code = 500
    error = "Failed to upload file"


class DatabaseError(OnboardingError):
    status_code = 500
    error = "Database operation failed"


class NetworkError(OnboardingError):
    """Upstream lookup (geocoding, session refresh, submission) failed."""

    status_code = 502
    error = "Upstream service unavailable"


class FormLockedError(OnboardingError):
    """Raised when the form is edited while a submission is in flight."""

    status_code = 409
    error = "Form is being submitted"


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(OnboardingError)
    async def onboarding_error_handler(
        request: Request, exc: OnboardingError
    ) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                f"{request.method} {request.url.path} failed: {exc.error} ({exc.details})"
            )
        else:
            logger.warning(
                f"{request.method} {request.url.path} rejected: {exc.error}"
            )
        return JSONResponse(status_code=exc.status_code, content=exc.to_response())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        details = [
            {
                "path": ".".join(str(part) for part in err["loc"] if part != "body"),
                "message": str(err["msg"]).removeprefix("Value error, "),
            }
            for err in exc.errors()
        ]
        logger.warning(f"{request.method} {request.url.path} rejected: {details}")
        return JSONResponse(
            status_code=400, content=ValidationFailed(details).to_response()
        )
