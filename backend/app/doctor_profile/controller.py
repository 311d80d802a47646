"""
Multi-step doctor onboarding form.

The controller walks the ordered ``FORM_STEPS``. ``next()`` validates the
current step before moving forward; ``back()`` always succeeds and keeps
what was typed. On the last step only the required documents and the terms
flag are checked before the payload is assembled and submitted.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from app.core.exceptions import FormLockedError, OnboardingError, ValidationFailed
from app.core.logging import get_logger
from app.core.services.geocoding import GeocodingService, geocoding_service
from app.doctor_profile.address_sync import AddressSync
from app.doctor_profile.client import SubmissionResult
from app.doctor_profile.payload import Notice, SubmissionPayload, assemble_payload
from app.doctor_profile.schema import DocumentFile
from app.doctor_profile.steps import FORM_STEPS, FormStep
from app.doctor_profile.validation import validate_step

logger = get_logger()

SUCCESS_REDIRECT = "/doctor-application-received"
SUBMISSION_FAILED_MESSAGE = "Failed to submit profile. Please try again."

Submitter = Callable[[SubmissionPayload], Awaitable[SubmissionResult]]


def _list_index(node: List[Any], part: str, path: str) -> int:
    """Index into ``node``; one past the end means "append"."""
    if not part.isdigit() or int(part) > len(node):
        raise ValueError(f"Invalid list index {part!r} in field path {path!r}")
    return int(part)


class FormStatus(str, Enum):
    EDITING = "editing"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"
    SUBMISSION_FAILED = "submission_failed"


@dataclass
class SubmissionBanner:
    message: str
    error: Optional[str] = None
    details: List[Dict[str, str]] = field(default_factory=list)


@dataclass
class StepOutcome:
    advanced: bool
    submitted: bool = False
    errors: Dict[str, str] = field(default_factory=dict)


class OnboardingFormController:
    def __init__(
        self,
        submitter: Submitter,
        geocoder: Optional[GeocodingService] = None,
        steps: Sequence[FormStep] = FORM_STEPS,
        live: bool = False,
    ):
        self.submitter = submitter
        self.geocoder = geocoder or geocoding_service
        self.steps = tuple(steps)
        self.live = live
        self.address_sync = AddressSync(self._address, geocoder=self.geocoder)
        self.reset()

    def reset(self) -> None:
        self.step_index = 0
        self.state: Dict[str, Dict[str, Any]] = {step.section: {} for step in self.steps}
        self.errors: Dict[str, str] = {}
        self.status = FormStatus.EDITING
        self.banner: Optional[SubmissionBanner] = None
        self.notices: List[Notice] = []
        self.redirect_to: Optional[str] = None

    # ---------------------------
    # Navigation state
    # ---------------------------
    @property
    def current_step(self) -> FormStep:
        return self.steps[self.step_index]

    @property
    def is_first_step(self) -> bool:
        return self.step_index == 0

    @property
    def is_last_step(self) -> bool:
        return self.step_index == len(self.steps) - 1

    @property
    def progress(self) -> float:
        return (self.step_index + 1) / len(self.steps) * 100

    def _ensure_unlocked(self) -> None:
        if self.status is FormStatus.SUBMITTING:
            raise FormLockedError()

    def _address(self) -> Dict[str, Any]:
        practice = self.state.setdefault("practiceDetails", {})
        return practice.setdefault("address", {})

    # ---------------------------
    # Field edits
    # ---------------------------
    def get_field(self, path: str, default: Any = None) -> Any:
        node: Any = self.state
        for part in path.split("."):
            if isinstance(node, list) and part.isdigit() and int(part) < len(node):
                node = node[int(part)]
            elif isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node

    def set_field(self, path: str, value: Any) -> None:
        """Write a live value, e.g. ``set_field("personalInfo.phone", "5551234")``"""
        self._ensure_unlocked()
        parts = path.split(".")
        node: Any = self.state
        for part, following in zip(parts[:-1], parts[1:]):
            if isinstance(node, list):
                index = _list_index(node, part, path)
                if index == len(node):
                    node.append([] if following.isdigit() else {})
                node = node[index]
                continue
            if part not in node or node[part] is None:
                node[part] = [] if following.isdigit() else {}
            node = node[part]

        last = parts[-1]
        if isinstance(node, list):
            index = _list_index(node, last, path)
            if index == len(node):
                node.append(value)
            else:
                node[index] = value
        else:
            node[last] = value

        if self.live:
            self.validate_current_step()

    def validate_current_step(self) -> Dict[str, str]:
        step = self.current_step
        result = validate_step(step.schema, self.state.get(step.section), prefix=step.section)
        self.errors = result.errors
        return self.errors

    async def update_address(self, field_name: str, value: str) -> bool:
        self._ensure_unlocked()
        applied = await self.address_sync.field_changed(field_name, value)
        if self.live:
            self.validate_current_step()
        return applied

    async def select_location(self, lat: float, lng: float) -> bool:
        self._ensure_unlocked()
        applied = await self.address_sync.map_clicked(lat, lng)
        if self.live:
            self.validate_current_step()
        return applied

    # ---------------------------
    # Transitions
    # ---------------------------
    def back(self) -> bool:
        self._ensure_unlocked()
        if self.is_first_step:
            return False
        self.step_index -= 1
        self.errors = {}
        return True

    async def next(self) -> StepOutcome:
        self._ensure_unlocked()
        if self.status is FormStatus.SUBMITTED:
            return StepOutcome(advanced=False)

        if self.is_last_step:
            errors = self._final_step_guard()
            if errors:
                self.errors = errors
                return StepOutcome(advanced=False, errors=errors)
            return await self._submit()

        step = self.current_step
        result = validate_step(step.schema, self.state.get(step.section), prefix=step.section)
        if not result.is_valid:
            self.errors = result.errors
            return StepOutcome(advanced=False, errors=result.errors)

        self._merge(step.section, result.value.model_dump())
        self.errors = {}
        self.step_index += 1
        return StepOutcome(advanced=True)

    def _merge(self, section: str, typed: Dict[str, Any]) -> None:
        live = self.state.get(section) or {}
        merged = dict(live)
        for key, value in typed.items():
            # File handles stay as handles; model_dump would flatten them
            if isinstance(live.get(key), DocumentFile):
                continue
            merged[key] = value
        self.state[section] = merged

    def _final_step_guard(self) -> Dict[str, str]:
        # Only file presence and the terms flag; the rest of the step is not checked
        docs = self.state.get("verificationDocuments") or {}
        errors = {}
        if not isinstance(docs.get("identityProof"), DocumentFile):
            errors["verificationDocuments.identityProof"] = "Identity proof document is required"
        if not isinstance(docs.get("medicalLicense"), DocumentFile):
            errors["verificationDocuments.medicalLicense"] = "Medical license document is required"
        if docs.get("termsAgreed") is not True:
            errors["verificationDocuments.termsAgreed"] = (
                "You must agree to the terms and conditions"
            )
        return errors

    # ---------------------------
    # Submission
    # ---------------------------
    async def _submit(self) -> StepOutcome:
        self.status = FormStatus.SUBMITTING
        self.banner = None
        self.errors = {}

        try:
            payload = await assemble_payload(self.state, self.geocoder)
        except ValidationFailed as e:
            self.status = FormStatus.EDITING
            self.errors = e.field_errors
            self.banner = SubmissionBanner(message=e.error, details=e.details)
            return StepOutcome(advanced=False, errors=self.errors)
        except Exception:
            self.status = FormStatus.SUBMISSION_FAILED
            raise

        self.notices = payload.notices
        for notice in payload.notices:
            logger.info(f"{notice.title}: {notice.message}")

        try:
            result = await self.submitter(payload)
        except OnboardingError as e:
            return self._fail(e.error, [])
        except Exception:
            self.status = FormStatus.SUBMISSION_FAILED
            raise

        if not result.ok:
            return self._fail(result.error, result.details)

        notices = self.notices
        self.reset()
        self.notices = notices
        self.status = FormStatus.SUBMITTED
        self.redirect_to = SUCCESS_REDIRECT
        return StepOutcome(advanced=True, submitted=True)

    def _fail(self, error: Optional[str], details: List[Dict[str, str]]) -> StepOutcome:
        logger.warning(f"Doctor profile submission failed: {error}")
        self.status = FormStatus.SUBMISSION_FAILED
        self.banner = SubmissionBanner(
            message=SUBMISSION_FAILED_MESSAGE, error=error, details=details
        )
        self.errors = {item["path"]: item["message"] for item in details if "path" in item}
        return StepOutcome(advanced=False, errors=self.errors)
