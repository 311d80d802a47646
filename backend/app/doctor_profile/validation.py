from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from app.core.exceptions import details_to_field_errors

ModelT = TypeVar("ModelT", bound=BaseModel)


def error_path(loc: tuple) -> str:
    return ".".join(str(part) for part in loc)


def errors_to_details(exc: ValidationError, prefix: str = "") -> List[Dict[str, str]]:
    """Flatten a pydantic error into ``[{path, message}]``"""
    details = []
    for err in exc.errors():
        path = error_path(err["loc"])
        if prefix:
            path = f"{prefix}.{path}" if path else prefix
        details.append({"path": path, "message": err["msg"]})
    return details


@dataclass
class StepValidationResult(Generic[ModelT]):
    value: Optional[ModelT] = None
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return self.value is not None and not self.errors


def validate_step(
    schema: Type[ModelT], data: Optional[Mapping[str, Any]], prefix: str = ""
) -> StepValidationResult[ModelT]:
    """
    Validate one step's live values against its schema.

    Pure: never mutates ``data``. Returns either the typed model or a
    ``{field.path: message}`` mapping, optionally prefixed with the step's
    section name.
    """
    try:
        return StepValidationResult(value=schema.model_validate(dict(data or {})))
    except ValidationError as exc:
        return StepValidationResult(
            errors=details_to_field_errors(errors_to_details(exc, prefix))
        )
