from __future__ import annotations
"""Rule-based request validation for provider calls.

Validators return a ValidationResult instead of raising so that handlers can
answer with a 400 and the collected details.
"""

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ValidationError

from momentful.schemas.replicate import FluxKontextProInput
from momentful.schemas.runway import CreateJobRequest
from momentful.services.providers.models import is_flux_model


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    error: str | None = None

    def __bool__(self) -> bool:
        return self.valid


OK = ValidationResult(valid=True)


def format_validation_error(exc: ValidationError) -> str:
    """``field.path: message`` pairs joined by ', '."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        msg = err.get("msg", "Invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return ", ".join(parts)


def _validate_model(model: type[BaseModel], data: Any) -> ValidationResult:
    if not isinstance(data, dict):
        return ValidationResult(False, "Invalid input format")
    try:
        model.model_validate(data)
    except ValidationError as e:
        return ValidationResult(False, format_validation_error(e))
    return OK


def validate_flux_kontext_pro_input(data: Any) -> ValidationResult:
    return _validate_model(FluxKontextProInput, data)


def validate_prediction_input(version: str, data: Any) -> ValidationResult:
    """Validate model input for ``version``; only Flux models have a schema."""
    if is_flux_model(version):
        return validate_flux_kontext_pro_input(data)
    return OK


def parse_create_job(data: Any) -> tuple[CreateJobRequest | None, ValidationResult]:
    """Parse a Runway job body, returning the model or the validation failure."""
    if not isinstance(data, dict):
        return None, ValidationResult(False, "Request body must be a JSON object")
    try:
        return CreateJobRequest.model_validate(data), OK
    except ValidationError as e:
        return None, ValidationResult(False, format_validation_error(e))


def validate_storage_path(user_id: str, storage_path: str) -> ValidationResult:
    """A caller may only address objects under its own ``<user_id>/`` prefix."""
    if not storage_path.startswith(f"{user_id}/"):
        return ValidationResult(False, f"Storage path must start with user ID: {user_id}/")
    if ".." in storage_path or "//" in storage_path:
        return ValidationResult(False, "Invalid characters in storage path")
    return OK
