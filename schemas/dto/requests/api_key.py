"""
Request DTOs for dashboard API key management.

CreateApiKeyRequest — POST /auth/api-keys
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator

ALLOWED_ENVIRONMENTS = frozenset({"production", "development", "testing"})

_FIELD_DEFAULTS = {"name": "New API Key", "domain": "localhost"}


class CreateApiKeyRequest(BaseModel):
    """Request body for POST /auth/api-keys. Every field is optional."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = "New API Key"
    environment: str = "development"
    domain: str = "localhost"

    @field_validator("name", "domain", mode="before")
    @classmethod
    def _blank_to_default(cls, v: Any, info: ValidationInfo) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return _FIELD_DEFAULTS[info.field_name]
        return v.strip() if isinstance(v, str) else v

    @field_validator("environment", mode="before")
    @classmethod
    def _validate_environment(cls, v: Optional[str]) -> str:
        if v is None or (isinstance(v, str) and not v.strip()):
            return "development"
        v = str(v).strip().lower()
        if v not in ALLOWED_ENVIRONMENTS:
            raise ValueError(
                f"environment must be one of: {', '.join(sorted(ALLOWED_ENVIRONMENTS))}"
            )
        return v
