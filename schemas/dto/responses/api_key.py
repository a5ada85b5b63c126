"""
Response DTOs for dashboard API key management.

ApiKeyResponse        — one key entry in dashboard listings
ApiKeyCreatedResponse — POST /auth/api-keys (200)

Timestamps are ISO 8601 strings. The full key value is returned because the
dashboard shows it for copy-paste into the widget configuration.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.models.api_key import ApiKeyDoc


class ApiKeyResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    key_value: str
    environment: str
    domain: Optional[str] = None
    is_active: bool
    usage_count: int
    last_used_at: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_doc(cls, doc: ApiKeyDoc) -> "ApiKeyResponse":
        return cls(
            id=doc.id,
            name=doc.name,
            key_value=doc.key_value,
            environment=doc.environment,
            domain=doc.domain,
            is_active=doc.is_active,
            usage_count=doc.usage_count,
            last_used_at=doc.last_used_at.isoformat() if doc.last_used_at else None,
            created_at=doc.created_at.isoformat() if doc.created_at else None,
        )


class ApiKeyCreatedResponse(BaseModel):
    """Response body for POST /auth/api-keys."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    api_key: ApiKeyResponse = Field(alias="apiKey")
