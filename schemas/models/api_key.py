"""
API key document model.

Maps to the ``api_keys`` collection. Every request to the verification API
is attributed to the tenant (``user_id``) owning the presented key.

Keys are soft-deleted: ``is_active`` flips to False and the gate stops
accepting the value.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from schemas.models.base import StoredModel

Environment = Literal["production", "development", "testing"]


class ApiKeyDoc(StoredModel):
    """Document model for the ``api_keys`` collection."""

    user_id: str
    name: str
    key_value: str
    environment: Environment = "development"
    domain: Optional[str] = None
    is_active: bool = True
    usage_count: int = 0
    last_used_at: Optional[datetime] = None
    rate_limit: int = 1000
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
