"""
Security event and website document models.

``security_events`` is an audit trail of account activity (logins, key
creation and deletion). ``websites`` records the domains a tenant protects;
the dashboard only reports their count.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from schemas.models.base import StoredModel

SecurityEventType = Literal[
    "api_key_created",
    "api_key_regenerated",
    "api_key_deleted",
    "suspicious_activity",
    "rate_limit_exceeded",
    "login",
    "logout",
]

Severity = Literal["info", "warning", "error", "critical"]


class SecurityEventDoc(StoredModel):
    """Document model for the ``security_events`` collection."""

    user_id: str
    api_key_id: Optional[str] = None
    event_type: SecurityEventType
    description: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    metadata: dict[str, Any] = {}
    severity: Severity = "info"
    created_at: datetime


class WebsiteDoc(StoredModel):
    """Document model for the ``websites`` collection."""

    user_id: str
    api_key_id: str
    domain: str
    name: str
    is_active: bool = True
    created_at: Optional[datetime] = None
