"""
Verification log document model.

Maps to the ``verification_logs`` collection: the append-only outcome log the
stats endpoint aggregates. Records are written once per verify call and
never updated.

result values:
  success    — the client passed
  suspicious — passed, but the heuristics asked for a further challenge
  failed     — the random pass/fail roll rejected a non-bot client
  blocked    — the heuristics classified the client as a bot
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from schemas.models.base import StoredModel

VerificationResult = Literal["success", "failed", "blocked", "suspicious"]


class VerificationLogDoc(StoredModel):
    """Document model for the ``verification_logs`` collection."""

    api_key_id: str
    user_id: str
    challenge_id: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    result: VerificationResult
    verification_time: float = 0.0  # milliseconds
    challenge_type: str = "checkbox"
    country_code: Optional[str] = None
    city: Optional[str] = None
    is_bot: bool = False
    confidence_score: float = 0.0
    bot_name: Optional[str] = None
    created_at: datetime
