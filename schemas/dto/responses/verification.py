"""
Response DTOs for the verification API.

ChallengeResponse — POST /api/v1/challenge (200)
VerifyResponse    — POST /api/v1/verify    (200)

VerifyResponse follows the siteverify shape integrators already know from
other captcha vendors: ``score`` is the confidence in [0, 1] and
``challenge_ts`` an ISO 8601 timestamp.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ChallengeInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: str
    type: str
    expires_in: int  # seconds


class ChallengeResponse(BaseModel):
    """Response body for POST /api/v1/challenge."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    challenge: ChallengeInfo


class VerifyResponse(BaseModel):
    """Response body for POST /api/v1/verify."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    score: float
    action: str  # "allow" | "challenge" | "block"
    challenge_ts: str
    hostname: str
    verification_time: int  # milliseconds
