"""
Request DTOs for the verification API.

ChallengeRequest — POST /api/v1/challenge
VerifyRequest    — POST /api/v1/verify

Challenge parameters are forgiving: anything that is not a non-empty string
falls back to the default instead of failing the request.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_CHALLENGE_TYPE = "checkbox"
DEFAULT_DIFFICULTY = "medium"


def _text_or_none(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


class ChallengeRequest(BaseModel):
    """Request body for POST /api/v1/challenge."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: Optional[str] = None
    difficulty: Optional[str] = None
    api_key: Optional[str] = Field(default=None, alias="apiKey")

    @field_validator("type", "difficulty", mode="before")
    @classmethod
    def _default_silently(cls, v: Any) -> Optional[str]:
        return _text_or_none(v)


class VerifyRequest(BaseModel):
    """Request body for POST /api/v1/verify.

    ``userAgent`` and ``ipAddress`` let a backend forward its end user's
    details; when absent the values seen on the request itself are used.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    # Raw JSON value; non-string tokens are rejected as malformed
    token: Any = None
    user_agent: Optional[str] = Field(default=None, alias="userAgent")
    ip_address: Optional[str] = Field(default=None, alias="ipAddress")
    api_key: Optional[str] = Field(default=None, alias="apiKey")

    @field_validator("user_agent", "ip_address", mode="before")
    @classmethod
    def _strings_only(cls, v: Any) -> Optional[str]:
        return v if isinstance(v, str) else None
