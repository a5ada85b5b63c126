"""
Response DTOs for the session and dashboard endpoints.

UserResponse      — GET /auth/user
DashboardResponse — GET /auth/dashboard-data

Dashboard statistics keep the camelCase keys the dashboard front-end reads.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.dto.responses.api_key import ApiKeyResponse
from schemas.dto.responses.stats import StatsSummary


class SessionUser(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    login: str
    name: Optional[str] = None
    email: Optional[str] = None
    avatar_url: Optional[str] = None
    github_id: Optional[int] = None


class UserResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    user: SessionUser


class DashboardStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_verifications: int = Field(alias="totalVerifications")
    successful_verifications: int = Field(alias="successfulVerifications")
    blocked_attempts: int = Field(alias="blockedAttempts")
    success_rate: float = Field(alias="successRate")  # percent, 1 dp
    api_keys_count: int = Field(alias="apiKeysCount")
    websites_count: int = Field(alias="websitesCount")


class DashboardData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user: SessionUser
    analytics: StatsSummary
    api_keys: list[ApiKeyResponse] = Field(alias="apiKeys")
    stats: DashboardStats


class DashboardResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    data: DashboardData
