"""
Response DTOs for the statistics endpoint.

StatsResponse — GET /api/v1/stats (200)

``daily_breakdown`` is ordered by date ascending and its ``total`` column
sums to ``total_verifications``.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class CountryCount(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    country: str
    count: int


class DailyBreakdown(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date: str  # YYYY-MM-DD (UTC)
    total: int
    successful: int
    blocked: int


class StatsSummary(BaseModel):
    """Aggregated outcome statistics for one tenant over a window of days."""

    model_config = ConfigDict(populate_by_name=True)

    total_verifications: int
    successful_verifications: int
    blocked_attempts: int
    success_rate: float  # percent, 2 decimal places
    average_response_time: float  # milliseconds, 2 decimal places
    top_countries: list[CountryCount]
    daily_breakdown: list[DailyBreakdown]


class StatsData(StatsSummary):
    period: str  # e.g. "30 days"


class StatsResponse(BaseModel):
    """Response body for GET /api/v1/stats."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    data: StatsData
