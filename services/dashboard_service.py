"""Dashboard payload assembly for a signed-in user."""

from __future__ import annotations

from typing import Any

from repositories import Repositories
from schemas.dto.responses.api_key import ApiKeyResponse
from schemas.dto.responses.auth import DashboardData, DashboardStats, SessionUser
from services.stats_service import StatsService

DASHBOARD_PERIOD_DAYS = 30


class DashboardService:
    def __init__(self, repositories: Repositories, stats: StatsService) -> None:
        self._repos = repositories
        self._stats = stats

    async def build(self, user: dict[str, Any]) -> DashboardData:
        user_id = str(user["id"])
        analytics = await self._stats.summary_for_user(user_id, DASHBOARD_PERIOD_DAYS)
        keys = await self._repos.api_keys.list_active_for_user(user_id)
        websites = await self._repos.websites.count_active_for_user(user_id)

        total = analytics.total_verifications
        success_rate = (
            round(analytics.successful_verifications / total * 100, 1) if total else 0.0
        )
        return DashboardData(
            user=SessionUser.model_validate(user),
            analytics=analytics,
            api_keys=[ApiKeyResponse.from_doc(k) for k in keys],
            stats=DashboardStats(
                total_verifications=total,
                successful_verifications=analytics.successful_verifications,
                blocked_attempts=analytics.blocked_attempts,
                success_rate=success_rate,
                api_keys_count=len(keys),
                websites_count=websites,
            ),
        )
