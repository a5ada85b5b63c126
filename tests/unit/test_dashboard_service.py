"""Unit tests for dashboard payload assembly."""

from datetime import datetime, timedelta, timezone

from repositories import memory_repositories
from schemas.models.api_key import ApiKeyDoc
from schemas.models.security_event import WebsiteDoc
from schemas.models.verification_log import VerificationLogDoc
from services.dashboard_service import DashboardService
from services.stats_service import StatsService

NOW = datetime(2024, 6, 30, 12, 0, tzinfo=timezone.utc)
USER = {"id": "42", "login": "steve", "name": "Steve", "github_id": 42}


def _log(result, days_ago=1):
    return VerificationLogDoc(
        api_key_id="k1",
        user_id="42",
        result=result,
        created_at=NOW - timedelta(days=days_ago),
    )


async def _dashboard(repos):
    return await DashboardService(repos, StatsService(repos, clock=lambda: NOW)).build(USER)


async def test_empty_dashboard():
    data = await _dashboard(memory_repositories())
    assert data.user.login == "steve"
    assert data.api_keys == []
    assert data.stats.total_verifications == 0
    assert data.stats.success_rate == 0.0


async def test_counts_and_rate():
    repos = memory_repositories()
    await repos.api_keys.insert(ApiKeyDoc(user_id="42", name="a", key_value="a"))
    await repos.api_keys.insert(ApiKeyDoc(user_id="42", name="b", key_value="b", is_active=False))
    for result in ("success", "success", "blocked"):
        await repos.verification_logs.append(_log(result))
    await repos.verification_logs.append(_log("success", days_ago=45))

    data = await _dashboard(repos)
    assert data.stats.api_keys_count == 1
    assert data.stats.total_verifications == 3
    assert data.stats.blocked_attempts == 1
    assert data.stats.success_rate == 66.7
    assert data.analytics.success_rate == 66.67


async def test_websites_counted():
    repos = memory_repositories()
    repos.websites._db.websites["w1"] = WebsiteDoc(
        id="w1", user_id="42", api_key_id="k1", domain="example.com", name="Site"
    )
    data = await _dashboard(repos)
    assert data.stats.websites_count == 1
