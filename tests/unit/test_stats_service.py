"""Unit tests for statistics aggregation."""

from datetime import datetime, timedelta, timezone

import pytest

from repositories import memory_repositories
from schemas.models.verification_log import VerificationLogDoc
from services.stats_service import StatsService, aggregate

NOW = datetime(2024, 6, 30, 12, 0, tzinfo=timezone.utc)


def _log(result="success", days_ago=0.0, country=None, time_ms=100.0, user_id="u1"):
    return VerificationLogDoc(
        api_key_id="k1",
        user_id=user_id,
        result=result,
        verification_time=time_ms,
        country_code=country,
        created_at=NOW - timedelta(days=days_ago),
    )


class TestAggregate:
    def test_empty(self):
        s = aggregate([], 30, NOW)
        assert s.total_verifications == 0
        assert s.success_rate == 0.0
        assert s.average_response_time == 0.0
        assert s.top_countries == []
        assert s.daily_breakdown == []

    def test_counts_and_rate(self):
        rows = [
            _log("success"),
            _log("success"),
            _log("blocked"),
            _log("failed"),
            _log("suspicious"),
            _log("success"),
        ]
        s = aggregate(rows, 30, NOW)
        assert s.total_verifications == 6
        assert s.successful_verifications == 3
        assert s.blocked_attempts == 1
        assert s.success_rate == 50.0

    def test_success_rate_two_decimals(self):
        rows = [_log("success"), _log("failed"), _log("failed")]
        assert aggregate(rows, 30, NOW).success_rate == 33.33

    def test_average_response_time(self):
        rows = [_log(time_ms=100), _log(time_ms=201), _log(time_ms=0)]
        # zero durations are not counted
        assert aggregate(rows, 30, NOW).average_response_time == 150.5

    def test_window_excludes_old_rows(self):
        rows = [_log(days_ago=1), _log(days_ago=6.9), _log(days_ago=7.1)]
        assert aggregate(rows, 7, NOW).total_verifications == 2

    def test_window_boundary_inclusive(self):
        assert aggregate([_log(days_ago=7)], 7, NOW).total_verifications == 1

    def test_top_countries_limited_and_ordered(self):
        rows = (
            [_log(country="US")] * 3
            + [_log(country="DE")] * 5
            + [_log(country=c) for c in ("FR", "GB", "CA", "JP", "BR")]
            + [_log(country=None)]
        )
        top = aggregate(rows, 30, NOW).top_countries
        assert [c.country for c in top] == ["DE", "US", "FR", "GB", "CA"]
        assert [c.count for c in top] == [5, 3, 1, 1, 1]

    def test_top_country_ties_keep_first_seen_order(self):
        rows = [_log(country="GB"), _log(country="AU"), _log(country="GB"), _log(country="AU")]
        top = aggregate(rows, 30, NOW).top_countries
        assert [c.country for c in top] == ["GB", "AU"]

    def test_daily_breakdown_sorted_and_sums_to_total(self):
        rows = [
            _log("success", days_ago=0),
            _log("blocked", days_ago=2),
            _log("success", days_ago=1),
            _log("failed", days_ago=2),
            _log("success", days_ago=2),
        ]
        s = aggregate(rows, 30, NOW)
        dates = [d.date for d in s.daily_breakdown]
        assert dates == sorted(dates)
        assert dates == ["2024-06-28", "2024-06-29", "2024-06-30"]
        assert sum(d.total for d in s.daily_breakdown) == s.total_verifications
        first = s.daily_breakdown[0]
        assert (first.total, first.successful, first.blocked) == (3, 1, 1)

    def test_naive_created_at_treated_as_utc(self):
        row = _log().model_copy(update={"created_at": NOW.replace(tzinfo=None)})
        assert aggregate([row], 1, NOW).total_verifications == 1


class TestStatsService:
    async def test_summary_for_user_is_tenant_scoped(self):
        repos = memory_repositories()
        for row in (_log(user_id="u1"), _log(user_id="u1"), _log(user_id="u2")):
            await repos.verification_logs.append(row)
        svc = StatsService(repos, clock=lambda: NOW)
        s = await svc.summary_for_user("u1", 30)
        assert s.total_verifications == 2

    async def test_summary_respects_days(self):
        repos = memory_repositories()
        await repos.verification_logs.append(_log(days_ago=1))
        await repos.verification_logs.append(_log(days_ago=10))
        svc = StatsService(repos, clock=lambda: NOW)
        assert (await svc.summary_for_user("u1", 7)).total_verifications == 1
        assert (await svc.summary_for_user("u1", 30)).total_verifications == 2


@pytest.mark.parametrize("days", [1, 7, 30, 90])
def test_aggregate_window_sizes(days):
    rows = [_log(days_ago=d) for d in range(0, 100, 5)]
    expected = sum(1 for d in range(0, 100, 5) if d <= days)
    assert aggregate(rows, days, NOW).total_verifications == expected
