"""
Verification statistics.

``aggregate`` is a pure function over outcome records so it can be tested
without storage; ``StatsService`` feeds it a tenant's records.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timedelta
from typing import Iterable

from repositories import Repositories
from schemas.dto.responses.stats import CountryCount, DailyBreakdown, StatsSummary
from schemas.models.verification_log import VerificationLogDoc
from shared.datetime_utils import Clock, iso_date, parse_datetime, utc_now
from shared.logging import get_logger, should_sample

log = get_logger(__name__)

TOP_COUNTRIES_LIMIT = 5


def aggregate(
    records: Iterable[VerificationLogDoc], days: int, now: datetime
) -> StatsSummary:
    since = now - timedelta(days=days)
    rows = [r for r in records if parse_datetime(r.created_at) >= since]

    total = len(rows)
    successful = sum(1 for r in rows if r.result == "success")
    blocked = sum(1 for r in rows if r.result == "blocked")

    times = [r.verification_time for r in rows if r.verification_time]
    average = round(sum(times) / len(times), 2) if times else 0.0
    success_rate = round(successful / total * 100, 2) if total else 0.0

    # Counter.most_common keeps insertion order among equal counts
    countries = Counter(r.country_code for r in rows if r.country_code)
    top_countries = [
        CountryCount(country=code, count=count)
        for code, count in countries.most_common(TOP_COUNTRIES_LIMIT)
    ]

    daily: dict[str, dict[str, int]] = {}
    for r in rows:
        bucket = daily.setdefault(
            iso_date(parse_datetime(r.created_at)),
            {"total": 0, "successful": 0, "blocked": 0},
        )
        bucket["total"] += 1
        if r.result == "success":
            bucket["successful"] += 1
        elif r.result == "blocked":
            bucket["blocked"] += 1

    return StatsSummary(
        total_verifications=total,
        successful_verifications=successful,
        blocked_attempts=blocked,
        success_rate=success_rate,
        average_response_time=average,
        top_countries=top_countries,
        daily_breakdown=[
            DailyBreakdown(date=date, **counts) for date, counts in sorted(daily.items())
        ],
    )


class StatsService:
    def __init__(self, repositories: Repositories, clock: Clock = utc_now) -> None:
        self._repos = repositories
        self._clock = clock

    async def summary_for_user(self, user_id: str, days: int) -> StatsSummary:
        now = self._clock()
        records = await self._repos.verification_logs.list_for_user(
            user_id, now - timedelta(days=days)
        )
        summary = aggregate(records, days, now)
        if should_sample("stats_query"):
            log.info(
                "stats_query",
                user_id=user_id,
                days=days,
                total=summary.total_verifications,
            )
        return summary
