"""
Period parsing for the statistics endpoint.

parse_period_days — the ``period`` query parameter of GET /api/v1/stats

``period`` takes the form ``<days>d`` (``7d``, ``30d``, ``90d``). A bare
number is accepted as days; anything unparseable falls back to 30 days.
"""

from __future__ import annotations

import re

DEFAULT_PERIOD_DAYS = 30
MAX_PERIOD_DAYS = 365

_PERIOD_RE = re.compile(r"^\s*(\d+)\s*d?\s*$", re.IGNORECASE)


def parse_period_days(period: str | None, default: int = DEFAULT_PERIOD_DAYS) -> int:
    """Turn ``"30d"`` into ``30``; zero, negative or garbage values give *default*."""
    if not period:
        return default
    match = _PERIOD_RE.match(period)
    if not match:
        return default
    days = int(match.group(1))
    if days <= 0:
        return default
    return min(days, MAX_PERIOD_DAYS)

