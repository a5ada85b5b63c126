"""
User-agent analysis utilities — framework-agnostic.

Two libraries are involved:
1. ``ua_parser`` resolves browser and OS families; unknown agents resolve to
   ``"Other"``, which the verification scorer treats as suspicious.
2. ``crawlerdetect`` names well-known crawlers. The name is stored on the
   verification record for analytics and does not influence the score.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from crawlerdetect import CrawlerDetect
from ua_parser import parse

UNKNOWN_FAMILY = "Other"

# Substrings that flag an automated client, matched case-insensitively
BOT_KEYWORDS: tuple[str, ...] = ("bot", "crawler", "spider")

_crawler_detect = CrawlerDetect()


@dataclass(frozen=True)
class UserAgentInfo:
    browser_family: str
    os_family: str


def parse_user_agent(user_agent: Optional[str]) -> UserAgentInfo:
    """Resolve browser and OS families for *user_agent*.

    Missing parts of the parse result (and empty agents) map to ``"Other"``.
    """
    if not user_agent:
        return UserAgentInfo(UNKNOWN_FAMILY, UNKNOWN_FAMILY)

    result = parse(user_agent)
    browser = result.user_agent.family if result.user_agent else None
    os_family = result.os.family if result.os else None
    return UserAgentInfo(
        browser_family=browser or UNKNOWN_FAMILY,
        os_family=os_family or UNKNOWN_FAMILY,
    )


def contains_keyword(user_agent: Optional[str], keyword: str) -> bool:
    return bool(user_agent) and keyword in user_agent.lower()


def get_bot_name(user_agent: Optional[str]) -> Optional[str]:
    """Return the crawler signature matched by ``CrawlerDetect``, or ``None``."""
    if not user_agent:
        return None
    if _crawler_detect.isCrawler(user_agent):
        matches = _crawler_detect.getMatches()
        if matches:
            return str(matches)
    return None
