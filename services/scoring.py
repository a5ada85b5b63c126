"""
Heuristic bot scoring.

The scorer looks at eight yes/no indicators derived from the user agent and
the client's country, then turns the share of raised indicators into an
allow / challenge / block decision::

    bot_score = raised / 8
    bot_score > 0.6        -> block      (is_bot, confidence 0.1)
    0.3 < bot_score <= 0.6 -> challenge  (confidence 0.3)
    otherwise              -> allow      (confidence 0.5 .. 0.9)

Checkbox challenges then get a pass/fail roll on top of the decision.

All randomness goes through a ScoringStrategy so tests can pin the rolls.
"""

from __future__ import annotations

import random
from dataclasses import astuple, dataclass
from typing import Iterable, Optional, Protocol

from shared.bot_detection import (
    BOT_KEYWORDS,
    UNKNOWN_FAMILY,
    contains_keyword,
    parse_user_agent,
)

BLOCK_THRESHOLD = 0.6
CHALLENGE_THRESHOLD = 0.3
MIN_USER_AGENT_LENGTH = 10

# Country indicator only fires when this roll is exceeded
COUNTRY_ROLL_THRESHOLD = 0.7
# Checkbox challenges fail when the roll is at or below this
CHECKBOX_FAILURE_RATE = 0.05

BLOCK_CONFIDENCE = 0.1
CHALLENGE_CONFIDENCE = 0.3
ALLOW_BASE_CONFIDENCE = 0.5
ALLOW_CONFIDENCE_SPREAD = 0.4
ALLOW_MAX_CONFIDENCE = 0.9

DEFAULT_BLOCKED_COUNTRIES: tuple[str, ...] = ("CN", "RU", "KP")


class ScoringStrategy(Protocol):
    """Source of the scorer's random rolls, each in [0, 1)."""

    def country_roll(self) -> float: ...

    def confidence_roll(self) -> float: ...

    def checkbox_roll(self) -> float: ...


class RandomScoringStrategy:
    def __init__(self, seed: Optional[int] = None) -> None:
        self._random = random.Random(seed)

    def country_roll(self) -> float:
        return self._random.random()

    def confidence_roll(self) -> float:
        return self._random.random()

    def checkbox_roll(self) -> float:
        return self._random.random()


class DeterministicScoringStrategy:
    """Fixed rolls. The defaults never raise the country indicator and always
    pass the checkbox roll."""

    def __init__(
        self,
        country: float = 0.5,
        confidence: float = 0.5,
        checkbox: float = 0.5,
    ) -> None:
        self.country = country
        self.confidence = confidence
        self.checkbox = checkbox

    def country_roll(self) -> float:
        return self.country

    def confidence_roll(self) -> float:
        return self.confidence

    def checkbox_roll(self) -> float:
        return self.checkbox


@dataclass(frozen=True)
class BotIndicators:
    empty_user_agent: bool
    short_user_agent: bool
    contains_bot: bool
    contains_crawler: bool
    contains_spider: bool
    unknown_browser: bool
    unknown_os: bool
    blocked_country: bool

    def raised(self) -> int:
        return sum(astuple(self))

    def __len__(self) -> int:
        return len(astuple(self))


@dataclass(frozen=True)
class ScoreResult:
    success: bool
    confidence: float
    is_bot: bool
    action: str  # "allow" | "challenge" | "block"
    bot_score: float


def collect_indicators(
    user_agent: Optional[str],
    country_code: Optional[str],
    strategy: ScoringStrategy,
    blocked_countries: Iterable[str] = DEFAULT_BLOCKED_COUNTRIES,
) -> BotIndicators:
    ua = user_agent or ""
    info = parse_user_agent(ua)
    in_blocklist = bool(country_code) and country_code.upper() in set(blocked_countries)
    contains_bot, contains_crawler, contains_spider = (
        contains_keyword(ua, keyword) for keyword in BOT_KEYWORDS
    )
    return BotIndicators(
        empty_user_agent=not ua,
        short_user_agent=len(ua) < MIN_USER_AGENT_LENGTH,
        contains_bot=contains_bot,
        contains_crawler=contains_crawler,
        contains_spider=contains_spider,
        unknown_browser=info.browser_family == UNKNOWN_FAMILY,
        unknown_os=not info.os_family or info.os_family == UNKNOWN_FAMILY,
        # Roll only for listed countries so unlisted clients consume no randomness
        blocked_country=in_blocklist
        and strategy.country_roll() > COUNTRY_ROLL_THRESHOLD,
    )


def compute_bot_score(indicators: BotIndicators) -> float:
    return indicators.raised() / len(indicators)


def decide(bot_score: float, confidence_roll: float) -> tuple[str, float, bool]:
    """Map a bot score to ``(action, confidence, is_bot)``."""
    if bot_score > BLOCK_THRESHOLD:
        return "block", BLOCK_CONFIDENCE, True
    if bot_score > CHALLENGE_THRESHOLD:
        return "challenge", CHALLENGE_CONFIDENCE, False
    confidence = min(
        ALLOW_MAX_CONFIDENCE,
        ALLOW_BASE_CONFIDENCE + confidence_roll * ALLOW_CONFIDENCE_SPREAD,
    )
    return "allow", confidence, False


class Scorer:
    def __init__(
        self,
        strategy: Optional[ScoringStrategy] = None,
        blocked_countries: Iterable[str] = DEFAULT_BLOCKED_COUNTRIES,
    ) -> None:
        self.strategy = strategy or RandomScoringStrategy()
        self.blocked_countries = tuple(c.upper() for c in blocked_countries)

    def score(
        self,
        user_agent: Optional[str],
        country_code: Optional[str],
        challenge_type: str,
    ) -> ScoreResult:
        indicators = collect_indicators(
            user_agent, country_code, self.strategy, self.blocked_countries
        )
        bot_score = compute_bot_score(indicators)
        action, confidence, is_bot = decide(bot_score, self.strategy.confidence_roll())

        if challenge_type == "checkbox":
            success = not is_bot and self.strategy.checkbox_roll() > CHECKBOX_FAILURE_RATE
            return ScoreResult(
                success=success,
                confidence=confidence if success else BLOCK_CONFIDENCE,
                is_bot=is_bot,
                action="allow" if success else "block",
                bot_score=bot_score,
            )

        return ScoreResult(
            success=not is_bot,
            confidence=confidence,
            is_bot=is_bot,
            action=action,
            bot_score=bot_score,
        )
