"""
Verify flow: validate the challenge token, score the client, record the
outcome.

The outcome record is written by a background task so storage latency never
shows up in ``verification_time``; a failed write is logged and dropped.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Optional

from infrastructure.geoip import GeoIPService, GeoLocation, UNKNOWN_LOCATION
from repositories import Repositories
from schemas.models.api_key import ApiKeyDoc
from schemas.models.verification_log import VerificationLogDoc, VerificationResult
from services.challenge_service import ChallengeIssuer
from services.scoring import Scorer, ScoreResult
from shared.bot_detection import get_bot_name
from shared.datetime_utils import Clock, utc_now
from shared.logging import get_logger, hash_ip, should_sample

log = get_logger(__name__)


@dataclass(frozen=True)
class VerificationOutcome:
    success: bool
    score: float
    action: str
    challenge_ts: str
    verification_time: int  # milliseconds
    result: VerificationResult


def outcome_result(score: ScoreResult) -> VerificationResult:
    """Classify a scoring result for the outcome log."""
    if score.is_bot:
        return "blocked"
    if score.success and score.action == "challenge":
        return "suspicious"
    if score.success:
        return "success"
    return "failed"


class VerificationService:
    def __init__(
        self,
        repositories: Repositories,
        issuer: ChallengeIssuer,
        scorer: Scorer,
        geoip: Optional[GeoIPService] = None,
        clock: Clock = utc_now,
    ) -> None:
        self._repos = repositories
        self._issuer = issuer
        self._scorer = scorer
        self._geoip = geoip
        self._clock = clock
        self._pending: set[asyncio.Task] = set()

    async def _locate(self, ip_address: Optional[str]) -> GeoLocation:
        if self._geoip is None:
            return UNKNOWN_LOCATION
        return await self._geoip.lookup(ip_address)

    async def verify(
        self,
        api_key: ApiKeyDoc,
        token: Any,
        user_agent: Optional[str],
        ip_address: Optional[str],
    ) -> VerificationOutcome:
        started = time.perf_counter()
        challenge = self._issuer.validate(token)

        location = await self._locate(ip_address)
        score = self._scorer.score(user_agent, location.country_code, challenge.type)
        result = outcome_result(score)
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        now = self._clock()

        record = VerificationLogDoc(
            api_key_id=api_key.id,
            user_id=api_key.user_id,
            challenge_id=challenge.id,
            ip_address=ip_address or None,
            user_agent=user_agent,
            result=result,
            verification_time=elapsed_ms,
            challenge_type=challenge.type,
            country_code=location.country_code,
            city=location.city,
            is_bot=score.is_bot,
            confidence_score=score.confidence,
            bot_name=get_bot_name(user_agent),
            created_at=now,
        )
        self._schedule_record(record)

        if should_sample("verification_completed"):
            log.info(
                "verification_completed",
                key_id=api_key.id,
                result=result,
                action=score.action,
                bot_score=score.bot_score,
                challenge_type=challenge.type,
                country_code=location.country_code,
                client_ip=hash_ip(ip_address),
                verification_time_ms=elapsed_ms,
            )

        return VerificationOutcome(
            success=score.success,
            score=score.confidence,
            action=score.action,
            challenge_ts=now.isoformat(),
            verification_time=elapsed_ms,
            result=result,
        )

    def _schedule_record(self, record: VerificationLogDoc) -> None:
        task = asyncio.create_task(self._record(record))
        # Keep a strong reference until the write finishes
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _record(self, record: VerificationLogDoc) -> None:
        try:
            await self._repos.verification_logs.append(record)
        except Exception as e:
            log.error(
                "verification_log_failed",
                key_id=record.api_key_id,
                error=str(e),
                error_type=type(e).__name__,
            )

    async def drain(self) -> None:
        """Wait for outstanding outcome writes (shutdown and tests)."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
