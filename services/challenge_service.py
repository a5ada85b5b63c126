"""
Challenge issuing and token validation.

Tokens are self-contained (see schemas/models/challenge.py): nothing is
stored server-side, so validation only checks that the token decodes and
that it is younger than the challenge TTL.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from errors import ExpiredTokenError, MalformedTokenError, MissingTokenError
from schemas.dto.requests.verification import (
    DEFAULT_CHALLENGE_TYPE,
    DEFAULT_DIFFICULTY,
)
from schemas.models.challenge import Challenge
from shared.datetime_utils import Clock, to_epoch_ms, utc_now

CHALLENGE_TTL_SECONDS = 300


@dataclass(frozen=True)
class IssuedChallenge:
    token: str
    type: str
    expires_in: int
    challenge: Challenge


class ChallengeIssuer:
    def __init__(
        self,
        ttl_seconds: int = CHALLENGE_TTL_SECONDS,
        clock: Clock = utc_now,
        default_type: str = DEFAULT_CHALLENGE_TYPE,
        default_difficulty: str = DEFAULT_DIFFICULTY,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._default_type = default_type
        self._default_difficulty = default_difficulty

    def issue(
        self,
        challenge_type: Optional[str] = None,
        difficulty: Optional[str] = None,
    ) -> IssuedChallenge:
        challenge = Challenge(
            timestamp=to_epoch_ms(self._clock()),
            type=challenge_type or self._default_type,
            difficulty=difficulty or self._default_difficulty,
        )
        return IssuedChallenge(
            token=challenge.to_token(),
            type=challenge.type,
            expires_in=self.ttl_seconds,
            challenge=challenge,
        )

    @staticmethod
    def decode(token: str) -> Challenge:
        try:
            return Challenge.from_token(token)
        except (ValueError, PydanticValidationError) as exc:
            raise MalformedTokenError("Challenge token is malformed") from exc

    def validate(self, token: Any) -> Challenge:
        """Decode *token* and check it has not outlived the TTL.

        Empty values count as missing and any other non-string is malformed.
        A token exactly ``ttl_seconds`` old is still accepted.
        """
        if not token:
            raise MissingTokenError("Challenge token is required")
        if not isinstance(token, str):
            raise MalformedTokenError("Challenge token is malformed")
        challenge = self.decode(token)
        age_ms = to_epoch_ms(self._clock()) - challenge.timestamp
        if age_ms > self.ttl_seconds * 1000:
            raise ExpiredTokenError("Challenge token has expired")
        return challenge
