"""
Challenge model.

Challenges are never stored: the whole record travels to the client as the
challenge token, the base64url (unpadded) encoding of its compact JSON::

    {"id": "<uuid4>", "timestamp": <epoch ms>, "difficulty": "medium", "type": "checkbox"}

The token is not signed; only well-formedness is checked when it comes back.
"""

from __future__ import annotations

import base64
import json

from pydantic import BaseModel, ConfigDict, Field, StrictInt

from shared.generators import generate_id


class Challenge(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=generate_id)
    timestamp: StrictInt  # issue time, epoch milliseconds
    difficulty: str = "medium"
    type: str = "checkbox"

    def to_token(self) -> str:
        raw = json.dumps(self.model_dump(), separators=(",", ":")).encode("utf-8")
        return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")

    @classmethod
    def from_token(cls, token: str) -> "Challenge":
        """Decode a token produced by to_token().

        Raises ``ValueError`` (including pydantic's ValidationError) for
        anything that is not base64url JSON with an integer ``timestamp``.
        """
        padded = token + "=" * (-len(token) % 4)
        try:
            raw = base64.urlsafe_b64decode(padded.encode("ascii"))
            payload = json.loads(raw)
        except (UnicodeError, ValueError) as exc:
            raise ValueError("challenge token is not base64url JSON") from exc
        if not isinstance(payload, dict):
            raise ValueError("challenge token payload is not an object")
        return cls.model_validate(payload)
