"""
Random identifier and token generators — pure, side-effect-free functions.

Everything handed to a client (API keys, OAuth states) comes from the
``secrets`` module.
"""

from __future__ import annotations

import secrets
import uuid

API_KEY_PREFIX = "da_live_"


def generate_api_key() -> str:
    """Generate a new tenant API key: ``da_live_`` + 24 random bytes, base64url."""
    return API_KEY_PREFIX + secrets.token_urlsafe(24)


def generate_oauth_state() -> str:
    """Generate a CSRF state value for the OAuth redirect (64 hex chars)."""
    return secrets.token_hex(32)


def generate_id() -> str:
    """Generate a random UUID4 string used as a record or challenge id."""
    return str(uuid.uuid4())
