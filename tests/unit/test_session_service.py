"""Unit tests for the dashboard session cookie."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi import Response

from config import SessionSettings
from services.session_service import ALGORITHM, AUDIENCE, SessionService

PROFILE = {
    "id": "42",
    "login": "steve",
    "name": "Steve",
    "email": None,
    "avatar_url": None,
    "github_id": 42,
}


@pytest.fixture
def settings():
    return SessionSettings(session_secret="test-secret", session_ttl_seconds=3600)


@pytest.fixture
def sessions(settings):
    return SessionService(settings)


class TestEncodeDecode:
    def test_roundtrip(self, sessions):
        assert sessions.decode(sessions.encode(PROFILE)) == PROFILE

    def test_claims(self, sessions, settings):
        claims = jwt.decode(
            sessions.encode(PROFILE),
            "test-secret",
            algorithms=[ALGORITHM],
            audience=AUDIENCE,
        )
        assert claims["sub"] == "42"
        assert claims["iss"] == settings.session_issuer
        assert claims["exp"] - claims["iat"] == 3600

    @pytest.mark.parametrize("token", [None, "", "garbage"])
    def test_rejects_missing_or_garbage(self, sessions, token):
        assert sessions.decode(token) is None

    def test_rejects_other_secret(self, sessions):
        other = SessionService(SessionSettings(session_secret="another"))
        assert sessions.decode(other.encode(PROFILE)) is None

    def test_rejects_expired(self, settings):
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        old = SessionService(settings, clock=lambda: past)
        assert SessionService(settings).decode(old.encode(PROFILE)) is None

    def test_rejects_wrong_issuer(self, sessions):
        token = jwt.encode(
            {"iss": "someone-else", "aud": AUDIENCE, "user": PROFILE},
            "test-secret",
            algorithm=ALGORITHM,
        )
        assert sessions.decode(token) is None

    def test_non_dict_user_claim(self, sessions, settings):
        token = jwt.encode(
            {"iss": settings.session_issuer, "aud": AUDIENCE, "user": "steve"},
            "test-secret",
            algorithm=ALGORITHM,
        )
        assert sessions.decode(token) is None

    def test_random_secret_when_unset(self):
        a = SessionService(SessionSettings(session_secret=""))
        b = SessionService(SessionSettings(session_secret=""))
        assert a.decode(a.encode(PROFILE)) == PROFILE
        assert b.decode(a.encode(PROFILE)) is None


class TestCookies:
    def test_set_cookie(self, sessions):
        response = sessions.set_cookie(Response(), PROFILE)
        header = response.headers["set-cookie"]
        assert header.startswith("da_session=")
        assert "HttpOnly" in header
        assert "Max-Age=3600" in header
        assert "samesite=lax" in header.lower()
        assert "secure" not in header.lower().split("; ")

    def test_secure_override(self, settings):
        sessions = SessionService(settings, secure=True)
        header = sessions.set_cookie(Response(), PROFILE).headers["set-cookie"]
        assert "secure" in header.lower().split("; ")

    def test_clear_cookie(self, sessions):
        header = sessions.clear_cookie(Response()).headers["set-cookie"]
        assert header.startswith('da_session=""') or header.startswith("da_session=;")
        assert "expires=" in header.lower()
