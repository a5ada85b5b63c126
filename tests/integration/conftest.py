"""
Integration test configuration.

Apps are built with create_app() on the in-memory repositories, an
in-process state store, deterministic scoring and a fake GitHub client, so
no network connection is ever made.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app import create_app
from config import (
    AppSettings,
    DatabaseSettings,
    OAuthProviderSettings,
    RedisSettings,
    SessionSettings,
)
from infrastructure.geoip import UNKNOWN_LOCATION
from infrastructure.state.memory_store import MemoryStateStore
from repositories import memory_repositories
from services.scoring import DeterministicScoringStrategy

DEMO_KEY = "da_live_demo123456789abcdef"

CHROME_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

GITHUB_PROFILE = {
    "github_id": 4242,
    "login": "steve",
    "name": "Steve",
    "email": "steve@example.com",
    "avatar_url": "https://avatars.example/4242",
}


@pytest.fixture(autouse=True)
def disable_dotenv_loading(monkeypatch):
    """Prevent pydantic-settings from loading .env files in integration tests."""
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})


class StubGeoIP:
    async def lookup(self, ip_address):
        return UNKNOWN_LOCATION

    def close(self) -> None:
        pass


class FakeGitHub:
    def __init__(self, profile=None):
        self.profile = dict(profile or GITHUB_PROFILE)

    def authorization_url(self, state: str) -> str:
        return f"https://github.com/login/oauth/authorize?client_id=test&state={state}"

    async def exchange_code(self, code: str) -> dict:
        return {"access_token": "gho_test"}

    async def fetch_profile(self, token: dict) -> dict:
        return dict(self.profile)


def build_settings(**overrides) -> AppSettings:
    values = dict(
        env="test",
        demo_mode=True,
        demo_api_key=DEMO_KEY,
        db=DatabaseSettings(mongodb_uri=None),
        redis=RedisSettings(redis_uri=None),
        session=SessionSettings(session_secret="integration-secret"),
        oauth=OAuthProviderSettings(
            github_client_id="client-id", github_client_secret="client-secret"
        ),
    )
    values.update(overrides)
    return AppSettings(**values)


def _build_test_app(settings=None, *, oauth_client="fake", repositories=None, strategy=None):
    return create_app(
        settings or build_settings(),
        repositories=repositories if repositories is not None else memory_repositories(),
        scoring_strategy=strategy or DeterministicScoringStrategy(),
        state_store=MemoryStateStore(),
        geoip=StubGeoIP(),
        oauth_client=FakeGitHub() if oauth_client == "fake" else oauth_client,
    )


@pytest.fixture
def make_settings():
    return build_settings


@pytest.fixture
def make_app():
    return _build_test_app


@pytest.fixture
def repos():
    return memory_repositories()


@pytest.fixture
def app(repos):
    return _build_test_app(repositories=repos)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def signed_in(client):
    """Complete the GitHub flow so the client carries a session cookie."""
    start = client.get("/auth/github", follow_redirects=False)
    state = start.headers["location"].split("state=")[1]
    resp = client.get(
        "/auth/github/callback",
        params={"code": "abc", "state": state},
        follow_redirects=False,
    )
    assert resp.status_code == 302
    return client
