"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).

MongoDB and Redis are both optional: without MONGODB_URI the service runs on
the in-memory store, without REDIS_URI pending OAuth states are kept in
process memory.
"""

from __future__ import annotations

from typing import Optional

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Optional; falls back to the in-memory store when unset
    mongodb_uri: Optional[str] = None
    db_name: str = "defendaminecraft"


class RedisSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    redis_uri: Optional[str] = None


class SessionSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    session_secret: str = ""
    session_cookie_name: str = "da_session"
    session_ttl_seconds: int = 30 * 24 * 60 * 60
    session_issuer: str = "defendaminecraft"
    cookie_secure: bool = False


class OAuthProviderSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    github_client_id: str = ""
    github_client_secret: str = ""
    github_redirect_uri: str = "http://localhost:3000/auth/github/callback"
    oauth_state_ttl_seconds: int = 300

    @property
    def github_configured(self) -> bool:
        return bool(self.github_client_id and self.github_client_secret)


class VerificationSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    challenge_ttl_seconds: int = 300
    default_challenge_type: str = "checkbox"
    default_difficulty: str = "medium"
    blocked_countries: list[str] = ["CN", "RU", "KP"]
    # Seeds the randomized scorer; leave unset in production
    scoring_seed: Optional[int] = None
    stats_default_days: int = 30

    @field_validator("blocked_countries", mode="after")
    @classmethod
    def _upper_country_codes(cls, v: list[str]) -> list[str]:
        return [code.strip().upper() for code in v if code.strip()]


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production

    # Sampling rates (0.0–1.0)
    sample_rate_verify: float = 1.0
    sample_rate_stats: float = 0.20


class SentrySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1
    sentry_profile_sample_rate: float = 0.05


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Core
    env: str = "development"
    app_name: str = "DefendAMinecraft"
    app_version: str = "1.0.0"
    app_url: str = "http://localhost:3000"

    cors_origins: list[str] = [
        "http://localhost:3000",
        "https://defendaminecraft.online",
    ]

    # Where OAuth failures are redirected to (with ?error=...)
    login_url: str = "/login"
    default_post_login_redirect: str = "/dashboard"

    # Seeds the demo user and demo API key on startup
    demo_mode: bool = True
    demo_api_key: str = "da_live_demo123456789abcdef"

    geoip_city_db: str = "misc/GeoLite2-City.mmdb"

    # OpenAPI docs URL (None disables the docs UI in production)
    docs_url: Optional[str] = "/openapi"

    # Sub-configs (composed via model_validator below)
    db: Optional[DatabaseSettings] = None
    redis: Optional[RedisSettings] = None
    session: Optional[SessionSettings] = None
    oauth: Optional[OAuthProviderSettings] = None
    verification: Optional[VerificationSettings] = None
    logging: Optional[LoggingSettings] = None
    sentry: Optional[SentrySettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        if self.db is None:
            self.db = DatabaseSettings()
        if self.redis is None:
            self.redis = RedisSettings()
        if self.session is None:
            self.session = SessionSettings()
        if self.oauth is None:
            self.oauth = OAuthProviderSettings()
        if self.verification is None:
            self.verification = VerificationSettings()
        if self.logging is None:
            self.logging = LoggingSettings()
        if self.sentry is None:
            self.sentry = SentrySettings()
        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"
