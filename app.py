"""
FastAPI application factory.
create_app() is the single entry point for building the app.

Collaborators that tests (or embedders) want to control can be passed in;
anything left out is built from settings in the lifespan.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.asynchronous.mongo_client import AsyncMongoClient

from config import AppSettings
from errors import register_error_handlers
from infrastructure.geoip import GeoIPService
from infrastructure.oauth_clients import GitHubOAuthClient
from infrastructure.redis_client import create_redis_client
from infrastructure.state.memory_store import MemoryStateStore
from infrastructure.state.protocol import StateStore
from infrastructure.state.redis_store import RedisStateStore
from repositories import Repositories, memory_repositories, mongo_repositories
from repositories.indexes import ensure_indexes
from routes.api_routes import router as api_router
from routes.auth_routes import router as auth_router
from routes.dashboard_routes import router as dashboard_router
from routes.health_routes import router as health_router
from services.api_key_service import ApiKeyService, seed_demo_tenant
from services.auth_service import AuthService
from services.challenge_service import ChallengeIssuer
from services.dashboard_service import DashboardService
from services.scoring import RandomScoringStrategy, Scorer, ScoringStrategy
from services.session_service import SessionService
from services.stats_service import StatsService
from services.verification_service import VerificationService
from shared.logging import get_logger, setup_logging

log = get_logger(__name__)


def _github_client(settings: AppSettings) -> Optional[GitHubOAuthClient]:
    oauth = settings.oauth
    if not oauth.github_configured:
        log.warning("github_oauth_not_configured")
        return None
    return GitHubOAuthClient(
        oauth.github_client_id,
        oauth.github_client_secret,
        oauth.github_redirect_uri,
    )


def create_app(
    settings: Optional[AppSettings] = None,
    *,
    repositories: Optional[Repositories] = None,
    scoring_strategy: Optional[ScoringStrategy] = None,
    state_store: Optional[StateStore] = None,
    geoip: Optional[GeoIPService] = None,
    oauth_client: Optional[GitHubOAuthClient] = None,
) -> FastAPI:
    """Create and return a fully configured FastAPI application."""
    if settings is None:
        settings = AppSettings()

    setup_logging(settings.logging, production=settings.is_production)

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
            profiles_sample_rate=settings.sentry.sentry_profile_sample_rate,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        app.state.settings = settings

        mongo_client: Optional[AsyncMongoClient] = None
        app.state.db = None
        repos = repositories
        if repos is None and settings.db.mongodb_uri:
            mongo_client = AsyncMongoClient(settings.db.mongodb_uri, tz_aware=True)
            app.state.db = mongo_client[settings.db.db_name]
            await ensure_indexes(app.state.db)
            repos = mongo_repositories(app.state.db)
        elif repos is None:
            log.warning("mongodb_not_configured_using_memory_store")
            repos = memory_repositories()
        app.state.repositories = repos

        # Redis is optional; pending OAuth states fall back to process memory
        redis_client = None
        states = state_store
        if states is None:
            redis_client = await create_redis_client(settings.redis.redis_uri)
            states = (
                RedisStateStore(redis_client)
                if redis_client is not None
                else MemoryStateStore()
            )
        app.state.redis = redis_client
        app.state.state_store = states

        geo = geoip if geoip is not None else GeoIPService(settings.geoip_city_db)
        app.state.geoip = geo

        verification = settings.verification
        issuer = ChallengeIssuer(
            ttl_seconds=verification.challenge_ttl_seconds,
            default_type=verification.default_challenge_type,
            default_difficulty=verification.default_difficulty,
        )
        scorer = Scorer(
            scoring_strategy or RandomScoringStrategy(verification.scoring_seed),
            verification.blocked_countries,
        )
        api_keys = ApiKeyService(repos)
        stats = StatsService(repos)

        app.state.challenge_issuer = issuer
        app.state.api_key_service = api_keys
        app.state.stats_service = stats
        app.state.verification_service = VerificationService(repos, issuer, scorer, geo)
        app.state.session_service = SessionService(
            settings.session,
            secure=settings.session.cookie_secure or settings.is_production,
        )
        app.state.auth_service = AuthService(
            repos,
            states,
            oauth_client if oauth_client is not None else _github_client(settings),
            api_keys,
            login_url=settings.login_url,
            default_redirect=settings.default_post_login_redirect,
            state_ttl_seconds=settings.oauth.oauth_state_ttl_seconds,
        )
        app.state.dashboard_service = DashboardService(repos, stats)

        if settings.demo_mode:
            await seed_demo_tenant(repos, settings.demo_api_key)

        log.info(
            "app_started",
            storage=repos.backend,
            redis=redis_client is not None,
            demo_mode=settings.demo_mode,
        )

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        await app.state.verification_service.drain()
        if geoip is None:
            geo.close()
        if mongo_client is not None:
            await mongo_client.close()
        if redis_client is not None:
            await redis_client.aclose()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )

    # all listed origins allowed with credentials support.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(api_router)
    app.include_router(auth_router)
    app.include_router(dashboard_router)

    return app
