"""Unit tests for the API key gate and key management."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from errors import InvalidApiKeyError, MissingApiKeyError, NotFoundError
from repositories import memory_repositories
from schemas.models.api_key import ApiKeyDoc
from schemas.models.security_event import SecurityEventDoc
from services.api_key_service import (
    DEFAULT_KEY_NAME,
    DEMO_KEY_ID,
    DEMO_USER_ID,
    ApiKeyService,
    extract_api_key,
    record_security_event,
    seed_demo_tenant,
)

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def repos():
    return memory_repositories()


@pytest.fixture
def service(repos):
    return ApiKeyService(repos, clock=lambda: NOW)


async def _insert_key(repos, value="da_live_abc", user_id="u1", **extra):
    return await repos.api_keys.insert(
        ApiKeyDoc(
            user_id=user_id,
            name="Site",
            key_value=value,
            created_at=NOW,
            **extra,
        )
    )


# ── extract_api_key ───────────────────────────────────────────────────────────


class TestExtractApiKey:
    def test_header_wins(self):
        got = extract_api_key({"X-API-Key": "h"}, {"apiKey": "b"}, {"apiKey": "q"})
        assert got == "h"

    def test_body_before_query(self):
        assert extract_api_key({}, {"apiKey": "b"}, {"apiKey": "q"}) == "b"

    def test_query_last(self):
        assert extract_api_key({}, None, {"apiKey": "q"}) == "q"

    def test_empty_header_falls_through(self):
        assert extract_api_key({"X-API-Key": ""}, {"apiKey": "b"}, {}) == "b"

    def test_non_string_body_value_ignored(self):
        assert extract_api_key({}, {"apiKey": 12}, {}) is None

    def test_body_not_a_mapping(self):
        assert extract_api_key({}, ["apiKey"], {"apiKey": "q"}) == "q"

    def test_nothing_present(self):
        assert extract_api_key({}, None, {}) is None


# ── authenticate ──────────────────────────────────────────────────────────────


class TestAuthenticate:
    @pytest.mark.parametrize("value", [None, ""])
    async def test_missing(self, service, value):
        with pytest.raises(MissingApiKeyError) as exc:
            await service.authenticate(value)
        assert exc.value.to_dict()["error"] == "API key required"
        assert exc.value.status_code == 401

    async def test_unknown_key(self, service):
        with pytest.raises(InvalidApiKeyError) as exc:
            await service.authenticate("da_live_nope")
        assert exc.value.error_code == "invalid_key"

    async def test_inactive_key_rejected(self, service, repos):
        await _insert_key(repos, is_active=False)
        with pytest.raises(InvalidApiKeyError):
            await service.authenticate("da_live_abc")

    async def test_usage_recorded(self, service, repos):
        key = await _insert_key(repos)
        got = await service.authenticate("da_live_abc")
        assert got.id == key.id
        assert got.usage_count == 1
        assert got.last_used_at == NOW

    async def test_concurrent_usage_not_lost(self, service, repos):
        key = await _insert_key(repos)
        await asyncio.gather(*(service.authenticate("da_live_abc") for _ in range(20)))
        stored = await repos.api_keys.find_active_by_value("da_live_abc")
        assert stored.id == key.id
        assert stored.usage_count == 20

    async def test_deactivated_between_lookup_and_increment(self, service, repos, mocker):
        await _insert_key(repos)
        mocker.patch.object(repos.api_keys, "record_usage", return_value=None)
        with pytest.raises(InvalidApiKeyError):
            await service.authenticate("da_live_abc")


# ── create / delete ───────────────────────────────────────────────────────────


class TestCreateKey:
    async def test_creates_active_key(self, service):
        key = await service.create_key("u1", "Shop", "production", "shop.example")
        assert key.is_active
        assert key.key_value.startswith("da_live_")
        assert key.environment == "production"
        assert key.domain == "shop.example"
        assert key.created_at == NOW

    async def test_key_values_unique(self, service):
        a = await service.create_key("u1", "a")
        b = await service.create_key("u1", "b")
        assert a.key_value != b.key_value

    async def test_records_security_event(self, service, repos):
        key = await service.create_key(
            "u1", "Shop", ip_address="1.2.3.4", user_agent="ua"
        )
        events = await repos.security_events.list_for_user("u1")
        assert len(events) == 1
        event = events[0]
        assert event.event_type == "api_key_created"
        assert event.api_key_id == key.id
        assert event.ip_address == "1.2.3.4"
        assert event.description == "API key 'Shop' created"

    async def test_listed_newest_first(self, service, repos):
        await _insert_key(repos, value="old")
        newer = await repos.api_keys.insert(
            ApiKeyDoc(
                user_id="u1",
                name="New",
                key_value="new",
                created_at=NOW + timedelta(minutes=1),
            )
        )
        keys = await service.list_keys("u1")
        assert keys[0].id == newer.id
        assert len(keys) == 2


class TestDeleteKey:
    async def test_soft_delete(self, service, repos):
        key = await service.create_key("u1", "Shop")
        await service.delete_key("u1", key.id)
        assert await service.list_keys("u1") == []
        with pytest.raises(InvalidApiKeyError):
            await service.authenticate(key.key_value)

    async def test_event_severity_warning(self, service, repos):
        key = await service.create_key("u1", "Shop")
        await service.delete_key("u1", key.id)
        events = await repos.security_events.list_for_user("u1")
        deleted = [e for e in events if e.event_type == "api_key_deleted"]
        assert len(deleted) == 1
        assert deleted[0].severity == "warning"

    async def test_other_users_key_not_found(self, service):
        key = await service.create_key("u1", "Shop")
        with pytest.raises(NotFoundError) as exc:
            await service.delete_key("u2", key.id)
        assert exc.value.status_code == 404
        assert exc.value.to_dict()["error"] == "API key not found"

    async def test_already_deleted_not_found(self, service):
        key = await service.create_key("u1", "Shop")
        await service.delete_key("u1", key.id)
        with pytest.raises(NotFoundError):
            await service.delete_key("u1", key.id)


class TestEnsureDefaultKey:
    async def test_creates_first_key(self, service):
        key = await service.ensure_default_key("u1")
        assert key.name == DEFAULT_KEY_NAME
        assert key.environment == "development"

    async def test_noop_when_key_exists(self, service):
        await service.ensure_default_key("u1")
        assert await service.ensure_default_key("u1") is None
        assert len(await service.list_keys("u1")) == 1


# ── module helpers ────────────────────────────────────────────────────────────


async def test_record_security_event_swallows_failure(repos, mocker):
    mocker.patch.object(
        repos.security_events, "append", side_effect=RuntimeError("db down")
    )
    event = SecurityEventDoc(user_id="u1", event_type="login", created_at=NOW)
    await record_security_event(repos, event)


class TestSeedDemoTenant:
    async def test_seeds_user_and_key(self, repos):
        await seed_demo_tenant(repos, "demo_key", clock=lambda: NOW)
        assert (await repos.users.get(DEMO_USER_ID)).login == "demo"
        key = await repos.api_keys.find_active_by_value("demo_key")
        assert key.id == DEMO_KEY_ID
        assert key.user_id == DEMO_USER_ID

    async def test_idempotent(self, repos):
        await seed_demo_tenant(repos, "demo_key")
        await seed_demo_tenant(repos, "demo_key")
        assert await repos.api_keys.count_active_for_user(DEMO_USER_ID) == 1

    async def test_storage_failure_logged(self, repos, mocker):
        mocker.patch.object(repos.users, "get", side_effect=RuntimeError("db down"))
        await seed_demo_tenant(repos, "demo_key")
        assert await repos.api_keys.find_active_by_value("demo_key") is None
