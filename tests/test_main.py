"""Application factory and health check tests."""

from __future__ import annotations

import httpx
import pytest

from leaveflow.cache import BackgroundRefresher
from leaveflow.config import Settings
from leaveflow.main import create_backend, create_cache, create_refresher
from leaveflow.storage import EmbeddedBackend, RemoteBackend
from scripts.healthcheck import (
    EXIT_OK,
    EXIT_PARTIAL,
    EXIT_UNREACHABLE,
    CheckResult,
    exit_code,
    run_healthcheck,
)
from tests.conftest import TEST_DATABASE_URL


# ═════════════════════════════════════════════════════════════════════
# 1. Factory
# ═════════════════════════════════════════════════════════════════════


class TestFactory:
    """Backend selection and cache start-up."""

    async def test_embedded_without_api_url(self):
        backend = create_backend(Settings(API_URL="", DATABASE_URL=TEST_DATABASE_URL))
        assert isinstance(backend, EmbeddedBackend)
        await backend.close()

    async def test_remote_with_api_url(self):
        backend = create_backend(Settings(API_URL=" http://hr.example.test/ "))
        assert isinstance(backend, RemoteBackend)
        await backend.close()

    async def test_create_cache_loads_snapshots(self):
        cache = await create_cache(Settings(API_URL="", DATABASE_URL=TEST_DATABASE_URL))
        assert len(cache.get_leave_types()) == 9
        assert cache.get_holidays()
        assert cache.last_sync is not None
        await cache.backend.close()

    async def test_unreachable_remote_at_start(self):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("down", request=request)

        backend = RemoteBackend(
            "http://hr.example.test",
            email="admin@example.test",
            password="secret",
            transport=httpx.MockTransport(refuse),
        )
        cache = await create_cache(backend=backend)

        assert cache.backend_unreachable
        assert len(cache.get_leave_types()) == 9
        assert cache.get_employees() == []
        await backend.close()

    async def test_refresher_uses_configured_interval(self):
        cache = await create_cache(Settings(API_URL="", DATABASE_URL=TEST_DATABASE_URL))
        refresher = create_refresher(cache, Settings(REFRESH_INTERVAL_SECONDS=2.5))
        assert isinstance(refresher, BackgroundRefresher)
        assert not refresher.running
        await cache.backend.close()

    def test_settings_remote_flag(self):
        assert not Settings(API_URL="   ").is_remote
        assert Settings(API_URL="http://x/").api_base_url == "http://x"


# ═════════════════════════════════════════════════════════════════════
# 2. Health check
# ═════════════════════════════════════════════════════════════════════


class TestHealthcheck:

    async def test_embedded_store_healthy(self):
        results = await run_healthcheck(Settings(API_URL="", DATABASE_URL=TEST_DATABASE_URL))
        assert [r.name for r in results] == ["Backend Status", "Full Reload"]
        assert exit_code(results) == EXIT_OK

    @pytest.mark.parametrize(
        "results, expected",
        [
            ([CheckResult("a", True, "")], EXIT_OK),
            ([CheckResult("a", True, ""), CheckResult("b", False, "")], EXIT_PARTIAL),
            ([CheckResult("a", False, "", critical=True)], EXIT_UNREACHABLE),
        ],
    )
    def test_exit_codes(self, results, expected):
        assert exit_code(results) == expected
