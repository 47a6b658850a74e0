# tests/conftest.py
"""
Global test bootstrap
- Mounts a mock Redis client into moovie.core.redis_client
- Makes SlowAPI rate-limiting test-friendly (bypass by default)
- Resets the process-wide ad state (repository, engine, zone cache,
  frequency maps) around every test
"""

from __future__ import annotations

import os
import random

import pytest

# ──────────────────────────────────────────────────────────────────────────────
# 🌱 Test env (set BEFORE importing moovie so import-time reads pick it up)
# ──────────────────────────────────────────────────────────────────────────────
os.environ.setdefault("RATELIMIT_STORAGE_URI", "memory://")
os.environ.setdefault("RATE_LIMIT_ENABLED", "true")
os.environ.setdefault("RATE_LIMIT_TEST_BYPASS", "1")
os.environ.setdefault("RATE_LIMIT_NAMESPACE", f"pytest-{random.getrandbits(32)}")
os.environ.setdefault("ADS_REPOSITORY", "memory")
os.environ.setdefault("ADS_FREQUENCY_BACKEND", "memory")

# ──────────────────────────────────────────────────────────────────────────────
# 🧪 Install mock Redis globally before any tests run
# ──────────────────────────────────────────────────────────────────────────────
from moovie.core.redis_client import redis_wrapper
from tests.fixtures.mocks.redis import MockRedisClient

redis_wrapper._client = MockRedisClient()

from moovie.repositories.ads import set_ads_repository
from moovie.services.ads.engine import reset_ad_engine
from moovie.services.ads.frequency import reset_memory_frequency_maps

from tests.fixtures.ads import *  # noqa: F401,F403


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _reset_ad_state():
    set_ads_repository(None)
    reset_ad_engine()
    reset_memory_frequency_maps()
    yield
    set_ads_repository(None)
    reset_ad_engine()
    reset_memory_frequency_maps()


# ──────────────────────────────────────────────────────────────────────────────
# 🔌 Redis fixture (function-scoped), cleared between tests
# ──────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
async def redis_client():
    """
    ✅ Use this when you want to inspect or modify Redis directly in a test.
    """
    client = redis_wrapper.client
    await client.flushall()
    yield client
    await client.flushall()
