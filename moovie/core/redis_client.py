# moovie/core/redis_client.py
from __future__ import annotations

"""
Moovie — Redis Client (Async)
=============================
Single source of truth for Redis access in the app. The ad engine uses it to
keep per-visitor frequency maps when `ADS_FREQUENCY_BACKEND=redis`.

What this provides
------------------
• Resilient connection manager with retries & backoff
• Pooled async client with health checks
• Generic JSON set/get helpers (TTL-aware)

Public API (imported as `redis_wrapper`)
----------------------------------------
- await redis_wrapper.connect() / await redis_wrapper.close() / await redis_wrapper.is_connected()
- redis_wrapper.client
- await redis_wrapper.json_set(key, value, ttl_seconds=None)
- await redis_wrapper.json_get(key, default=None)
"""

import asyncio
import json
import logging
import os
import random
from typing import Any, Optional, Protocol
from urllib.parse import urlparse

import redis.asyncio as redis
from redis.exceptions import RedisError

from moovie.core.config import settings

logger = logging.getLogger("moovie.redis")

# ─────────────────────────────────────────────────────────────────────────────
# Tunables (env-aware sensible defaults)
# ─────────────────────────────────────────────────────────────────────────────
MAX_RETRIES = int(os.getenv("REDIS_CONNECT_MAX_RETRIES", "5"))
BASE_DELAY = float(os.getenv("REDIS_CONNECT_BASE_DELAY", "0.3"))  # seconds
HEALTH_CHECK_INTERVAL = int(os.getenv("REDIS_HEALTH_CHECK_INTERVAL", "30"))  # seconds
SOCKET_TIMEOUT = float(os.getenv("REDIS_SOCKET_TIMEOUT", "3"))
SOCKET_CONNECT_TIMEOUT = float(os.getenv("REDIS_SOCKET_CONNECT_TIMEOUT", "3"))
POOL_MAX_CONNECTIONS = int(os.getenv("REDIS_POOL_MAX_CONNECTIONS", "64"))
CLIENT_NAME = os.getenv("REDIS_CLIENT_NAME", "moovie-ads")


class _RedisProto(Protocol):
    async def ping(self) -> Any: ...
    async def set(self, name: str, value: Any, *, ex: Optional[int] = None) -> Any: ...
    async def get(self, name: str) -> Any: ...
    async def delete(self, *names: Any) -> Any: ...
    async def close(self) -> Any: ...


# ─────────────────────────────────────────────────────────────────────────────
# Client
# ─────────────────────────────────────────────────────────────────────────────
class RedisClient:
    """
    Singleton Redis connection manager (asyncio).

    Features
    --------
    • Resilient connect with exponential backoff + jitter
    • Pooled connections, health checks
    • JSON helpers with optional TTL
    """

    def __init__(self, redis_url: str):
        self.redis_url = redis_url
        self._client: Optional[_RedisProto] = None

    # ── lifecycle ────────────────────────────────────────────────────────────
    async def connect(self) -> None:
        """
        Establish a connection with retries.

        Steps
        -----
        - **[Step 1]** Reuse a healthy client when possible.
        - **[Step 2]** Attempt connection with backoff and jitter.
        """
        # ── [Step 1] Reuse an existing healthy client ───────────────────────
        if self._client:
            try:
                await self._client.ping()
                logger.debug("Redis already connected.")
                return
            except Exception:
                self._client = None  # stale client → reconnect

        attempt = 0
        last_err: Optional[Exception] = None

        # ── [Step 2] Retry with backoff ─────────────────────────────────────
        while attempt < MAX_RETRIES:
            attempt += 1
            try:
                self._client = self._build_client()
                await self._client.ping()
                logger.info("✅ Connected to Redis")
                return
            except Exception as e:  # noqa: BLE001
                last_err = e
                self._client = None
                delay = self._backoff(attempt)
                logger.warning(
                    "Redis connect attempt %s/%s failed: %s (retrying in %.2fs)",
                    attempt, MAX_RETRIES, repr(e), delay,
                )
                await asyncio.sleep(delay)

        logger.error("❌ Redis connection failed after %s retries.", MAX_RETRIES)
        raise RuntimeError("Redis connection failed") from last_err

    async def close(self) -> None:
        """Gracefully close the connection and its pool."""
        if not self._client:
            return
        try:
            await self._client.close()
            pool = getattr(self._client, "connection_pool", None)
            if pool:
                try:
                    await pool.disconnect(inuse_connections=True)  # type: ignore[attr-defined]
                except Exception:
                    pass
            logger.info("🛑 Redis connection closed.")
        except RedisError as e:
            logger.warning("Error closing Redis connection: %s", e)
        finally:
            self._client = None

    async def is_connected(self) -> bool:
        """Return True if `PING` succeeds (healthy connection)."""
        if not self._client:
            return False
        try:
            return bool(await self._client.ping())
        except RedisError:
            return False

    @property
    def client(self) -> _RedisProto:
        """Low-level client; ensure `connect()` was called at startup."""
        if not self._client:
            raise RuntimeError("Redis client not initialized. Call connect() first.")
        return self._client

    # ── helpers: JSON ────────────────────────────────────────────────────────
    async def json_set(self, key: str, value: Any, *, ttl_seconds: Optional[int] = None) -> None:
        """Generic JSON setter with optional TTL."""
        data = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
        if ttl_seconds:
            await self.client.set(key, data, ex=int(ttl_seconds))
        else:
            await self.client.set(key, data)

    async def json_get(self, key: str, default: Any = None) -> Any:
        """Generic JSON getter; `default` on missing keys.

        Parse errors propagate so callers can decide how to degrade.
        """
        raw = await self.client.get(key)
        if raw is None:
            return default
        if isinstance(raw, (bytes, bytearray)):
            raw = raw.decode("utf-8", errors="replace")
        return json.loads(raw)

    # ── internals ───────────────────────────────────────────────────────────
    def _build_client(self) -> _RedisProto:
        """Instantiate a Redis client with sane pool options from URL."""
        url = self.redis_url.strip()
        parsed = urlparse(url)
        client_kwargs = dict(
            decode_responses=True,
            health_check_interval=HEALTH_CHECK_INTERVAL,
            socket_keepalive=True,
            socket_timeout=SOCKET_TIMEOUT,
            socket_connect_timeout=SOCKET_CONNECT_TIMEOUT,
            retry_on_timeout=True,
            max_connections=POOL_MAX_CONNECTIONS,
            client_name=CLIENT_NAME,
        )
        if parsed.scheme.startswith("rediss"):
            cert_reqs = os.getenv("REDIS_SSL_CERT_REQS", "required").lower()
            if cert_reqs == "none":  # dev only
                client_kwargs["ssl_cert_reqs"] = None  # type: ignore
        return redis.Redis.from_url(url, **client_kwargs)

    @staticmethod
    def _backoff(attempt: int) -> float:
        # Exponential backoff with jitter (cap at 3s)
        return min(3.0, BASE_DELAY * (2 ** (attempt - 1))) + random.uniform(0, 0.25)


# ─────────────────────────────────────────────────────────────────────────────
# Singleton instance
# ─────────────────────────────────────────────────────────────────────────────
redis_wrapper = RedisClient(getattr(settings, "REDIS_URL", "redis://localhost:6379/0"))

__all__ = ["RedisClient", "redis_wrapper"]
