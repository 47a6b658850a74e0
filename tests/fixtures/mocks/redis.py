from __future__ import annotations

"""
MockRedisClient (async) — test-grade, wrapper-compatible
========================================================
Covers the subset of Redis the ad engine touches through `redis_wrapper`:

KV        : get/set (ex/px/nx/xx)/exists/ttl/expire/delete
Scan      : keys (glob match)
Health    : ping/close/flushdb/flushall

Design notes
------------
- Values are stored exactly as written (bytes or str). TTLs are second/ms precision.
- Deterministic, minimal behavior for tests; not a byte-for-byte Redis emulation.
- `fail_next(exc)` makes the next command raise, to exercise fail-open paths.
"""

from fnmatch import fnmatch
from typing import Any, Dict, List, Optional
import time

_DEF_EXPIRE_NONE = None


def _now() -> float:
    return time.time()


class MockRedisClient:

    def __init__(self) -> None:
        self.store: Dict[str, Any] = {}
        self.expirations: Dict[str, Optional[float]] = {}  # epoch seconds or None
        self._closed = False
        self._fail_with: Optional[BaseException] = None

    def fail_next(self, exc: BaseException) -> None:
        self._fail_with = exc

    def _maybe_fail(self) -> None:
        if self._fail_with is not None:
            exc, self._fail_with = self._fail_with, None
            raise exc

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        self._closed = True

    async def flushdb(self) -> None:
        self.store.clear()
        self.expirations.clear()

    # Some test suites call flushall; treat it as flushdb in this mock
    async def flushall(self) -> None:
        await self.flushdb()

    # ── expiration helpers ────────────────────────────────────
    def _expired(self, key: str) -> bool:
        exp = self.expirations.get(key, _DEF_EXPIRE_NONE)
        return exp is not None and exp <= _now()

    def _purge_expired(self) -> None:
        for k in list(self.store.keys()):
            if self._expired(k):
                self.store.pop(k, None)
                self.expirations.pop(k, None)

    def _set_expiration(self, key: str, *, ex: Optional[int] = None, px: Optional[int] = None) -> None:
        if ex is not None:
            self.expirations[key] = _now() + int(ex)
        elif px is not None:
            self.expirations[key] = _now() + (int(px) / 1000.0)
        else:
            self.expirations[key] = _DEF_EXPIRE_NONE

    # ─────────────────────────────────────────────────────────
    # String / KV commands
    # ─────────────────────────────────────────────────────────

    async def get(self, key: str) -> Optional[Any]:
        self._maybe_fail()
        self._purge_expired()
        return self.store.get(key)

    async def set(
        self,
        key: str,
        value: Any,
        ex: Optional[int] = None,
        px: Optional[int] = None,
        nx: bool = False,
        xx: bool = False,
    ) -> bool:
        self._maybe_fail()
        self._purge_expired()
        exists = key in self.store
        if nx and exists:
            return False
        if xx and not exists:
            return False
        self.store[key] = value
        self._set_expiration(key, ex=ex, px=px)
        return True

    async def expire(self, key: str, time_seconds: int) -> bool:
        if key in self.store:
            self.expirations[key] = _now() + int(time_seconds)
            return True
        return False

    async def ttl(self, key: str) -> int:
        self._purge_expired()
        if key not in self.store:
            return -2
        exp = self.expirations.get(key, _DEF_EXPIRE_NONE)
        if exp is None:
            return -1
        ttl = int(round(exp - _now()))
        return max(ttl, -2)

    async def exists(self, *keys: str) -> int:
        self._purge_expired()
        return sum(1 for k in keys if k in self.store)

    async def delete(self, *keys: str) -> int:
        removed = 0
        for k in keys:
            removed += int(self.store.pop(k, None) is not None)
            self.expirations.pop(k, None)
        return removed

    async def keys(self, pattern: str = "*") -> List[str]:
        self._purge_expired()
        return [k for k in self.store if fnmatch(k, pattern)]


__all__ = ["MockRedisClient"]
