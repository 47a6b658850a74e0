from __future__ import annotations

import time
from typing import Any, Callable, Dict, Optional


class TTLMap:
    """In-memory TTL map for small per-process state.

    - get(key) -> Optional[Any]
    - set(key, value, ttl_seconds)

    Re-setting a key refreshes its expiry. When full, expired keys go first,
    then the oldest inserted one.
    """

    def __init__(self, maxsize: int = 4096, *, clock: Callable[[], float] = time.time):
        self.maxsize = maxsize
        self._data: Dict[str, Any] = {}
        self._exp: Dict[str, float] = {}
        self._clock = clock

    def __len__(self) -> int:
        return len(self._data)

    def get(self, key: str) -> Optional[Any]:
        exp = self._exp.get(key)
        if exp is None:
            return None
        if self._clock() >= exp:
            self._data.pop(key, None)
            self._exp.pop(key, None)
            return None
        return self._data.get(key)

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        if key not in self._data and len(self._data) >= self.maxsize:
            self.purge_expired()
            if len(self._data) >= self.maxsize:
                old_key = next(iter(self._data))
                self._data.pop(old_key, None)
                self._exp.pop(old_key, None)
        self._data[key] = value
        self._exp[key] = self._clock() + ttl_seconds

    def purge_expired(self) -> int:
        now = self._clock()
        stale = [k for k, exp in self._exp.items() if now >= exp]
        for key in stale:
            self._data.pop(key, None)
            self._exp.pop(key, None)
        return len(stale)

    def clear(self) -> None:
        self._data.clear()
        self._exp.clear()
