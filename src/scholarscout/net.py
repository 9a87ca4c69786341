from __future__ import annotations

import hashlib
import json
import threading
import time
from typing import Any
from urllib.parse import urlparse


class SessionCache:
    """In-process response cache; nothing outlives the running session."""

    def __init__(self) -> None:
        self._data: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def get(self, key: str) -> Any | None:
        with self._lock:
            row = self._data.get(key)
            if row is None:
                return None
            if time.time() >= row["expires"]:
                del self._data[key]
                return None
            return row["payload"]

    def set(self, key: str, payload: Any, ttl_seconds: int) -> None:
        now = time.time()
        with self._lock:
            for stale in [k for k, row in self._data.items() if now >= row["expires"]]:
                del self._data[stale]
            self._data[key] = {"expires": now + ttl_seconds, "payload": payload}

    def clear(self) -> None:
        with self._lock:
            self._data.clear()


_CACHE = SessionCache()
_LAST_CALL: dict[str, float] = {}
_THROTTLE_LOCK = threading.Lock()
_LAST_CALL_KEEP_SEC = 60.0


def _cache_key(url: str, params: dict[str, str] | None, headers: dict[str, str] | None) -> str:
    safe_headers = {k.lower(): len(v or "") for k, v in (headers or {}).items()}
    blob = json.dumps(
        {
            "url": url,
            "params": params or {},
            "headers": safe_headers,
        },
        sort_keys=True,
        ensure_ascii=True,
    )
    return hashlib.sha256(blob.encode("utf-8")).hexdigest()


def _throttle(url: str, min_interval_sec: float) -> None:
    # Reserve the next slot under the lock, sleep outside it.
    host = urlparse(url).netloc
    with _THROTTLE_LOCK:
        now = time.time()
        for idle in [h for h, t in _LAST_CALL.items() if t < now - _LAST_CALL_KEEP_SEC]:
            del _LAST_CALL[idle]
        prev = _LAST_CALL.get(host)
        slot = now if prev is None else max(now, prev + min_interval_sec)
        _LAST_CALL[host] = slot
    wait = slot - now
    if wait > 0:
        time.sleep(wait)


def cached_get_json(
    client: Any,
    url: str,
    *,
    params: dict[str, str] | None = None,
    headers: dict[str, str] | None = None,
    ttl_seconds: int = 2 * 60 * 60,
    min_interval_sec: float = 0.0,
) -> Any:
    key = _cache_key(url, params, headers)
    if ttl_seconds > 0:
        cached = _CACHE.get(key)
        if cached is not None:
            return cached
    if min_interval_sec > 0:
        _throttle(url, min_interval_sec)
    resp = client.get(url, params=params, headers=headers)
    resp.raise_for_status()
    payload = resp.json()
    if ttl_seconds > 0:
        _CACHE.set(key, payload, ttl_seconds)
    return payload
