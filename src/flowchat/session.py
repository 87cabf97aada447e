"""Session storage: the store contract, cache backends and the middleware.

Sessions are JSON documents kept in a key/value cache under a derived
session key (see :mod:`flowchat.session_key`). Values cross an explicit
JSON boundary: ``set`` rejects anything ``json.dumps`` cannot encode, and
tuples come back as lists.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from collections.abc import Callable
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from kungfu import Nothing, Option, Some

from flowchat.session_key import SessionKeyStrategy

if TYPE_CHECKING:
    from flowchat.context import Context
    from flowchat.interrupt import FlowResponse

_log = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Contracts
# ═══════════════════════════════════════════════════════════════════════════════


@runtime_checkable
class SessionStore(Protocol):
    """Per-conversation key/value storage seen by flows and middleware."""

    def get(self, key: str) -> Any: ...

    def set(self, key: str, value: Any) -> Any: ...

    def delete(self, key: str) -> None: ...

    def destroy(self) -> None: ...

    def clear(self) -> None: ...

    def exists(self) -> bool: ...


@runtime_checkable
class CacheBackend(Protocol):
    """Shared string cache with per-entry expiry (Redis, memcached, memory)."""

    def read(self, key: str) -> Option[str]: ...

    def write(self, key: str, value: str, ttl: timedelta | None = None) -> None: ...

    def delete(self, key: str) -> None: ...

    def exists(self, key: str) -> bool: ...


# ═══════════════════════════════════════════════════════════════════════════════
# MemoryCache
# ═══════════════════════════════════════════════════════════════════════════════


class MemoryCache:
    """In-process cache backend for tests and single-worker deployments.

    Each read and write holds a lock; expired entries are dropped lazily.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._entries: dict[str, tuple[str, float | None]] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def read(self, key: str) -> Option[str]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return Nothing()
            value, expires_at = entry
            if expires_at is not None and expires_at <= self._clock():
                del self._entries[key]
                return Nothing()
            return Some(value)

    def write(self, key: str, value: str, ttl: timedelta | None = None) -> None:
        expires_at = self._clock() + ttl.total_seconds() if ttl is not None else None
        with self._lock:
            self._entries[key] = (value, expires_at)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def exists(self, key: str) -> bool:
        match self.read(key):
            case Some(_):
                return True
            case _:
                return False

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


# ═══════════════════════════════════════════════════════════════════════════════
# CacheSessionStore
# ═══════════════════════════════════════════════════════════════════════════════


class CacheSessionStore:
    """Session stored as one JSON object under ``session_key``.

    The TTL is re-applied on every write. ``set`` and ``delete`` are a
    read-merge-write of the whole document and are not atomic: two
    concurrent requests on the same session can lose one update. Flows are
    single-user conversations, so this is accepted rather than locked.
    """

    def __init__(
        self,
        cache: CacheBackend,
        session_key: str,
        ttl: timedelta | None = None,
    ) -> None:
        self._cache = cache
        self._key = session_key
        self._ttl = ttl
        _log.debug("session: store initialized for %s", session_key)

    @property
    def key(self) -> str:
        return self._key

    def _load(self) -> dict[str, Any] | None:
        match self._cache.read(self._key):
            case Some(blob):
                return json.loads(blob)
            case _:
                return None

    def _save(self, data: dict[str, Any]) -> None:
        self._cache.write(self._key, json.dumps(data), self._ttl)

    def get(self, key: str) -> Any:
        data = self._load()
        if data is None:
            _log.debug("session: miss for %s", self._key)
            return None
        return data.get(key)

    def set(self, key: str, value: Any) -> Any:
        """Store ``value`` under ``key``.

        :raises TypeError: if ``value`` is not JSON-serializable
        """
        data = self._load() or {}
        data[key] = value
        self._save(data)
        _log.debug("session: set %r in %s (ttl=%s)", key, self._key, self._ttl)
        return value

    def delete(self, key: str) -> None:
        data = self._load()
        if data is None or key not in data:
            return
        del data[key]
        self._save(data)
        _log.debug("session: deleted %r from %s", key, self._key)

    def destroy(self) -> None:
        self._cache.delete(self._key)
        _log.debug("session: destroyed %s", self._key)

    clear = destroy

    def exists(self) -> bool:
        return self._cache.exists(self._key)


# ═══════════════════════════════════════════════════════════════════════════════
# Middleware
# ═══════════════════════════════════════════════════════════════════════════════


class SessionMiddleware:
    """Attach a ``CacheSessionStore`` to the context (``session.id``, ``session``)."""

    def __init__(
        self,
        cache: CacheBackend,
        strategy: SessionKeyStrategy,
        ttl: timedelta | None = None,
    ) -> None:
        self._cache = cache
        self._strategy = strategy
        self._ttl = ttl

    def __call__(
        self,
        context: Context,
        call_next: Callable[[Context], FlowResponse],
    ) -> FlowResponse:
        session_key = self._strategy.key_for(context)
        context["session.id"] = session_key
        context.session = CacheSessionStore(self._cache, session_key, self._ttl)
        return call_next(context)


__all__ = (
    "CacheBackend",
    "CacheSessionStore",
    "MemoryCache",
    "SessionMiddleware",
    "SessionStore",
)
