"""Tests for session storage: MemoryCache, CacheSessionStore, SessionMiddleware."""

from __future__ import annotations

from datetime import timedelta

import pytest

from kungfu import Nothing, Some

from flowchat.context import Context
from flowchat.interrupt import FlowResponse
from flowchat.session import (
    CacheBackend,
    CacheSessionStore,
    MemoryCache,
    SessionMiddleware,
    SessionStore,
)
from flowchat.session_key import Boundary, IdentifierStrategy, SessionKeyStrategy, short_hash


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


# ═══════════════════════════════════════════════════════════════════════════════
# MemoryCache
# ═══════════════════════════════════════════════════════════════════════════════


class TestMemoryCache:
    def test_read_missing(self) -> None:
        assert MemoryCache().read("nope") == Nothing()

    def test_write_then_read(self) -> None:
        cache = MemoryCache()
        cache.write("k", "v")
        assert cache.read("k") == Some("v")
        assert cache.exists("k")

    def test_ttl_expiry(self) -> None:
        clock = FakeClock()
        cache = MemoryCache(clock=clock)
        cache.write("k", "v", timedelta(seconds=30))

        clock.now += 29
        assert cache.exists("k")

        clock.now += 1
        assert not cache.exists("k")
        assert len(cache) == 0

    def test_no_ttl_never_expires(self) -> None:
        clock = FakeClock()
        cache = MemoryCache(clock=clock)
        cache.write("k", "v")
        clock.now += 10**9
        assert cache.read("k") == Some("v")

    def test_delete(self) -> None:
        cache = MemoryCache()
        cache.write("k", "v")
        cache.delete("k")
        cache.delete("k")
        assert not cache.exists("k")

    def test_satisfies_protocol(self) -> None:
        assert isinstance(MemoryCache(), CacheBackend)


# ═══════════════════════════════════════════════════════════════════════════════
# CacheSessionStore
# ═══════════════════════════════════════════════════════════════════════════════


class TestCacheSessionStore:
    def test_get_missing_session(self) -> None:
        store = CacheSessionStore(MemoryCache(), "s")
        assert store.get("name") is None
        assert not store.exists()

    def test_set_returns_value(self) -> None:
        store = CacheSessionStore(MemoryCache(), "s")
        assert store.set("name", "Ada") == "Ada"
        assert store.get("name") == "Ada"
        assert store.exists()

    def test_values_cross_json_boundary(self) -> None:
        store = CacheSessionStore(MemoryCache(), "s")
        store.set("pair", (1, 2))
        store.set("flag", False)
        store.set("nested", {"a": [1, None]})
        assert store.get("pair") == [1, 2]
        assert store.get("flag") is False
        assert store.get("nested") == {"a": [1, None]}

    def test_unserializable_value_rejected(self) -> None:
        store = CacheSessionStore(MemoryCache(), "s")
        with pytest.raises(TypeError):
            store.set("bad", object())

    def test_whole_document_under_one_key(self) -> None:
        cache = MemoryCache()
        store = CacheSessionStore(cache, "s")
        store.set("a", 1)
        store.set("b", 2)
        assert len(cache) == 1
        assert cache.read("s") == Some('{"a": 1, "b": 2}')

    def test_delete_key(self) -> None:
        store = CacheSessionStore(MemoryCache(), "s")
        store.set("a", 1)
        store.set("b", 2)
        store.delete("a")
        store.delete("missing")
        assert store.get("a") is None
        assert store.get("b") == 2

    def test_delete_on_missing_session_is_noop(self) -> None:
        cache = MemoryCache()
        CacheSessionStore(cache, "s").delete("a")
        assert len(cache) == 0

    def test_destroy_and_clear(self) -> None:
        cache = MemoryCache()
        store = CacheSessionStore(cache, "s")
        store.set("a", 1)
        store.destroy()
        assert not store.exists()

        store.set("a", 1)
        store.clear()
        assert not store.exists()

    def test_ttl_refreshed_on_write(self) -> None:
        clock = FakeClock()
        store = CacheSessionStore(MemoryCache(clock=clock), "s", timedelta(seconds=60))
        store.set("a", 1)
        clock.now += 50
        store.set("b", 2)
        clock.now += 50
        assert store.get("a") == 1

    def test_sessions_are_isolated(self) -> None:
        cache = MemoryCache()
        CacheSessionStore(cache, "one").set("a", 1)
        assert CacheSessionStore(cache, "two").get("a") is None

    def test_satisfies_protocol(self) -> None:
        assert isinstance(CacheSessionStore(MemoryCache(), "s"), SessionStore)


# ═══════════════════════════════════════════════════════════════════════════════
# SessionMiddleware
# ═══════════════════════════════════════════════════════════════════════════════


class TestSessionMiddleware:
    def test_attaches_store(self) -> None:
        cache = MemoryCache()
        strategy = SessionKeyStrategy(
            boundaries=(Boundary.FLOW,),
            identifier=IdentifierStrategy.EPHEMERAL,
            hash_identifiers=False,
        )
        middleware = SessionMiddleware(cache, strategy, timedelta(minutes=5))
        context = Context({"flow.name": "signup", "request.id": "abc"})
        seen: list[Context] = []

        def terminal(ctx: Context) -> FlowResponse:
            seen.append(ctx)
            ctx.require_session().set("hit", True)
            return FlowResponse.terminal("done")

        response = middleware(context, terminal)

        assert response == FlowResponse.terminal("done")
        assert seen == [context]
        assert context["session.id"] == "flowchat:session:signup:abc"
        assert CacheSessionStore(cache, "flowchat:session:signup:abc").get("hit") is True

    def test_hashes_identifier(self) -> None:
        strategy = SessionKeyStrategy((), IdentifierStrategy.DURABLE)
        context = Context({"request.msisdn": "+233244123456"})
        SessionMiddleware(MemoryCache(), strategy)(context, lambda ctx: FlowResponse.terminal("x"))
        assert context["session.id"] == f"flowchat:session:{short_hash('+233244123456')}"
