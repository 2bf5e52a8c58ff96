"""Tests for resource caching strategies and routing.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

import asyncio
import gzip
import re

import httpx
import pytest

from frontcache_core.metrics.collector import MetricsCollector
from frontcache_core.resource.dispatcher import DEFAULT_PATTERNS, Dispatcher, ResourcePattern
from frontcache_core.resource.namespace import CacheStorage
from frontcache_core.resource.response import StoredResponse, request_key
from frontcache_core.resource.strategy import (
    EXECUTORS,
    Strategy,
    StrategyContext,
    cache_first,
    cache_only,
    network_first,
    network_only,
    stale_while_revalidate,
)
from frontcache_core.resource.tasks import BackgroundTasks
from frontcache_core.store.memory import MemoryAdapter

ORIGIN = "https://memory.example"


class Backend:
    """Scriptable MockTransport handler."""

    def __init__(self, body: str = "v1"):
        self.body = body
        self.online = True
        self.calls = 0

    def __call__(self, request):
        self.calls += 1
        if not self.online:
            raise httpx.ConnectError("offline", request=request)
        return httpx.Response(200, text=self.body)


def make_context(handler, storage=None):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return StrategyContext(
        client=client,
        storage=storage or CacheStorage(),
        metrics=MetricsCollector(),
        tasks=BackgroundTasks(),
        offline_fallback=lambda request: httpx.Response(200, html="offline", request=request),
    )


def get(url, **headers):
    return httpx.Request("GET", url, headers=headers)


class TestStoredResponse:
    """Tests for response snapshots."""

    def test_fragment_ignored(self):
        """Test lookups ignore URL fragments."""
        assert request_key(get(f"{ORIGIN}/page#top")) == f"{ORIGIN}/page"

    @pytest.mark.asyncio
    async def test_snapshot_is_decoded(self):
        """Test compressed responses are stored decoded."""
        def handler(request):
            return httpx.Response(
                200,
                content=gzip.compress(b"hello"),
                headers={"content-encoding": "gzip", "x-memory": "1"},
            )

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            response = await client.get(f"{ORIGIN}/hello")

        stored = StoredResponse.from_response(f"{ORIGIN}/hello", response)
        rebuilt = stored.to_response()

        assert rebuilt.content == b"hello"
        assert "content-encoding" not in rebuilt.headers
        assert rebuilt.headers["x-memory"] == "1"

    def test_dict_round_trip(self):
        """Test binary bodies survive serialization."""
        stored = StoredResponse(f"{ORIGIN}/icon.png", 200, (("content-type", "image/png"),), b"\x89PNG\x00")

        assert StoredResponse.from_dict(stored.to_dict()) == stored


class TestStrategies:
    """Tests for strategy executors."""

    def test_every_strategy_has_executor(self):
        """Test the executor table covers the enum."""
        assert set(EXECUTORS) == set(Strategy)

    @pytest.mark.asyncio
    async def test_cache_first(self):
        """Test the network is used only on a miss."""
        backend = Backend()
        ctx = make_context(backend)
        namespace = ctx.storage.open("images", "v1")
        request = get(f"{ORIGIN}/a.png")

        first = await cache_first(ctx, request, namespace)
        backend.body = "v2"
        second = await cache_first(ctx, request, namespace)

        assert first.text == second.text == "v1"
        assert backend.calls == 1

    @pytest.mark.asyncio
    async def test_error_responses_not_stored(self):
        """Test non-success responses pass through uncached."""
        ctx = make_context(lambda request: httpx.Response(404))
        namespace = ctx.storage.open("images", "v1")

        response = await cache_first(ctx, get(f"{ORIGIN}/missing.png"), namespace)

        assert response.status_code == 404
        assert len(namespace) == 0

    @pytest.mark.asyncio
    async def test_network_first_falls_back(self):
        """Test a cached copy is served when the network fails."""
        backend = Backend()
        ctx = make_context(backend)
        namespace = ctx.storage.open("api", "v1")
        request = get("https://api.memory.example/memories")

        await network_first(ctx, request, namespace)
        backend.online = False
        response = await network_first(ctx, request, namespace)

        assert response.text == "v1"
        metrics = ctx.metrics.get_metrics()
        assert metrics.network_failures == 1
        assert metrics.fallbacks == 1

    @pytest.mark.asyncio
    async def test_network_first_prefers_network(self):
        """Test fresh network responses replace the cached copy."""
        backend = Backend()
        ctx = make_context(backend)
        namespace = ctx.storage.open("api", "v1")
        request = get("https://api.memory.example/memories")

        await network_first(ctx, request, namespace)
        backend.body = "v2"
        response = await network_first(ctx, request, namespace)

        assert response.text == "v2"
        assert namespace.match(request).content == b"v2"

    @pytest.mark.asyncio
    async def test_network_first_navigation_offline(self):
        """Test failed navigations get the offline page."""
        backend = Backend()
        backend.online = False
        ctx = make_context(backend)
        namespace = ctx.storage.open("dynamic", "v1")

        response = await network_first(ctx, get(f"{ORIGIN}/feed", **{"Sec-Fetch-Mode": "navigate"}), namespace)

        assert response.text == "offline"

    @pytest.mark.asyncio
    async def test_network_first_propagates_without_fallback(self):
        """Test non-navigation failures with nothing cached raise."""
        backend = Backend()
        backend.online = False
        ctx = make_context(backend)
        namespace = ctx.storage.open("api", "v1")

        with pytest.raises(httpx.ConnectError):
            await network_first(ctx, get("https://api.memory.example/memories"), namespace)

    @pytest.mark.asyncio
    async def test_stale_while_revalidate(self):
        """Test the cached copy is returned before the refresh completes."""
        release = asyncio.Event()
        body = {"value": "v1"}

        async def handler(request):
            await release.wait()
            return httpx.Response(200, text=body["value"])

        ctx = make_context(handler)
        namespace = ctx.storage.open("fonts", "v1")
        request = get("https://fonts.googleapis.com/css")
        namespace.put(request, httpx.Response(200, text="v1"))

        body["value"] = "v2"
        response = await stale_while_revalidate(ctx, request, namespace)

        assert response.text == "v1"
        assert len(ctx.tasks) == 1

        release.set()
        await ctx.tasks.drain()

        refreshed = await cache_only(ctx, request, namespace)
        assert refreshed.text == "v2"

    @pytest.mark.asyncio
    async def test_stale_while_revalidate_miss_waits(self):
        """Test a miss waits for the network and stores the result."""
        backend = Backend()
        ctx = make_context(backend)
        namespace = ctx.storage.open("dynamic", "v1")
        request = get(f"{ORIGIN}/feed")

        response = await stale_while_revalidate(ctx, request, namespace)

        assert response.text == "v1"
        assert len(ctx.tasks) == 0
        assert namespace.match(request) is not None

    @pytest.mark.asyncio
    async def test_failed_refresh_keeps_copy(self):
        """Test a failing background refresh leaves the cache intact."""
        backend = Backend()
        ctx = make_context(backend)
        namespace = ctx.storage.open("dynamic", "v1")
        request = get(f"{ORIGIN}/feed")

        await stale_while_revalidate(ctx, request, namespace)
        backend.online = False
        response = await stale_while_revalidate(ctx, request, namespace)
        await ctx.tasks.drain()

        assert response.text == "v1"
        assert namespace.match(request).content == b"v1"

    @pytest.mark.asyncio
    async def test_network_only(self):
        """Test passthrough never stores."""
        ctx = make_context(Backend())
        namespace = ctx.storage.open("dynamic", "v1")

        response = await network_only(ctx, get(f"{ORIGIN}/live"), namespace)

        assert response.text == "v1"
        assert len(namespace) == 0

    @pytest.mark.asyncio
    async def test_cache_only(self):
        """Test cache-only never fetches."""
        backend = Backend()
        ctx = make_context(backend)
        namespace = ctx.storage.open("dynamic", "v1")

        assert await cache_only(ctx, get(f"{ORIGIN}/feed"), namespace) is None
        assert backend.calls == 0

    @pytest.mark.asyncio
    async def test_lookup_spans_namespaces(self):
        """Test a copy stored in any namespace is found."""
        backend = Backend()
        ctx = make_context(backend)
        static = ctx.storage.open("static", "v1")
        dynamic = ctx.storage.open("dynamic", "v1")
        request = get(f"{ORIGIN}/")
        static.put(request, httpx.Response(200, text="shell"))

        response = await cache_first(ctx, request, dynamic)

        assert response.text == "shell"
        assert backend.calls == 0


class TestCacheStorage:
    """Tests for namespace storage."""

    def test_open_keeps_version(self):
        """Test reopening a namespace keeps its tag."""
        storage = CacheStorage()
        storage.open("frontcache-v1-static", "v1")

        assert storage.open("frontcache-v1-static", "v2").version == "v1"

    def test_delete(self):
        """Test namespaces can be removed."""
        storage = CacheStorage()
        storage.open("a", "v1")

        assert storage.delete("a")
        assert not storage.delete("a")
        assert storage.names() == []

    def test_persisted_namespaces(self):
        """Test namespaces and responses reload from an adapter."""
        adapter = MemoryAdapter()
        request = get(f"{ORIGIN}/")

        first = CacheStorage(adapter)
        first.open("frontcache-v1-static", "v1").put(request, httpx.Response(200, text="shell"))

        second = CacheStorage(adapter)
        assert second.get("frontcache-v1-static").version == "v1"
        assert second.match(request).content == b"shell"

    def test_purge_removes_persisted(self):
        """Test deleted namespaces do not come back."""
        adapter = MemoryAdapter()
        request = get(f"{ORIGIN}/")

        first = CacheStorage(adapter)
        first.open("old", "v1").put(request, httpx.Response(200, text="shell"))
        first.delete("old")

        second = CacheStorage(adapter)
        assert len(second) == 0
        assert second.match(request) is None


class TestDispatcher:
    """Tests for request routing."""

    def make_dispatcher(self, patterns=DEFAULT_PATTERNS):
        return Dispatcher(patterns, origin=ORIGIN, dynamic_namespace="dynamic")

    def test_non_get_bypasses(self):
        """Test writes are never cached."""
        request = httpx.Request("POST", f"{ORIGIN}/memories")

        assert self.make_dispatcher().route(request) is None

    def test_non_http_bypasses(self):
        """Test other schemes are never cached."""
        assert self.make_dispatcher().route(get("ftp://files.memory.example/a.png")) is None

    @pytest.mark.parametrize("url,strategy,namespace", [
        ("https://fonts.googleapis.com/css2?family=Inter", Strategy.STALE_WHILE_REVALIDATE, "fonts"),
        (f"{ORIGIN}/photos/beach.webp", Strategy.CACHE_FIRST, "images"),
        ("https://api.memory.example/memories", Strategy.NETWORK_FIRST, "api"),
        (f"{ORIGIN}/feed", Strategy.STALE_WHILE_REVALIDATE, "dynamic"),
        ("https://cdn.other.example/lib.js", Strategy.NETWORK_FIRST, "dynamic"),
    ])
    def test_default_routes(self, url, strategy, namespace):
        """Test the default pattern table and fallbacks."""
        route = self.make_dispatcher().route(get(url))

        assert route.strategy is strategy
        assert route.namespace == namespace

    def test_first_match_wins(self):
        """Test pattern order decides overlapping matches."""
        patterns = [
            ResourcePattern(lambda url: url.endswith(".png"), Strategy.CACHE_ONLY, "pinned"),
            ResourcePattern(re.compile(r"\.png$"), Strategy.CACHE_FIRST, "images"),
        ]

        route = self.make_dispatcher(patterns).route(get(f"{ORIGIN}/a.png"))

        assert route.strategy is Strategy.CACHE_ONLY
        assert route.namespace == "pinned"

    def test_string_patterns(self):
        """Test regex strings are searched in the URL."""
        patterns = [ResourcePattern(r"/static/", Strategy.CACHE_FIRST, "static")]

        route = self.make_dispatcher(patterns).route(get(f"{ORIGIN}/static/app.js"))

        assert route.namespace == "static"

    def test_other_port_is_cross_origin(self):
        """Test origins compare ports."""
        route = self.make_dispatcher(()).route(get("https://memory.example:8443/feed"))

        assert route.strategy is Strategy.NETWORK_FIRST

    @pytest.mark.asyncio
    async def test_dispatch_opens_namespace(self):
        """Test dispatch creates the namespace on first use."""
        ctx = make_context(Backend())
        dispatcher = self.make_dispatcher()

        response = await dispatcher.dispatch(get(f"{ORIGIN}/a.png"), ctx, "v3")

        assert response.text == "v1"
        assert ctx.storage.get("images").version == "v3"
        assert await dispatcher.dispatch(httpx.Request("DELETE", f"{ORIGIN}/a"), ctx, "v3") is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
