"""Tests for the resource cache worker lifecycle.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

import httpx
import pytest

from frontcache_core.resource.dispatcher import CACHE_MISS_STATUS, ResourcePattern
from frontcache_core.resource.namespace import CacheStorage
from frontcache_core.resource.strategy import Strategy
from frontcache_core.resource.worker import (
    ResourceCacheWorker,
    WorkerConfig,
    WorkerState,
)

ORIGIN = "https://memory.example"


class Site:
    """MockTransport handler serving a tiny site."""

    def __init__(self):
        self.online = True
        self.missing = set()
        self.requests = []
        self.shell = "<main>shell</main>"

    def __call__(self, request):
        self.requests.append(request)
        if not self.online:
            raise httpx.ConnectError("offline", request=request)
        if request.url.path in self.missing:
            return httpx.Response(404)
        if request.url.path == "/":
            return httpx.Response(200, html=self.shell)
        return httpx.Response(200, text=f"asset {request.url.path}")


def make_worker(site, **overrides):
    config = WorkerConfig(version=overrides.pop("version", "v2"), origin=ORIGIN, **overrides)
    client = httpx.AsyncClient(transport=httpx.MockTransport(site))
    return ResourceCacheWorker(config, client=client)


class TestWorkerConfig:
    """Tests for worker configuration."""

    def test_namespace_name(self):
        """Test namespace names combine prefix, version and kind."""
        config = WorkerConfig(version="v2", origin=ORIGIN)

        assert config.namespace_name("static") == "frontcache-v2-static"

    def test_invalid(self):
        """Test bad versions and origins are rejected."""
        with pytest.raises(ValueError):
            WorkerConfig(version="", origin=ORIGIN)
        with pytest.raises(ValueError):
            WorkerConfig(version="v1", origin="file:///app")


class TestInstall:
    """Tests for install."""

    @pytest.mark.asyncio
    async def test_precaches_manifest(self):
        """Test every manifest asset lands in the static namespace."""
        worker = make_worker(Site())

        static = await worker.install()

        assert worker.state is WorkerState.INSTALLED
        assert static.name == "frontcache-v2-static"
        assert sorted(static.keys()) == [
            f"{ORIGIN}/",
            f"{ORIGIN}/icons/icon-192x192.png",
            f"{ORIGIN}/icons/icon-512x512.png",
            f"{ORIGIN}/manifest.json",
        ]

    @pytest.mark.asyncio
    async def test_all_or_nothing(self):
        """Test one failing asset stores nothing."""
        site = Site()
        site.missing.add("/manifest.json")
        worker = make_worker(site)

        with pytest.raises(httpx.HTTPStatusError):
            await worker.install()

        assert worker.state is WorkerState.REDUNDANT
        assert worker.storage.names() == []

    @pytest.mark.asyncio
    async def test_network_failure(self):
        """Test transport errors abort install."""
        site = Site()
        site.online = False
        worker = make_worker(site)

        with pytest.raises(httpx.ConnectError):
            await worker.install()

        assert worker.state is WorkerState.REDUNDANT

    @pytest.mark.asyncio
    async def test_skip_waiting_config(self):
        """Test configured skip_waiting activates after install."""
        worker = make_worker(Site(), skip_waiting=True)

        await worker.install()

        assert worker.state is WorkerState.ACTIVATED


class TestActivate:
    """Tests for activation."""

    @pytest.mark.asyncio
    async def test_purges_other_versions(self):
        """Test stale versions are deleted and the current one kept."""
        storage = CacheStorage()
        storage.open("v1-static", "v1")
        storage.open("v1-dynamic", "v1")
        storage.open("v2-static", "v2")
        config = WorkerConfig(version="v2", origin=ORIGIN, prefix="", static_manifest=())
        worker = ResourceCacheWorker(
            config,
            client=httpx.AsyncClient(transport=httpx.MockTransport(Site())),
            storage=storage,
        )

        await worker.install()
        deleted = await worker.activate()

        assert deleted == ["v1-static", "v1-dynamic"]
        assert storage.names() == ["v2-static"]
        assert worker.state is WorkerState.ACTIVATED

    @pytest.mark.asyncio
    async def test_keeps_foreign_namespaces(self):
        """Test namespaces outside the prefix are left alone."""
        storage = CacheStorage()
        storage.open("other-app-v1", "v1")
        storage.open("frontcache-v1-static", "v1")
        worker = ResourceCacheWorker(
            WorkerConfig(version="v2", origin=ORIGIN, static_manifest=()),
            client=httpx.AsyncClient(transport=httpx.MockTransport(Site())),
            storage=storage,
        )

        await worker.install()
        await worker.activate()

        assert "other-app-v1" in storage
        assert "frontcache-v1-static" not in storage

    @pytest.mark.asyncio
    async def test_requires_install(self):
        """Test activation before install is refused."""
        worker = make_worker(Site())

        with pytest.raises(RuntimeError):
            await worker.activate()

    @pytest.mark.asyncio
    async def test_claims_clients(self):
        """Test registered clients are controlled after activation."""
        worker = make_worker(Site())
        worker.clients.register("tab-1")

        await worker.install()
        assert not worker.clients.controlled("tab-1")

        await worker.activate()
        assert worker.clients.controlled("tab-1")

    @pytest.mark.asyncio
    async def test_skip_waiting_message(self):
        """Test SKIP_WAITING activates an installed worker."""
        worker = make_worker(Site())
        await worker.install()

        await worker.handle_message({"type": "PING"})
        assert worker.state is WorkerState.INSTALLED

        await worker.handle_message({"type": "SKIP_WAITING"})
        assert worker.state is WorkerState.ACTIVATED

    @pytest.mark.asyncio
    async def test_skip_waiting_before_install(self):
        """Test an early skip_waiting applies once install completes."""
        worker = make_worker(Site())

        await worker.skip_waiting()
        assert worker.state is WorkerState.NEW

        await worker.install()
        assert worker.state is WorkerState.ACTIVATED


class TestFetch:
    """Tests for fetch handling."""

    @pytest.mark.asyncio
    async def test_not_served_before_activation(self):
        """Test requests fall through until activated."""
        worker = make_worker(Site())
        await worker.install()

        assert await worker.handle_fetch(httpx.Request("GET", f"{ORIGIN}/feed")) is None

    @pytest.mark.asyncio
    async def test_routes_into_versioned_namespaces(self):
        """Test pattern kinds resolve to versioned namespace names."""
        worker = make_worker(Site(), skip_waiting=True)
        await worker.install()

        response = await worker.handle_fetch(httpx.Request("GET", f"{ORIGIN}/photos/a.png"))

        assert response.text == "asset /photos/a.png"
        assert "frontcache-v2-images" in worker.storage

    @pytest.mark.asyncio
    async def test_static_shell_served_offline(self):
        """Test precached assets are served without the network."""
        site = Site()
        worker = make_worker(site, skip_waiting=True)
        await worker.install()

        site.online = False
        response = await worker.handle_fetch(httpx.Request("GET", f"{ORIGIN}/manifest.json"))
        await worker.drain()

        assert response.text == "asset /manifest.json"

    @pytest.mark.asyncio
    async def test_offline_navigation_gets_shell(self):
        """Test failed navigations fall back to the cached shell."""
        site = Site()
        worker = make_worker(site, skip_waiting=True)
        await worker.install()

        site.online = False
        request = httpx.Request(
            "GET", "https://partner.example/story", headers={"Sec-Fetch-Mode": "navigate"}
        )
        response = await worker.handle_fetch(request)

        assert response.text == "<main>shell</main>"

    @pytest.mark.asyncio
    async def test_offline_navigation_gets_placeholder(self):
        """Test the offline page is used when no shell is cached."""
        site = Site()
        worker = make_worker(site, skip_waiting=True, static_manifest=())
        await worker.install()

        site.online = False
        request = httpx.Request(
            "GET", "https://partner.example/story", headers={"Sec-Fetch-Mode": "navigate"}
        )
        response = await worker.handle_fetch(request)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert "You are offline" in response.text

    @pytest.mark.asyncio
    async def test_non_get_bypasses(self):
        """Test writes are left to the caller."""
        worker = make_worker(Site(), skip_waiting=True)
        await worker.install()

        assert await worker.handle_fetch(httpx.Request("POST", f"{ORIGIN}/memories")) is None

    @pytest.mark.asyncio
    async def test_refreshed_shell_replaces_precached_copy(self):
        """Test a background refresh of a precached URL is served next time."""
        site = Site()
        worker = make_worker(site, skip_waiting=True)
        await worker.install()

        site.shell = "<main>shell v2</main>"
        first = await worker.handle_fetch(httpx.Request("GET", f"{ORIGIN}/"))
        await worker.drain()
        second = await worker.handle_fetch(httpx.Request("GET", f"{ORIGIN}/"))

        assert first.text == "<main>shell</main>"
        assert second.text == "<main>shell v2</main>"

    @pytest.mark.asyncio
    async def test_cache_only_miss_never_fetches(self):
        """Test a cache-only miss answers 504 instead of falling through."""
        site = Site()
        patterns = (ResourcePattern(r"/offline-only/", Strategy.CACHE_ONLY, "pinned"),)
        worker = make_worker(site, skip_waiting=True, patterns=patterns)
        await worker.install()
        site.requests.clear()

        response = await worker.handle_fetch(httpx.Request("GET", f"{ORIGIN}/offline-only/x"))

        assert response is not None
        assert response.status_code == CACHE_MISS_STATUS
        assert site.requests == []


class TestSync:
    """Tests for sync handling."""

    @pytest.mark.asyncio
    async def test_replays_on_matching_tag(self):
        """Test the configured tag replays the offline queue."""
        site = Site()
        worker = make_worker(site)
        worker.enqueue_action(httpx.Request("POST", f"{ORIGIN}/memories", json={"title": "Trip"}))

        assert await worker.handle_sync("other-tag") is None
        assert len(worker.queue) == 1

        result = await worker.handle_sync("background-sync")

        assert result.total == 1
        assert len(worker.queue) == 0
        assert site.requests[-1].method == "POST"

    @pytest.mark.asyncio
    async def test_close_releases_owned_client(self):
        """Test a worker-created client is closed on exit."""
        async with ResourceCacheWorker(WorkerConfig(version="v1", origin=ORIGIN)) as worker:
            client = worker.client

        assert client.is_closed


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
