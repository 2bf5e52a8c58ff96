"""FrontCache Worker - Resource Cache Lifecycle Host.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Sequence, Set

import httpx

from frontcache_core.metrics.collector import CacheMetrics, MetricsCollector
from frontcache_core.resource.dispatcher import DEFAULT_PATTERNS, Dispatcher, ResourcePattern
from frontcache_core.resource.namespace import CacheStorage, ResponseNamespace
from frontcache_core.resource.offline_queue import (
    OfflineActionQueue,
    PendingAction,
    ReplayPolicy,
    ReplayResult,
)
from frontcache_core.resource.strategy import StrategyContext
from frontcache_core.resource.tasks import BackgroundTasks

logger = logging.getLogger(__name__)


DEFAULT_STATIC_ASSETS = (
    "/",
    "/manifest.json",
    "/icons/icon-192x192.png",
    "/icons/icon-512x512.png",
)

OFFLINE_PAGE_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Offline</title>
  <style>
    body {
      font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif;
      display: flex;
      align-items: center;
      justify-content: center;
      min-height: 100vh;
      margin: 0;
      background: #f5f5f5;
    }
    .container { text-align: center; padding: 2rem; }
    h1 { color: #333; margin-bottom: 1rem; }
    p { color: #666; }
  </style>
</head>
<body>
  <div class="container">
    <h1>You are offline</h1>
    <p>Check your connection and try again.</p>
    <p>Changes you make now will be sent when you are back online.</p>
  </div>
</body>
</html>
"""


class WorkerState(Enum):
    """Worker lifecycle states."""

    NEW = auto()
    INSTALLING = auto()
    INSTALLED = auto()      # Waiting to take over
    ACTIVATING = auto()
    ACTIVATED = auto()      # Serving fetches
    REDUNDANT = auto()      # Install failed


@dataclass(frozen=True)
class WorkerConfig:
    """Resource cache worker configuration.

    Attributes:
        version: Version tag; namespaces with another tag are purged on activation
        origin: Origin the application is served from
        prefix: Namespace name prefix owned by this worker
        static_manifest: Paths precached at install
        patterns: Routing patterns; namespaces are given as kinds
        sync_tag: Sync signal tag that triggers offline replay
        skip_waiting: Activate right after install
        offline_page_html: Placeholder page for failed navigations
        replay_policy: Offline queue removal policy
    """

    version: str
    origin: str
    prefix: str = "frontcache-"
    static_manifest: Sequence[str] = DEFAULT_STATIC_ASSETS
    patterns: Sequence[ResourcePattern] = DEFAULT_PATTERNS
    sync_tag: str = "background-sync"
    skip_waiting: bool = False
    offline_page_html: str = OFFLINE_PAGE_HTML
    replay_policy: ReplayPolicy = ReplayPolicy.CLEAR_ALL

    def __post_init__(self):
        if not self.version:
            raise ValueError("version must not be empty")
        if httpx.URL(self.origin).scheme not in ("http", "https"):
            raise ValueError(f"origin must be an http(s) URL, got {self.origin!r}")

    def namespace_name(self, kind: str) -> str:
        """Build the versioned namespace name for a kind.

        Args:
            kind: Namespace kind (static, dynamic, images, ...)

        Returns:
            Namespace name
        """
        return f"{self.prefix}{self.version}-{kind}"


class ClientRegistry:
    """Tracks the clients a worker can control."""

    def __init__(self):
        self._clients: Set[str] = set()
        self._controlled: Set[str] = set()

    def register(self, client_id: str) -> None:
        self._clients.add(client_id)

    def unregister(self, client_id: str) -> None:
        self._clients.discard(client_id)
        self._controlled.discard(client_id)

    def claim(self) -> int:
        """Take control of every registered client.

        Returns:
            Number of newly controlled clients
        """
        claimed = self._clients - self._controlled
        self._controlled |= claimed
        return len(claimed)

    def controlled(self, client_id: str) -> bool:
        return client_id in self._controlled

    def __len__(self) -> int:
        return len(self._clients)


class ResourceCacheWorker:
    """Hosts the resource cache lifecycle.

    Lifecycle:
    - install: precache the static manifest, all or nothing
    - activate: purge this worker's namespaces from other versions and
      claim registered clients
    - fetch: route requests to strategies once activated
    - sync: replay the offline queue

    Example:
        config = WorkerConfig(version="v2", origin="https://memory.example")
        async with ResourceCacheWorker(config) as worker:
            await worker.install()
            await worker.activate()
            response = await worker.handle_fetch(request)
    """

    def __init__(
        self,
        config: WorkerConfig,
        client: Optional[httpx.AsyncClient] = None,
        storage: Optional[CacheStorage] = None,
        queue: Optional[OfflineActionQueue] = None,
        collector: Optional[MetricsCollector] = None,
    ):
        """Initialize worker.

        Args:
            config: Worker configuration
            client: Network transport (created and owned if omitted)
            storage: Namespace registry
            queue: Offline action queue
            collector: Metrics collector
        """
        self.config = config
        self.state = WorkerState.NEW
        self.clients = ClientRegistry()

        self._owns_client = client is None
        self.client = client or httpx.AsyncClient()
        self.storage = storage or CacheStorage()
        self.queue = queue or OfflineActionQueue(policy=config.replay_policy)
        self.tasks = BackgroundTasks()
        self._collector = collector or MetricsCollector()
        self._skip_waiting = config.skip_waiting

        patterns = [
            ResourcePattern(p.matcher, p.strategy, config.namespace_name(p.namespace))
            for p in config.patterns
        ]
        self.dispatcher = Dispatcher(
            patterns,
            origin=config.origin,
            dynamic_namespace=self.dynamic_namespace_name,
        )
        self.context = StrategyContext(
            client=self.client,
            storage=self.storage,
            metrics=self._collector,
            tasks=self.tasks,
            offline_fallback=self.offline_response,
        )

    @property
    def static_namespace_name(self) -> str:
        return self.config.namespace_name("static")

    @property
    def dynamic_namespace_name(self) -> str:
        return self.config.namespace_name("dynamic")

    # Lifecycle

    async def install(self) -> ResponseNamespace:
        """Precache the static manifest.

        Nothing is stored unless every asset is fetched successfully.

        Returns:
            The static namespace

        Raises:
            httpx.HTTPError: If any asset fails; the worker becomes redundant
        """
        self.state = WorkerState.INSTALLING
        origin = httpx.URL(self.config.origin)
        requests = [
            self.client.build_request("GET", origin.join(path))
            for path in self.config.static_manifest
        ]

        try:
            responses = await asyncio.gather(*(self._fetch_asset(r) for r in requests))
        except httpx.HTTPError as e:
            self.state = WorkerState.REDUNDANT
            logger.error(f"Install of {self.config.version} failed: {e}")
            raise

        static = self.storage.open(self.static_namespace_name, self.config.version)
        for request, response in zip(requests, responses):
            static.put(request, response)

        self.state = WorkerState.INSTALLED
        logger.info(f"Installed {self.config.version}: precached {len(responses)} assets")

        if self._skip_waiting:
            await self.activate()
        return static

    async def _fetch_asset(self, request: httpx.Request) -> httpx.Response:
        response = await self.client.send(request)
        response.raise_for_status()
        return response

    async def activate(self) -> List[str]:
        """Purge stale namespaces and take control of clients.

        Deletes every namespace whose name starts with the prefix and whose
        version tag differs from the active version.

        Returns:
            Names of deleted namespaces

        Raises:
            RuntimeError: If the worker is not installed
        """
        if self.state is WorkerState.ACTIVATED:
            return []
        if self.state is not WorkerState.INSTALLED:
            raise RuntimeError(f"Cannot activate worker in state {self.state.name}")

        self.state = WorkerState.ACTIVATING
        deleted = []
        for namespace in self.storage:
            if (
                namespace.name.startswith(self.config.prefix)
                and namespace.version != self.config.version
            ):
                self.storage.delete(namespace.name)
                deleted.append(namespace.name)
                logger.info(f"Deleted stale namespace {namespace.name}")

        claimed = self.clients.claim()
        self.state = WorkerState.ACTIVATED
        logger.info(f"Activated {self.config.version}: claimed {claimed} clients")
        return deleted

    async def skip_waiting(self) -> None:
        """Activate now if installed, or right after install otherwise."""
        self._skip_waiting = True
        if self.state is WorkerState.INSTALLED:
            await self.activate()

    async def handle_message(self, data: Dict[str, Any]) -> None:
        """Handle a message posted by a client.

        Args:
            data: Message payload
        """
        if isinstance(data, dict) and data.get("type") == "SKIP_WAITING":
            await self.skip_waiting()
        else:
            logger.debug(f"Ignoring message {data!r}")

    # Events

    async def handle_fetch(self, request: httpx.Request) -> Optional[httpx.Response]:
        """Serve an intercepted request.

        Args:
            request: Outgoing request

        Returns:
            Response, or None when the request should go straight to the
            network. Cache-only misses come back as a 504 response.
        """
        if self.state is not WorkerState.ACTIVATED:
            return None
        return await self.dispatcher.dispatch(request, self.context, self.config.version)

    async def handle_sync(self, tag: str) -> Optional[ReplayResult]:
        """Handle a sync signal.

        Args:
            tag: Sync tag

        Returns:
            ReplayResult, or None if the tag is not ours
        """
        if tag != self.config.sync_tag:
            logger.debug(f"Ignoring sync tag {tag!r}")
            return None
        return await self.queue.replay(self.client)

    def enqueue_action(self, request: httpx.Request) -> PendingAction:
        """Defer a write until connectivity returns."""
        return self.queue.enqueue(request)

    def offline_response(self, request: httpx.Request) -> httpx.Response:
        """Build the response for a navigation that failed offline.

        Serves the cached app shell when present, else the offline page.
        """
        shell = self.storage.match(httpx.Request("GET", httpx.URL(self.config.origin).join("/")))
        if shell is not None:
            return shell.to_response(request)
        return httpx.Response(200, html=self.config.offline_page_html, request=request)

    def get_metrics(self) -> CacheMetrics:
        return self._collector.get_metrics()

    # Shutdown

    async def drain(self) -> None:
        """Wait for background refreshes."""
        await self.tasks.drain()

    async def close(self) -> None:
        """Drain background work and release the owned client."""
        await self.drain()
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "ResourceCacheWorker":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"ResourceCacheWorker(version={self.config.version!r}, state={self.state.name})"


__all__ = [
    "ResourceCacheWorker",
    "WorkerConfig",
    "WorkerState",
    "ClientRegistry",
    "DEFAULT_STATIC_ASSETS",
    "OFFLINE_PAGE_HTML",
]
