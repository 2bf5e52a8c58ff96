"""FrontCache Strategies - Resource Caching Strategy Executors.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Dict, Optional

import httpx

from frontcache_core.metrics.collector import MetricsCollector, Timer
from frontcache_core.resource.namespace import CacheStorage, ResponseNamespace
from frontcache_core.resource.response import is_navigation
from frontcache_core.resource.tasks import BackgroundTasks

logger = logging.getLogger(__name__)


class Strategy(Enum):
    """Resource caching strategies."""

    CACHE_FIRST = "cache-first"                        # Cache, then network on miss
    NETWORK_FIRST = "network-first"                    # Network, then cache on failure
    STALE_WHILE_REVALIDATE = "stale-while-revalidate"  # Cache now, refresh in background
    NETWORK_ONLY = "network-only"                      # Never touch the cache
    CACHE_ONLY = "cache-only"                          # Never touch the network


@dataclass
class StrategyContext:
    """Everything an executor needs besides the request.

    Attributes:
        client: Network transport
        storage: Namespace registry used for lookups
        metrics: Collector for hits, misses and failures
        tasks: Holder for background refresh tasks
        offline_fallback: Builds the placeholder page for failed navigations
    """

    client: httpx.AsyncClient
    storage: CacheStorage
    metrics: MetricsCollector
    tasks: BackgroundTasks
    offline_fallback: Callable[[httpx.Request], httpx.Response]


Executor = Callable[
    [StrategyContext, httpx.Request, ResponseNamespace],
    Awaitable[Optional[httpx.Response]],
]


async def _fetch(ctx: StrategyContext, request: httpx.Request) -> httpx.Response:
    try:
        with Timer(ctx.metrics):
            return await ctx.client.send(request)
    except httpx.RequestError:
        ctx.metrics.record_network_failure()
        raise


def _store(
    ctx: StrategyContext,
    namespace: ResponseNamespace,
    request: httpx.Request,
    response: httpx.Response,
) -> None:
    if not response.is_success:
        return
    try:
        namespace.put(request, response)
    except Exception as e:
        logger.error(f"Failed to store {request.url} in {namespace.name}: {e}")
        return
    ctx.metrics.record_set()


def _cached(
    ctx: StrategyContext,
    request: httpx.Request,
    namespace: ResponseNamespace,
) -> Optional[httpx.Response]:
    # Routed namespace first, then every other namespace.
    stored = namespace.match(request)
    if stored is None:
        stored = ctx.storage.match(request)
    if stored is None:
        ctx.metrics.record_miss()
        return None
    ctx.metrics.record_hit()
    return stored.to_response(request)


async def cache_first(
    ctx: StrategyContext,
    request: httpx.Request,
    namespace: ResponseNamespace,
) -> httpx.Response:
    """Serve from cache; fetch and store on a miss.

    Presence is enough for a hit; stored responses do not expire here.

    Raises:
        httpx.RequestError: If the cache misses and the fetch fails
    """
    cached = _cached(ctx, request, namespace)
    if cached is not None:
        return cached

    response = await _fetch(ctx, request)
    _store(ctx, namespace, request, response)
    return response


async def network_first(
    ctx: StrategyContext,
    request: httpx.Request,
    namespace: ResponseNamespace,
) -> httpx.Response:
    """Fetch and store; fall back to cache when the network fails.

    Failed navigations without a cached copy get the offline page.

    Raises:
        httpx.RequestError: If the fetch fails, nothing is cached and the
            request is not a navigation
    """
    try:
        response = await _fetch(ctx, request)
    except httpx.RequestError as e:
        logger.info(f"Network failed for {request.url}, trying cache: {e}")
        cached = _cached(ctx, request, namespace)
        if cached is not None:
            ctx.metrics.record_fallback()
            return cached
        if is_navigation(request):
            ctx.metrics.record_fallback()
            return ctx.offline_fallback(request)
        raise

    _store(ctx, namespace, request, response)
    return response


async def _revalidate(
    ctx: StrategyContext,
    request: httpx.Request,
    namespace: ResponseNamespace,
) -> None:
    try:
        response = await _fetch(ctx, request)
    except httpx.RequestError as e:
        logger.info(f"Background fetch failed for {request.url}: {e}")
        return
    _store(ctx, namespace, request, response)


async def stale_while_revalidate(
    ctx: StrategyContext,
    request: httpx.Request,
    namespace: ResponseNamespace,
) -> httpx.Response:
    """Serve from cache immediately and refresh in the background.

    The refresh task is never joined by the caller; its only effect is
    the updated copy a later request sees. Without a cached copy the
    caller waits for the network instead.

    Raises:
        httpx.RequestError: If nothing is cached and the fetch fails
    """
    cached = _cached(ctx, request, namespace)
    if cached is not None:
        ctx.tasks.spawn(
            _revalidate(ctx, request, namespace),
            name=f"revalidate:{request.url}",
        )
        return cached

    response = await _fetch(ctx, request)
    _store(ctx, namespace, request, response)
    return response


async def network_only(
    ctx: StrategyContext,
    request: httpx.Request,
    namespace: ResponseNamespace,
) -> httpx.Response:
    """Pass the request straight to the network."""
    return await _fetch(ctx, request)


async def cache_only(
    ctx: StrategyContext,
    request: httpx.Request,
    namespace: ResponseNamespace,
) -> Optional[httpx.Response]:
    """Serve from cache only.

    Returns:
        Cached response, or None when nothing is stored
    """
    return _cached(ctx, request, namespace)


EXECUTORS: Dict[Strategy, Executor] = {
    Strategy.CACHE_FIRST: cache_first,
    Strategy.NETWORK_FIRST: network_first,
    Strategy.STALE_WHILE_REVALIDATE: stale_while_revalidate,
    Strategy.NETWORK_ONLY: network_only,
    Strategy.CACHE_ONLY: cache_only,
}


def get_executor(strategy: Strategy) -> Executor:
    """Get the executor for a strategy.

    Args:
        strategy: Strategy member

    Returns:
        Executor coroutine function
    """
    return EXECUTORS[strategy]


__all__ = [
    "Strategy",
    "StrategyContext",
    "Executor",
    "EXECUTORS",
    "get_executor",
    "cache_first",
    "network_first",
    "stale_while_revalidate",
    "network_only",
    "cache_only",
]
