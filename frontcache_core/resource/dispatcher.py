"""FrontCache Dispatcher - Routes Requests to Strategies and Namespaces.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Pattern, Sequence, Union

import httpx

from frontcache_core.resource.strategy import Strategy, StrategyContext, get_executor

logger = logging.getLogger(__name__)

Matcher = Union[str, Pattern, Callable[[str], bool]]

CACHE_MISS_STATUS = 504


@dataclass(frozen=True)
class ResourcePattern:
    """Maps matching URLs to a strategy and namespace.

    Attributes:
        matcher: Regex (string or compiled, searched in the URL) or
            predicate over the URL string
        strategy: Strategy to apply
        namespace: Namespace name (or kind, before version resolution)
    """

    matcher: Matcher
    strategy: Strategy
    namespace: str

    def matches(self, url: str) -> bool:
        """Test a URL against the matcher.

        Args:
            url: Absolute URL

        Returns:
            True if matched
        """
        if isinstance(self.matcher, str):
            return re.search(self.matcher, url) is not None
        if isinstance(self.matcher, re.Pattern):
            return self.matcher.search(url) is not None
        return bool(self.matcher(url))


DEFAULT_PATTERNS = (
    ResourcePattern(
        re.compile(r"^https://fonts\.googleapis\.com"),
        Strategy.STALE_WHILE_REVALIDATE,
        "fonts",
    ),
    ResourcePattern(
        re.compile(r"\.(?:png|jpg|jpeg|svg|gif|webp)$"),
        Strategy.CACHE_FIRST,
        "images",
    ),
    ResourcePattern(
        re.compile(r"^https://api\."),
        Strategy.NETWORK_FIRST,
        "api",
    ),
)


@dataclass(frozen=True)
class Route:
    """Dispatch decision for one request."""

    strategy: Strategy
    namespace: str


class Dispatcher:
    """Chooses a strategy and namespace for each intercepted request.

    Routing:
    1. Non-GET requests and non-HTTP(S) URLs bypass the cache.
    2. The first pattern matching the URL wins.
    3. Otherwise same-origin requests use stale-while-revalidate and
       cross-origin requests use network-first, both into the dynamic
       namespace.

    Example:
        dispatcher = Dispatcher(patterns, origin="https://memory.example",
                                dynamic_namespace="frontcache-v2-dynamic")
        route = dispatcher.route(request)
    """

    def __init__(
        self,
        patterns: Sequence[ResourcePattern],
        origin: str,
        dynamic_namespace: str,
    ):
        """Initialize dispatcher.

        Args:
            patterns: Ordered patterns, first match wins
            origin: Origin the application is served from
            dynamic_namespace: Namespace for unmatched requests
        """
        self.patterns: List[ResourcePattern] = list(patterns)
        self.origin = httpx.URL(origin)
        self.dynamic_namespace = dynamic_namespace

    def is_same_origin(self, url: httpx.URL) -> bool:
        """Check if a URL shares scheme, host and port with the origin."""
        return (
            url.scheme == self.origin.scheme
            and url.host == self.origin.host
            and url.port == self.origin.port
        )

    def route(self, request: httpx.Request) -> Optional[Route]:
        """Decide how a request is served.

        Args:
            request: Intercepted request

        Returns:
            Route, or None if the request bypasses the cache
        """
        if request.method != "GET" or request.url.scheme not in ("http", "https"):
            return None

        url = str(request.url)
        for pattern in self.patterns:
            if pattern.matches(url):
                return Route(pattern.strategy, pattern.namespace)

        if self.is_same_origin(request.url):
            return Route(Strategy.STALE_WHILE_REVALIDATE, self.dynamic_namespace)
        return Route(Strategy.NETWORK_FIRST, self.dynamic_namespace)

    async def dispatch(
        self,
        request: httpx.Request,
        ctx: StrategyContext,
        version: str,
    ) -> Optional[httpx.Response]:
        """Route a request and run its strategy.

        Args:
            request: Intercepted request
            ctx: Strategy context
            version: Version tag for namespaces created on first use

        Returns:
            Response, or None if the request bypasses the cache. A
            cache-only miss yields a 504 response instead of a fetch.
        """
        route = self.route(request)
        if route is None:
            return None

        logger.debug(f"{request.url} -> {route.strategy.value} ({route.namespace})")
        namespace = ctx.storage.open(route.namespace, version)
        response = await get_executor(route.strategy)(ctx, request, namespace)
        if response is None:
            logger.debug(f"Cache-only miss for {request.url}")
            return httpx.Response(CACHE_MISS_STATUS, request=request)
        return response


__all__ = ["Dispatcher", "ResourcePattern", "Route", "DEFAULT_PATTERNS", "CACHE_MISS_STATUS"]
