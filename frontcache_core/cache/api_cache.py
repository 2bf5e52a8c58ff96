"""FrontCache API Cache - JSON Response Caching for API Calls.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import time
from typing import Any, Callable, Optional

import httpx

from frontcache_core.cache.cache import Cache, CacheConfig
from frontcache_core.metrics.collector import MetricsCollector
from frontcache_core.store.backend import PersistenceAdapter

logger = logging.getLogger(__name__)


class APIRequestError(Exception):
    """Raised when an API call returns a non-success status."""

    def __init__(self, status_code: int, url: str, reason: str = ""):
        self.status_code = status_code
        self.url = url
        self.reason = reason
        detail = f"{status_code} {reason}".strip()
        super().__init__(f"API request failed: {detail} ({url})")


API_CACHE_DEFAULTS = CacheConfig(
    name="api",
    max_entries=200,
    ttl=300.0,
    persistence_enabled=True,
    persistence_key="api-cache",
)


class APICache(Cache):
    """Cache of decoded JSON API responses.

    Keys combine the URL with the request parameters, so the same
    endpoint called with different parameters is cached separately.

    Example:
        api = APICache(adapter=FileAdapter("/var/cache/frontcache"))
        async with httpx.AsyncClient(base_url=API) as client:
            memories = await api.cached_fetch("/memories", client, params={"page": 1})
    """

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        adapter: Optional[PersistenceAdapter] = None,
        clock: Callable[[], float] = time.time,
        collector: Optional[MetricsCollector] = None,
        **overrides: Any,
    ):
        """Initialize API cache.

        Args:
            config: Full configuration (API defaults if omitted)
            adapter: Persistence adapter
            clock: Time source returning epoch seconds
            collector: Metrics collector
            **overrides: CacheConfig fields replacing the API defaults
        """
        config = dataclasses.replace(config or API_CACHE_DEFAULTS, **overrides)
        super().__init__(config, adapter=adapter, clock=clock, collector=collector)

    @staticmethod
    def cache_key(url: str, params: Optional[Any] = None) -> str:
        """Build a cache key from a URL and request parameters.

        Args:
            url: Request URL
            params: JSON-serializable parameters

        Returns:
            ``"{url}:{params as JSON}"``
        """
        param_str = json.dumps(params, sort_keys=True, default=str) if params else ""
        return f"{url}:{param_str}"

    async def cached_fetch(
        self,
        url: str,
        client: httpx.AsyncClient,
        params: Optional[dict] = None,
        method: str = "GET",
        **options: Any,
    ) -> Any:
        """Fetch JSON through the cache.

        Args:
            url: Request URL
            client: HTTP client used on a miss
            params: Query parameters (part of the cache key)
            method: HTTP method
            **options: Extra arguments for ``client.request``

        Returns:
            Decoded JSON body

        Raises:
            APIRequestError: If the response is not a success
            httpx.TransportError: If the request fails
        """
        key_parts = dict(options)
        if params:
            key_parts["params"] = params
        if method != "GET":
            key_parts["method"] = method
        key = self.cache_key(url, key_parts)

        cached = self.get(key)
        if cached is not None:
            return cached

        response = await client.request(method, url, params=params, **options)
        if not response.is_success:
            raise APIRequestError(response.status_code, str(response.url), response.reason_phrase)

        data = response.json()
        self.set(key, data)
        logger.debug(f"Cached API response for {key}")
        return data


__all__ = ["APICache", "APIRequestError", "API_CACHE_DEFAULTS"]
