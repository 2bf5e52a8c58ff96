"""FrontCache Offline Queue - Durable Log of Deferred Writes.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import asyncio
import base64
import logging
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Union

import httpx

from frontcache_core.store.backend import PersistenceAdapter
from frontcache_core.store.memory import MemoryAdapter

logger = logging.getLogger(__name__)


class ReplayPolicy(Enum):
    """What a replay pass removes from the queue."""

    CLEAR_ALL = auto()     # Drop every replayed action, even failed ones
    KEEP_FAILED = auto()   # Keep failed actions for the next pass


@dataclass
class PendingAction:
    """A write deferred while offline.

    Attributes:
        url: Absolute request URL
        method: HTTP method
        headers: Request headers
        content: Request body
        id: Unique action id
        enqueued_at: When the action was queued (epoch seconds)
    """

    url: str
    method: str = "POST"
    headers: Dict[str, str] = field(default_factory=dict)
    content: bytes = b""
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    enqueued_at: float = field(default_factory=time.time)

    @classmethod
    def from_request(cls, request: httpx.Request) -> "PendingAction":
        """Capture a request built with in-memory content.

        Args:
            request: Request to defer

        Returns:
            PendingAction instance
        """
        return cls(
            url=str(request.url),
            method=request.method,
            headers=dict(request.headers),
            content=request.read(),
        )

    def to_request(self) -> httpx.Request:
        """Rebuild the request for replay."""
        return httpx.Request(self.method, self.url, headers=self.headers, content=self.content)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a serializable dictionary."""
        return {
            "id": self.id,
            "url": self.url,
            "method": self.method,
            "headers": self.headers,
            "content": base64.b64encode(self.content).decode("ascii"),
            "enqueued_at": self.enqueued_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PendingAction":
        """Create from a dictionary produced by to_dict."""
        return cls(
            id=data["id"],
            url=data["url"],
            method=data.get("method", "POST"),
            headers=dict(data.get("headers", {})),
            content=base64.b64decode(data.get("content", "")),
            enqueued_at=float(data.get("enqueued_at", 0.0)),
        )


@dataclass
class ReplayResult:
    """Outcome of one replay pass."""

    succeeded: List[PendingAction] = field(default_factory=list)
    failed: List[PendingAction] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)


class OfflineActionQueue:
    """Durable FIFO of writes replayed when connectivity returns.

    Actions are kept as one ordered list under a fixed record key, so the
    queue survives restarts when the adapter is durable.

    A replay pass sends every queued action in order, once. Failures are
    logged and not retried within the pass. Under ``CLEAR_ALL`` (the
    default) every action of the pass is dropped afterwards whether or
    not it was delivered; this is at-most-once delivery. Actions queued
    while a pass runs are kept for the next one.

    Overlapping replay signals are coalesced: a call made while a pass is
    in flight waits for that pass and receives its result.

    Example:
        queue = OfflineActionQueue(FileAdapter("/var/cache/frontcache"))
        queue.enqueue(httpx.Request("POST", url, json=memory))
        result = await queue.replay(client)
    """

    STORE_NAME = "offline-store"
    QUEUE_KEY = "pending-actions"

    def __init__(
        self,
        adapter: Optional[PersistenceAdapter] = None,
        policy: ReplayPolicy = ReplayPolicy.CLEAR_ALL,
    ):
        """Initialize queue.

        Args:
            adapter: Persistence adapter (in-memory if omitted)
            policy: Replay removal policy
        """
        self._adapter = adapter or MemoryAdapter()
        self._handle = self._adapter.open(self.STORE_NAME)
        self.policy = policy
        self._inflight: Optional[asyncio.Future] = None

    def enqueue(self, action: Union[PendingAction, httpx.Request]) -> PendingAction:
        """Append an action to the durable log.

        No deduplication is done.

        Args:
            action: Action, or request to capture as one

        Returns:
            The queued action
        """
        if isinstance(action, httpx.Request):
            action = PendingAction.from_request(action)

        actions = self.pending()
        actions.append(action)
        self._save(actions)
        logger.info(f"Queued offline action {action.id}: {action.method} {action.url}")
        return action

    def pending(self) -> List[PendingAction]:
        """Get queued actions in enqueue order."""
        records = self._adapter.get(self._handle, self.QUEUE_KEY) or []
        return [PendingAction.from_dict(record) for record in records]

    def _save(self, actions: List[PendingAction]) -> None:
        if actions:
            self._adapter.put(self._handle, self.QUEUE_KEY, [a.to_dict() for a in actions])
        else:
            self._adapter.delete(self._handle, self.QUEUE_KEY)

    @property
    def replaying(self) -> bool:
        return self._inflight is not None

    async def replay(self, client: httpx.AsyncClient) -> ReplayResult:
        """Run one replay pass, or join the pass already running.

        Args:
            client: Network transport

        Returns:
            ReplayResult of the pass
        """
        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._replay_pass(client))
            self._inflight.add_done_callback(self._clear_inflight)
        else:
            logger.info("Replay already in progress, joining it")
        return await asyncio.shield(self._inflight)

    def _clear_inflight(self, future: asyncio.Future) -> None:
        self._inflight = None

    async def _replay_pass(self, client: httpx.AsyncClient) -> ReplayResult:
        result = ReplayResult()
        try:
            actions = self.pending()
        except Exception as e:
            logger.error(f"Cannot read offline queue: {e}")
            return result

        for action in actions:
            try:
                response = await client.send(action.to_request())
                logger.info(f"Synced offline action {action.id}: {response.status_code}")
                result.succeeded.append(action)
            except Exception as e:
                logger.warning(f"Failed to sync offline action {action.id}: {e}")
                result.failed.append(action)

        if self.policy is ReplayPolicy.KEEP_FAILED:
            done = {a.id for a in result.succeeded}
        else:
            done = {a.id for a in actions}

        try:
            self._save([a for a in self.pending() if a.id not in done])
        except Exception as e:
            logger.error(f"Cannot update offline queue after replay: {e}")

        logger.info(
            f"Replay pass finished: {len(result.succeeded)} synced, {len(result.failed)} failed"
        )
        return result

    def __len__(self) -> int:
        return len(self.pending())


__all__ = ["OfflineActionQueue", "PendingAction", "ReplayPolicy", "ReplayResult"]
