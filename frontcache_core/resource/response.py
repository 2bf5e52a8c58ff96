"""FrontCache Stored Response - Snapshots of Network Responses.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import base64
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import httpx

# Stored content is already decoded; these would make httpx decode it again
_DROPPED_HEADERS = {"content-encoding", "content-length", "transfer-encoding"}


def request_key(request: httpx.Request) -> str:
    """Build the lookup key for a request.

    Args:
        request: Outgoing request

    Returns:
        Request URL without fragment
    """
    return str(request.url.copy_with(fragment=None))


def is_navigation(request: httpx.Request) -> bool:
    """Check if a request is a page navigation.

    Browsers mark document navigations with ``Sec-Fetch-Mode: navigate``.
    """
    return request.headers.get("sec-fetch-mode", "").lower() == "navigate"


@dataclass(frozen=True)
class StoredResponse:
    """Immutable snapshot of a network response.

    Every read rebuilds a fresh ``httpx.Response`` from the snapshot, so
    callers can consume bodies without affecting the stored copy.

    Attributes:
        url: URL the response was stored for
        status_code: HTTP status
        headers: Header pairs, minus transport encoding headers
        content: Decoded body bytes
        stored_at: When the snapshot was taken (epoch seconds)
    """

    url: str
    status_code: int
    headers: Tuple[Tuple[str, str], ...] = ()
    content: bytes = b""
    stored_at: float = field(default_factory=time.time)

    @classmethod
    def from_response(cls, url: str, response: httpx.Response) -> "StoredResponse":
        """Snapshot a fully read response.

        Args:
            url: Lookup key the response is stored under
            response: Response whose body has been read

        Returns:
            StoredResponse instance
        """
        headers = tuple(
            (name, value)
            for name, value in response.headers.items()
            if name.lower() not in _DROPPED_HEADERS
        )
        return cls(
            url=url,
            status_code=response.status_code,
            headers=headers,
            content=response.content,
        )

    def to_response(self, request: Optional[httpx.Request] = None) -> httpx.Response:
        """Build a fresh response from the snapshot.

        Args:
            request: Request to attach to the response

        Returns:
            httpx.Response with the stored status, headers and body
        """
        return httpx.Response(
            self.status_code,
            headers=list(self.headers),
            content=self.content,
            request=request,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a serializable dictionary."""
        return {
            "url": self.url,
            "status_code": self.status_code,
            "headers": [list(pair) for pair in self.headers],
            "content": base64.b64encode(self.content).decode("ascii"),
            "stored_at": self.stored_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StoredResponse":
        """Create from a dictionary produced by to_dict."""
        headers: List[Tuple[str, str]] = [(name, value) for name, value in data.get("headers", [])]
        return cls(
            url=data["url"],
            status_code=int(data["status_code"]),
            headers=tuple(headers),
            content=base64.b64decode(data.get("content", "")),
            stored_at=float(data.get("stored_at", time.time())),
        )

    def __repr__(self) -> str:
        return f"StoredResponse(url={self.url!r}, status={self.status_code}, size={len(self.content)})"


__all__ = ["StoredResponse", "request_key", "is_navigation"]
