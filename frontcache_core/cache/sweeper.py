"""FrontCache TTL Sweeper - Periodic Proactive Expiry.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class TTLSweeper:
    """Background thread that runs a sweep callable on a fixed interval.

    Each tick runs one sweep to completion before waiting again, so two
    sweeps of the same cache never overlap.

    Example:
        sweeper = TTLSweeper(cache.cleanup_expired, interval=150.0)
        sweeper.start()
        ...
        sweeper.stop()
    """

    def __init__(
        self,
        sweep: Callable[[], int],
        interval: float,
        name: str = "cache",
    ):
        """Initialize sweeper.

        Args:
            sweep: Callable removing expired entries, returning the count
            interval: Seconds between sweeps
            name: Name used for the thread
        """
        if interval <= 0:
            raise ValueError("Sweep interval must be positive")

        self._sweep = sweep
        self.interval = interval
        self.name = name
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self.runs = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the sweep thread."""
        if self._thread is not None:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._loop,
            daemon=True,
            name=f"Cache-{self.name}-sweeper",
        )
        self._thread.start()
        logger.info(f"TTL sweeper for {self.name} started (every {self.interval}s)")

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the sweep thread.

        Args:
            timeout: Seconds to wait for the thread to exit
        """
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=timeout)
            self._thread = None
            logger.info(f"TTL sweeper for {self.name} stopped")

    def _loop(self) -> None:
        while not self._stop_event.wait(self.interval):
            try:
                removed = self._sweep()
                self.runs += 1
                if removed:
                    logger.debug(f"Swept {removed} expired entries from {self.name}")
            except Exception as e:
                logger.error(f"Sweep error in {self.name}: {e}")

    def __repr__(self) -> str:
        return f"TTLSweeper(name={self.name!r}, interval={self.interval}, running={self.running})"


__all__ = ["TTLSweeper"]
