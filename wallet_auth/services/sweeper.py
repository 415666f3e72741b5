from __future__ import annotations

import logging
import threading
from typing import Iterable, List, Optional, Protocol

logger = logging.getLogger(__name__)


class Sweepable(Protocol):
    def sweep(self) -> int:
        ...


class ExpirySweeper:
    """
    Single background thread that purges expired entries from the stores.

    Expiry is already enforced on every read, so the sweep only bounds
    memory. One periodic task over whole collections replaces per-entry timers.
    """

    def __init__(self, stores: Iterable[Sweepable], interval_seconds: float) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.stores: List[Sweepable] = list(stores)
        self.interval_seconds = interval_seconds
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> int:
        removed = 0
        for store in self.stores:
            try:
                removed += store.sweep()
            except Exception:
                logger.exception("Expiry sweep failed for %s", type(store).__name__)
        if removed:
            logger.debug("Expiry sweep removed %d entries", removed)
        return removed

    def _loop(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            self.run_once()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, daemon=True, name="ExpirySweeper")
        self._thread.start()
        logger.info("Expiry sweeper started (every %ss)", self.interval_seconds)

    def stop(self) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=5)
            self._thread = None
