from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict

import redis

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def nonce_key(nonce: str, prefix: str = "siwe:nonce:") -> str:
    return f"{prefix}{nonce}"


class NonceStore(ABC):
    """Outstanding, unconsumed nonces with a fixed time-to-live."""

    def __init__(self, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds

    @abstractmethod
    def add(self, nonce: str) -> None:
        ...

    @abstractmethod
    def exists(self, nonce: str) -> bool:
        ...

    @abstractmethod
    def consume(self, nonce: str) -> bool:
        """Remove the nonce; True only if it was present and unexpired."""

    @abstractmethod
    def sweep(self) -> int:
        """Physically drop expired nonces, returning how many were removed."""


class InMemoryNonceStore(NonceStore):
    """
    Process-local nonce store.

    Fine for tests and a single server instance. Behind a load balancer use
    RedisNonceStore so every instance sees the same nonces.
    """

    def __init__(self, ttl_seconds: int, clock: Clock = time.time) -> None:
        super().__init__(ttl_seconds)
        self._clock = clock
        self._created: Dict[str, float] = {}
        self._lock = threading.Lock()

    def _expired(self, created_at: float, now: float) -> bool:
        return now > created_at + self.ttl_seconds

    def add(self, nonce: str) -> None:
        with self._lock:
            # overwrite on collision: with 128 random bits it does not happen
            self._created[nonce] = self._clock()
            total = len(self._created)
        logger.debug("Nonce added %s... (outstanding=%d)", nonce[:8], total)

    def exists(self, nonce: str) -> bool:
        with self._lock:
            created_at = self._created.get(nonce)
            if created_at is None:
                return False
            return not self._expired(created_at, self._clock())

    def consume(self, nonce: str) -> bool:
        with self._lock:
            created_at = self._created.pop(nonce, None)
            now = self._clock()
        if created_at is None:
            return False
        if self._expired(created_at, now):
            logger.debug("Nonce %s... expired before use", nonce[:8])
            return False
        return True

    def sweep(self) -> int:
        with self._lock:
            now = self._clock()
            expired = [n for n, ts in self._created.items() if self._expired(ts, now)]
            for nonce in expired:
                del self._created[nonce]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._created)


class RedisNonceStore(NonceStore):
    """Nonce store backed by Redis keys with native expiry."""

    def __init__(
        self,
        client: redis.Redis,
        ttl_seconds: int,
        prefix: str = "siwe:nonce:",
        clock: Clock = time.time,
    ) -> None:
        super().__init__(ttl_seconds)
        self.r = client
        self.prefix = prefix
        self._clock = clock

    @classmethod
    def from_url(cls, url: str, ttl_seconds: int) -> "RedisNonceStore":
        return cls(redis.Redis.from_url(url, decode_responses=True), ttl_seconds)

    def add(self, nonce: str) -> None:
        # value is the creation time; presence alone means "outstanding"
        self.r.setex(nonce_key(nonce, self.prefix), self.ttl_seconds, str(self._clock()))

    def exists(self, nonce: str) -> bool:
        return bool(self.r.exists(nonce_key(nonce, self.prefix)))

    def consume(self, nonce: str) -> bool:
        # DEL is atomic: only one caller ever sees a count of 1
        return self.r.delete(nonce_key(nonce, self.prefix)) == 1

    def sweep(self) -> int:
        return 0
