"""
Session Store
Maps opaque session tokens to the wallet address that signed in.
"""
from __future__ import annotations

import json
import logging
import secrets
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Callable, Dict, Optional

import redis

logger = logging.getLogger(__name__)

SESSION_TOKEN_BYTES = 32  # 256 bits, 64 hex chars


@dataclass(frozen=True)
class Session:
    token: str
    address: str
    created_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


def generate_session_token() -> str:
    return secrets.token_hex(SESSION_TOKEN_BYTES)


class SessionStore(ABC):
    """Active sessions keyed by token."""

    def __init__(self, ttl_seconds: int, clock: Callable[[], float] = time.time) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def _new_session(self, address: str) -> Session:
        now = self._clock()
        return Session(
            token=generate_session_token(),
            address=address,
            created_at=now,
            expires_at=now + self.ttl_seconds,
        )

    @abstractmethod
    def create(self, address: str) -> str:
        """
        Start a session for an already verified address.

        Args:
            address: Wallet address the session is bound to

        Returns:
            The new session token
        """

    @abstractmethod
    def get(self, token: str) -> Optional[Session]:
        """
        Look up a live session.

        Expired sessions are deleted on sight and reported as missing.
        """

    @abstractmethod
    def revoke(self, token: str) -> None:
        """Drop a session. Revoking an unknown token is not an error."""

    @abstractmethod
    def sweep(self) -> int:
        ...


class InMemorySessionStore(SessionStore):
    def __init__(self, ttl_seconds: int, clock: Callable[[], float] = time.time) -> None:
        super().__init__(ttl_seconds, clock)
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def create(self, address: str) -> str:
        session = self._new_session(address)
        with self._lock:
            self._sessions[session.token] = session
        logger.info("Session created for %s", address)
        return session.token

    def get(self, token: str) -> Optional[Session]:
        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                return None
            if session.is_expired(self._clock()):
                del self._sessions[token]
                return None
            return session

    def revoke(self, token: str) -> None:
        with self._lock:
            self._sessions.pop(token, None)

    def sweep(self) -> int:
        with self._lock:
            now = self._clock()
            expired = [t for t, s in self._sessions.items() if s.is_expired(now)]
            for token in expired:
                del self._sessions[token]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


class RedisSessionStore(SessionStore):
    """Sessions stored as JSON blobs; Redis expires them on its own."""

    def __init__(
        self,
        client: redis.Redis,
        ttl_seconds: int,
        prefix: str = "siwe:session:",
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(ttl_seconds, clock)
        self.r = client
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: str, ttl_seconds: int) -> "RedisSessionStore":
        return cls(redis.Redis.from_url(url, decode_responses=True), ttl_seconds)

    def _key(self, token: str) -> str:
        return f"{self.prefix}{token}"

    def create(self, address: str) -> str:
        session = self._new_session(address)
        self.r.setex(self._key(session.token), self.ttl_seconds, json.dumps(asdict(session)))
        logger.info("Session created for %s", address)
        return session.token

    def get(self, token: str) -> Optional[Session]:
        raw = self.r.get(self._key(token))
        if not raw:
            return None
        session = Session(**json.loads(raw))
        # Redis TTL has second granularity; the stored deadline is authoritative
        if session.is_expired(self._clock()):
            self.r.delete(self._key(token))
            return None
        return session

    def revoke(self, token: str) -> None:
        self.r.delete(self._key(token))

    def sweep(self) -> int:
        return 0
