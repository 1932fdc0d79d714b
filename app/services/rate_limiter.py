"""Login brute-force protection: per-IP and per-account failure counting with exponential lockout.

State per key moves clear -> accumulating -> locked -> clear. A failure inside
the window increments the count; reaching max_attempts locks the key for
base * 2**lockout_level (capped at max) and bumps the level. A success deletes
the entry, level included. A login is blocked while either the IP key or the
account key is locked.

State lives in the process. Several API instances do not share lockouts unless
a shared RateLimitStore implementation is plugged in.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections.abc import Callable
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Protocol

from app.core.errors import RateLimitedError

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

UNKNOWN_IP = "unknown"


@dataclass
class RateLimitEntry:
    count: int
    first_attempt_at: float
    lockout_until: float | None = None
    lockout_level: int = 0
    last_failure_at: float | None = None


@dataclass
class RateLimitMetrics:
    """Process-wide counters; monotonic until restart."""

    attempts: int = 0
    successes: int = 0
    failures: int = 0
    blocked: int = 0
    lockouts: int = 0


@dataclass(frozen=True)
class RateLimitConfig:
    window_seconds: float = 15 * 60
    max_attempts: int = 5
    lockout_base_seconds: float = 5 * 60
    lockout_max_seconds: float = 60 * 60
    test_mode: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> RateLimitConfig:
        return cls(
            window_seconds=settings.AUTH_RATE_LIMIT_WINDOW_MS / 1000,
            max_attempts=settings.AUTH_RATE_LIMIT_MAX_ATTEMPTS,
            lockout_base_seconds=settings.AUTH_RATE_LIMIT_LOCKOUT_BASE_MS / 1000,
            lockout_max_seconds=settings.AUTH_RATE_LIMIT_LOCKOUT_MAX_MS / 1000,
            test_mode=settings.AUTH_RATE_LIMIT_TEST_MODE,
        )


@dataclass(frozen=True)
class RateLimitKeys:
    ip_key: str
    user_key: str | None


class RateLimitStore(Protocol):
    def get(self, key: str) -> RateLimitEntry | None: ...

    def put(self, key: str, entry: RateLimitEntry) -> None: ...

    def delete(self, key: str) -> None: ...

    def clear(self) -> None: ...


class InMemoryRateLimitStore:
    """Dict-backed store. Callers serialize read-modify-write through the limiter's lock."""

    def __init__(self) -> None:
        self._entries: dict[str, RateLimitEntry] = {}

    def get(self, key: str) -> RateLimitEntry | None:
        return self._entries.get(key)

    def put(self, key: str, entry: RateLimitEntry) -> None:
        self._entries[key] = entry

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def client_ip(forwarded_for: str | None, peer_host: str | None) -> str:
    """First X-Forwarded-For entry, else the transport peer address, else 'unknown'."""
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    return peer_host or UNKNOWN_IP


def rate_limit_keys(ip: str, email: str) -> RateLimitKeys:
    return RateLimitKeys(
        ip_key=f"ip:{ip or UNKNOWN_IP}",
        user_key=f"user:{email}" if email else None,
    )


class AuthRateLimiter:
    """Lockout bookkeeping for login attempts. Thread-safe."""

    def __init__(
        self,
        config: RateLimitConfig | None = None,
        ip_store: RateLimitStore | None = None,
        user_store: RateLimitStore | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config or RateLimitConfig()
        self.ip_store = ip_store if ip_store is not None else InMemoryRateLimitStore()
        self.user_store = user_store if user_store is not None else InMemoryRateLimitStore()
        self.metrics = RateLimitMetrics()
        self._clock = clock
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> AuthRateLimiter:
        config = RateLimitConfig.from_settings(settings)
        if config.test_mode:
            logger.warning("AUTH_RATE_LIMIT_TEST_MODE is enabled; login lockouts are disabled.")
        return cls(config)

    def metrics_snapshot(self) -> dict[str, int]:
        with self._lock:
            return asdict(self.metrics)

    def _log_metrics(self, event: str, **meta: object) -> None:
        logger.info(
            "Auth rate limit event",
            extra={"event": event, "metrics": asdict(self.metrics), **meta},
        )

    def record_attempt(self) -> None:
        with self._lock:
            self.metrics.attempts += 1

    def check(self, keys: RateLimitKeys) -> None:
        """Raise RateLimitedError if either key is locked. In test mode, wipe all state instead."""
        with self._lock:
            if self.config.test_mode:
                self.ip_store.clear()
                self.user_store.clear()
                return
            now = self._clock()
            locked = self._locked_entry(self.ip_store, keys.ip_key, now)
            if locked is None and keys.user_key:
                locked = self._locked_entry(self.user_store, keys.user_key, now)
            if locked is None:
                return
            self.metrics.blocked += 1
            retry_after = max(1, math.ceil(locked.lockout_until - now))
            logger.warning(
                "Login attempt blocked by lockout",
                extra={
                    "ip_key": keys.ip_key,
                    "user_key": keys.user_key,
                    "retry_after_seconds": retry_after,
                },
            )
            self._log_metrics("blocked", ip_key=keys.ip_key, user_key=keys.user_key)
        raise RateLimitedError(retry_after_seconds=retry_after)

    def is_locked(self, keys: RateLimitKeys) -> bool:
        with self._lock:
            now = self._clock()
            if self._locked_entry(self.ip_store, keys.ip_key, now) is not None:
                return True
            return bool(keys.user_key) and (
                self._locked_entry(self.user_store, keys.user_key, now) is not None
            )

    def register_failure(self, keys: RateLimitKeys, reason: str) -> None:
        with self._lock:
            self.metrics.failures += 1
            self._register_failure(self.ip_store, keys.ip_key, reason)
            if keys.user_key:
                self._register_failure(self.user_store, keys.user_key, reason)
            self._log_metrics(
                "failure", ip_key=keys.ip_key, user_key=keys.user_key, reason=reason
            )

    def register_success(self, keys: RateLimitKeys) -> None:
        with self._lock:
            self.metrics.successes += 1
            self.ip_store.delete(keys.ip_key)
            if keys.user_key:
                self.user_store.delete(keys.user_key)
            self._log_metrics("success", ip_key=keys.ip_key, user_key=keys.user_key)

    def lockout_duration(self, lockout_level: int) -> float:
        """Backoff for the lockout triggered at the given level (0 for the first one)."""
        return min(
            self.config.lockout_base_seconds * 2**lockout_level,
            self.config.lockout_max_seconds,
        )

    @staticmethod
    def _locked_entry(
        store: RateLimitStore, key: str, now: float
    ) -> RateLimitEntry | None:
        entry = store.get(key)
        if entry is not None and entry.lockout_until is not None and now < entry.lockout_until:
            return entry
        return None

    def _register_failure(self, store: RateLimitStore, key: str, reason: str) -> None:
        now = self._clock()
        entry = store.get(key)
        if entry is None:
            entry = RateLimitEntry(count=0, first_attempt_at=now)
        if now - entry.first_attempt_at > self.config.window_seconds:
            entry.count = 0
            entry.first_attempt_at = now
        entry.count += 1
        entry.last_failure_at = now

        if entry.count >= self.config.max_attempts:
            backoff = self.lockout_duration(entry.lockout_level)
            entry.lockout_level += 1
            entry.lockout_until = now + backoff
            entry.count = 0
            entry.first_attempt_at = now
            self.metrics.lockouts += 1
            logger.warning(
                "Lockout applied",
                extra={
                    "key": key,
                    "lockout_seconds": backoff,
                    "lockout_level": entry.lockout_level,
                    "reason": reason,
                },
            )
            self._log_metrics("lockout", key=key, reason=reason)

        store.put(key, entry)
