"""In-process TTL cache for address lookups."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from cep_label.constants import MISS

logger = logging.getLogger(__name__)

DEFAULT_TTL = 300.0


@dataclass(frozen=True, slots=True)
class CacheConfig:
    """Cache tuning passed explicitly to the resolver."""
    ttl_seconds: float = DEFAULT_TTL


@dataclass(slots=True)
class CacheEntry:
    value: Any
    expires_at: float


def code_key(code: str) -> str:
    """Key for a single-code lookup. ``code`` must already be canonical."""
    return f"code:{code}"


def street_key(region: str, city: str, street: str) -> str:
    """Key for a street lookup; arguments are used verbatim."""
    return f"street:{region}:{city}:{street}"


class LookupCache:
    """
    Keyed store whose entries expire ``ttl`` seconds after being written.

    Expiry is lazy: an expired entry is evicted when a read finds it. Long
    running processes may also call :meth:`cleanup` periodically.
    """

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        """Create an empty cache.

        Parameters
        ----------
        default_ttl:
            Lifetime in seconds used when :meth:`set` gets no ``ttl``.
        clock:
            Monotonic time source; defaults to :func:`time.monotonic`.
        """
        if default_ttl <= 0:
            raise ValueError("default_ttl must be > 0")
        self.default_ttl = default_ttl
        self._clock = clock or time.monotonic
        self._entries: Dict[str, CacheEntry] = {}

    @classmethod
    def from_config(
        cls, config: CacheConfig, clock: Optional[Callable[[], float]] = None
    ) -> "LookupCache":
        return cls(default_ttl=config.ttl_seconds, clock=clock)

    def get(self, key: str) -> Any:
        """Return the live value for ``key`` or :data:`MISS`."""
        entry = self._entries.get(key)
        if entry is None:
            return MISS
        if self._clock() >= entry.expires_at:
            del self._entries[key]
            logger.debug("Cache entry expired: %s", key)
            return MISS
        return entry.value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """Store ``value`` under ``key``, replacing any previous entry."""
        if ttl is None:
            ttl = self.default_ttl
        self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + ttl)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def cleanup(self) -> int:
        """Evict every expired entry and return how many were removed."""
        now = self._clock()
        expired = [k for k, e in self._entries.items() if now >= e.expires_at]
        for k in expired:
            del self._entries[k]
        if expired:
            logger.debug("Cache cleanup evicted %d entries", len(expired))
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        # physical presence; expired-but-unread entries still count
        return key in self._entries

    def __repr__(self) -> str:
        return f"<LookupCache entries={len(self._entries)} ttl={self.default_ttl}>"
