"""TTL and LRU bounded cache of resolved documents keyed by fragment checksum."""

from __future__ import annotations

import asyncio
import copy
import hashlib
import json
import time
from collections import OrderedDict
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from stratum.common import create_logger

from .models import Diagnostic, Fragment

logger = create_logger("engine.cache")


def fragments_checksum(fragments: Sequence[Fragment], fingerprint: str = "") -> str:
    """SHA-256 over the options fingerprint and the fragments in merge order.

    Raises ``TypeError`` or ``ValueError`` when fragment data cannot be serialized.
    """
    ordered = sorted(fragments, key=lambda fragment: fragment.priority)
    payload = {
        "options": fingerprint,
        "fragments": [
            {"source": fragment.source, "priority": fragment.priority, "data": fragment.data} for fragment in ordered
        ],
    }
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":"), allow_nan=False, default=_encode)
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


def _encode(value: Any) -> Any:
    match value:
        case set() | frozenset():
            return sorted(value, key=repr)
        case bytes():
            return value.hex()
        case _ if hasattr(value, "isoformat"):
            return value.isoformat()
        case _:
            raise TypeError(f"Value of type {type(value).__name__} cannot be checksummed")


@dataclass
class _Entry:
    document: dict[str, Any]
    warnings: list[Diagnostic]
    expires_at: float


class ResolutionCache:
    """Resolved documents with expiry and least-recently-used eviction.

    Reads are lock free; writes and invalidation are serialized with an
    ``asyncio.Lock``. Stored and returned documents are private copies.
    """

    def __init__(self, ttl: float = 300.0, max_size: int = 100, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl = ttl
        self.max_size = max_size
        self._clock = clock
        self._entries: OrderedDict[str, _Entry] = OrderedDict()
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and entry.expires_at > self._clock()

    def get(self, key: str) -> dict[str, Any] | None:
        found = self.lookup(key)
        return None if found is None else found[0]

    def lookup(self, key: str) -> tuple[dict[str, Any], list[Diagnostic]] | None:
        """Cached document and the warnings reported when it was resolved."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            self._entries.pop(key, None)
            logger.debug("Cache entry expired", key=key[:12])
            return None
        self._entries.move_to_end(key)
        return copy.deepcopy(entry.document), [warning.model_copy(deep=True) for warning in entry.warnings]

    async def set(self, key: str, document: dict[str, Any], warnings: Sequence[Diagnostic] = ()) -> None:
        async with self._lock:
            self._entries[key] = _Entry(
                copy.deepcopy(document),
                [warning.model_copy(deep=True) for warning in warnings],
                self._clock() + self.ttl,
            )
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_size:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Cache entry evicted", key=evicted[:12])

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()


__all__ = ["ResolutionCache", "fragments_checksum"]
