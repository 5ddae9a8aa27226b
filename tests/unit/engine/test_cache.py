from __future__ import annotations

from datetime import datetime

import pytest

from stratum.engine import Diagnostic, ErrorCode, Fragment, ResolutionCache, Severity, fragments_checksum


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_checksum_is_stable_across_key_and_input_order() -> None:
    a = Fragment(source="a", priority=1, data={"x": 1, "y": 2})
    b = Fragment(source="b", priority=2, data={"z": 3})
    reordered = Fragment(source="a", priority=1, data={"y": 2, "x": 1})

    assert fragments_checksum([a, b]) == fragments_checksum([b, reordered])
    assert fragments_checksum([a, b]) != fragments_checksum([a, b], fingerprint="other-options")
    assert fragments_checksum([a]) != fragments_checksum([a.model_copy(update={"priority": 5})])


def test_checksum_accepts_dates_and_sets() -> None:
    fragment = Fragment(source="a", data={"when": datetime(2024, 1, 1), "tags": {"b", "a"}})

    assert len(fragments_checksum([fragment])) == 64


def test_checksum_rejects_unserializable_values() -> None:
    with pytest.raises(TypeError):
        fragments_checksum([Fragment(source="a", data={"obj": object()})])
    with pytest.raises(ValueError):
        fragments_checksum([Fragment(source="a", data={"nan": float("nan")})])


@pytest.mark.asyncio
async def test_entries_expire_after_ttl() -> None:
    clock = FakeClock()
    cache = ResolutionCache(ttl=10, clock=clock)
    await cache.set("key", {"a": 1})

    clock.now = 9.9
    assert cache.get("key") == {"a": 1}
    assert "key" in cache

    clock.now = 10.0
    assert cache.get("key") is None
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_least_recently_used_entry_is_evicted() -> None:
    cache = ResolutionCache(max_size=2)
    await cache.set("a", {"v": "a"})
    await cache.set("b", {"v": "b"})
    cache.get("a")

    await cache.set("c", {"v": "c"})

    assert "a" in cache
    assert "b" not in cache
    assert "c" in cache


@pytest.mark.asyncio
async def test_cached_documents_are_private_copies() -> None:
    cache = ResolutionCache()
    document = {"nested": {"a": 1}}
    await cache.set("key", document)

    document["nested"]["a"] = 2
    first = cache.get("key")
    assert first == {"nested": {"a": 1}}
    first["nested"]["a"] = 3
    assert cache.get("key") == {"nested": {"a": 1}}


@pytest.mark.asyncio
async def test_clear_empties_cache() -> None:
    cache = ResolutionCache()
    await cache.set("key", {})

    await cache.clear()

    assert len(cache) == 0


@pytest.mark.asyncio
async def test_lookup_returns_stored_warnings() -> None:
    cache = ResolutionCache()
    warning = Diagnostic(
        path=("extra",),
        code=ErrorCode.UNKNOWN_PROPERTY,
        message="Unknown property 'extra'",
        severity=Severity.WARNING,
    )
    await cache.set("key", {"extra": 1}, [warning])

    document, warnings = cache.lookup("key") or ({}, [])

    assert document == {"extra": 1}
    assert warnings == [warning]
    assert cache.lookup("missing") is None
