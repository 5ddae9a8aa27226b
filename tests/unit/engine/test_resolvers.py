from __future__ import annotations

import re
from pathlib import Path

import pytest

from stratum.engine.interpolation import (
    BUILTIN_RESOLVERS,
    InterpolationContext,
    ResolverRegistry,
    default_registry,
    stringify,
)
from stratum.engine.interpolation.resolvers import (
    context_resolver,
    date_resolver,
    default_resolver,
    env_resolver,
    file_resolver,
    random_resolver,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (True, "true"),
        (False, "false"),
        (None, "null"),
        (8080, "8080"),
        (1.5, "1.5"),
        ("text", "text"),
        ({"a": [1, 2]}, '{"a":[1,2]}'),
    ],
)
def test_stringify(value: object, expected: str) -> None:
    assert stringify(value) == expected


def test_registry_is_seeded_with_builtins() -> None:
    registry = default_registry()

    assert set(BUILTIN_RESOLVERS) <= set(registry)
    assert len(registry) == len(BUILTIN_RESOLVERS)


def test_registry_rejects_bad_names_and_builtin_removal() -> None:
    registry = ResolverRegistry()

    with pytest.raises(ValueError, match="Invalid resolver name"):
        registry.register("a:b", env_resolver)
    with pytest.raises(ValueError, match="cannot be removed"):
        registry.unregister("env")


def test_registry_copy_is_independent() -> None:
    registry = ResolverRegistry({"custom": lambda name, ctx: name})
    clone = registry.copy()

    clone.unregister("custom")

    assert "custom" in registry
    assert "custom" not in clone


def test_env_and_default_resolvers() -> None:
    context = InterpolationContext(env={"HOST": "localhost"}, document={"port": 80})

    assert env_resolver("HOST", context) == "localhost"
    assert default_resolver("port", context) == "80"
    with pytest.raises(KeyError):
        env_resolver("PORT", context)
    with pytest.raises(KeyError):
        default_resolver("missing", context)


def test_context_resolver_reads_nested_values() -> None:
    context = InterpolationContext(values={"deploy": {"region": "eu"}})

    assert context_resolver("deploy.region", context) == "eu"
    with pytest.raises(KeyError):
        context_resolver("deploy.zone", context)


def test_file_resolver_is_relative_to_cwd(tmp_path: Path) -> None:
    (tmp_path / "nested").mkdir()
    (tmp_path / "nested" / "value.txt").write_text("  hello \n", encoding="utf-8")
    context = InterpolationContext(cwd=tmp_path)

    assert file_resolver("nested/value.txt", context) == "hello"
    with pytest.raises(FileNotFoundError):
        file_resolver("missing.txt", context)


@pytest.mark.parametrize(
    ("name", "pattern"),
    [
        ("now", r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$"),
        ("date", r"^\d{4}-\d{2}-\d{2}$"),
        ("time", r"^\d{2}:\d{2}:\d{2}$"),
        ("unix", r"^\d+$"),
        ("millis", r"^\d{13,}$"),
    ],
)
def test_date_formats(name: str, pattern: str) -> None:
    assert re.match(pattern, date_resolver(name, InterpolationContext()))


def test_unknown_formats_raise() -> None:
    with pytest.raises(ValueError):
        date_resolver("week", InterpolationContext())
    with pytest.raises(ValueError):
        random_resolver("dice", InterpolationContext())


def test_random_values() -> None:
    context = InterpolationContext()

    assert re.match(r"^[0-9a-f-]{36}$", random_resolver("uuid", context))
    assert re.match(r"^[0-9a-f]{32}$", random_resolver("hex", context))
    assert random_resolver("uuid", context) != random_resolver("uuid", context)
    assert 0 <= int(random_resolver("int", context)) < 1_000_000


def test_lookup_uses_reference_hook() -> None:
    context = InterpolationContext(document={"a": 1}, reference=lambda dotted: f"ref:{dotted}")

    assert context.lookup("a") == "ref:a"
    with pytest.raises(KeyError):
        InterpolationContext(document={}).lookup("")
