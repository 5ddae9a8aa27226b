from __future__ import annotations

import pytest

from stratum.engine import ArrayMergeStrategy, Fragment, MergePolicy, ResolutionOptions, merge


def _fragment(source: str, priority: int, data: dict) -> Fragment:
    return Fragment(source=source, priority=priority, data=data)


def test_higher_priority_wins_and_nested_keys_survive() -> None:
    defaults = _fragment("defaults", 0, {"server": {"host": "localhost", "port": 80}, "debug": False})
    env = _fragment("env", 100, {"server": {"port": 8080}})
    project = _fragment("project", 20, {"server": {"host": "example.com"}, "debug": True})

    merged = merge([env, defaults, project])

    assert merged == {"server": {"host": "example.com", "port": 8080}, "debug": True}


def test_equal_priorities_keep_input_order() -> None:
    first = _fragment("first", 10, {"name": "first"})
    second = _fragment("second", 10, {"name": "second"})

    assert merge([first, second]) == {"name": "second"}
    assert merge([second, first]) == {"name": "first"}


def test_merge_is_deterministic_and_pure() -> None:
    base = _fragment("base", 0, {"items": [{"id": 1}], "nested": {"a": 1}})
    override = _fragment("override", 1, {"nested": {"b": 2}})

    first = merge([base, override])
    second = merge([base, override])

    assert first == second
    first["nested"]["a"] = 99
    first["items"][0]["id"] = 99
    assert base.data == {"items": [{"id": 1}], "nested": {"a": 1}}
    assert second["nested"]["a"] == 1


def test_scalar_replaces_mapping_and_mapping_replaces_scalar() -> None:
    base = _fragment("base", 0, {"a": {"b": 1}, "c": "text"})
    override = _fragment("override", 1, {"a": "flat", "c": {"d": 1}})

    assert merge([base, override]) == {"a": "flat", "c": {"d": 1}}


@pytest.mark.parametrize(
    ("strategy", "expected"),
    [
        (ArrayMergeStrategy.REPLACE, [{"name": "c"}]),
        (ArrayMergeStrategy.CONCAT, [{"name": "a", "port": 1}, {"name": "b"}, {"name": "c"}]),
        (ArrayMergeStrategy.MERGE, [{"name": "c", "port": 1}, {"name": "b"}]),
    ],
)
def test_array_strategies(strategy: ArrayMergeStrategy, expected: list) -> None:
    base = _fragment("base", 0, {"servers": [{"name": "a", "port": 1}, {"name": "b"}]})
    override = _fragment("override", 1, {"servers": [{"name": "c"}]})

    assert merge([base, override], MergePolicy(arrays=strategy))["servers"] == expected


def test_per_path_override_beats_default_strategy() -> None:
    base = _fragment("base", 0, {"plugins": ["a"], "hosts": ["x"]})
    override = _fragment("override", 1, {"plugins": ["b"], "hosts": ["y"]})
    policy = MergePolicy(overrides={"plugins": ArrayMergeStrategy.CONCAT})

    merged = merge([base, override], policy)

    assert merged["plugins"] == ["a", "b"]
    assert merged["hosts"] == ["y"]


def test_ignored_paths_keep_lower_priority_value() -> None:
    base = _fragment("base", 0, {"locked": {"value": 1}, "open": 1})
    override = _fragment("override", 1, {"locked": {"value": 2, "extra": True}, "open": 2})

    merged = merge([base, override], MergePolicy(ignore=frozenset({"locked"})))

    assert merged == {"locked": {"value": 1}, "open": 2}


def test_skip_none_keeps_existing_value() -> None:
    base = _fragment("base", 0, {"host": "localhost", "items": [1, 2]})
    override = _fragment("override", 1, {"host": None, "items": [None, 3]})
    policy = MergePolicy(skip_none=True, arrays=ArrayMergeStrategy.MERGE)

    assert merge([base, override], policy) == {"host": "localhost", "items": [1, 3]}
    assert merge([base, override])["host"] is None


def test_merge_of_nothing_is_empty() -> None:
    assert merge([]) == {}


def test_custom_merge_function_combines_values_at_its_path() -> None:
    calls: list[tuple] = []

    def keep_larger(base: object, override: object, path: tuple) -> object:
        calls.append(path)
        return max(base, override)  # type: ignore[type-var]

    def union(base: list, override: list, path: tuple) -> list:
        base.append("mutated")
        return sorted({*base, *override} - {"mutated"})

    policy = MergePolicy(custom={"limits.max_connections": keep_larger, "tags": union})
    fragments = [
        _fragment("defaults", 0, {"limits": {"max_connections": 50}, "tags": ["b", "a"]}),
        _fragment("project", 10, {"limits": {"max_connections": 20, "timeout": 5}, "tags": ["c", "a"]}),
    ]

    merged = merge(fragments, policy)

    assert merged == {"limits": {"max_connections": 50, "timeout": 5}, "tags": ["a", "b", "c"]}
    assert calls == [("limits", "max_connections")]
    assert fragments[0].data["tags"] == ["b", "a"]


def test_custom_merge_function_is_skipped_for_first_definition() -> None:
    def explode(base: object, override: object, path: tuple) -> object:
        raise AssertionError("only one side defines the path")

    merged = merge([_fragment("only", 0, {"name": "api"})], MergePolicy(custom={"name": explode}))

    assert merged == {"name": "api"}


def test_custom_merge_functions_change_the_options_fingerprint() -> None:
    def first(base: object, override: object, path: tuple) -> object:
        return base

    def second(base: object, override: object, path: tuple) -> object:
        return override

    plain = ResolutionOptions().fingerprint()
    with_first = ResolutionOptions(merge=MergePolicy(custom={"a": first})).fingerprint()
    with_second = ResolutionOptions(merge=MergePolicy(custom={"a": second})).fingerprint()

    assert len({plain, with_first, with_second}) == 3
