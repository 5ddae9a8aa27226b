from __future__ import annotations

from collections.abc import Mapping

from stratum.utils.dicts import KeyPath, deep_merge, merge_values


def test_deep_merge_merges_nested_mappings() -> None:
    base: Mapping[str, object] = {
        "feature": {"enabled": False, "retries": 2},
        "log": {"level": "INFO"},
    }
    override: Mapping[str, object] = {
        "feature": {"retries": 5, "mode": "fast"},
        "new": 42,
    }

    merged = deep_merge(base, override)

    assert merged == {
        "feature": {"enabled": False, "retries": 5, "mode": "fast"},
        "log": {"level": "INFO"},
        "new": 42,
    }
    # Ensure originals are untouched
    assert base["feature"] == {"enabled": False, "retries": 2}
    assert override["feature"] == {"retries": 5, "mode": "fast"}


def test_deep_merge_result_does_not_alias_inputs() -> None:
    override = {"servers": [{"host": "a"}]}

    merged = deep_merge({}, override)
    merged["servers"][0]["host"] = "changed"

    assert override == {"servers": [{"host": "a"}]}


def test_deep_merge_replaces_lists_by_default() -> None:
    merged = deep_merge({"items": [1, 2]}, {"items": [3, 4]})
    assert merged["items"] == [3, 4]


def test_deep_merge_uses_custom_list_strategy() -> None:
    def merge_by_name(path: KeyPath, base_list: list[object], override_list: list[object]) -> list[object]:
        assert path == ("items",)

        index = {entry["name"]: entry for entry in base_list}
        for entry in override_list:
            index[entry["name"]] = entry
        return list(index.values())

    merged = deep_merge(
        {"items": [{"name": "a", "value": 1}, {"name": "b", "value": 2}]},
        {"items": [{"name": "b", "value": 3}, {"name": "c", "value": 4}]},
        list_merge_strategy=merge_by_name,
    )

    assert merged["items"] == [
        {"name": "a", "value": 1},
        {"name": "b", "value": 3},
        {"name": "c", "value": 4},
    ]


def test_deep_merge_skips_none_values() -> None:
    merged = deep_merge({"feature": {"enabled": True}}, {"feature": None, "log": None})
    assert merged == {"feature": {"enabled": True}}


def test_merge_values_keeps_none_unless_asked() -> None:
    merged = merge_values({"feature": {"enabled": True}}, {"feature": None})
    assert merged == {"feature": None}


def test_merge_values_passes_full_path_to_list_strategy() -> None:
    seen: list[KeyPath] = []

    def record(path: KeyPath, base_list: list[object], override_list: list[object]) -> list[object]:
        seen.append(path)
        return base_list + override_list

    merged = merge_values(
        {"a": {"b": [1]}},
        {"a": {"b": [2]}},
        list_merge_strategy=record,
    )

    assert merged == {"a": {"b": [1, 2]}}
    assert seen == [("a", "b")]


def test_merge_values_skip_path_applies_below_replaced_scalars() -> None:
    merged = merge_values(
        {"db": "sqlite"},
        {"db": {"host": "x", "password": "secret"}},
        skip_path=lambda path: path == ("db", "password"),
    )

    assert merged == {"db": {"host": "x"}}


def test_merge_values_value_merge_only_runs_when_both_sides_have_the_key() -> None:
    seen: list[KeyPath] = []

    def add(base: object, override: object, path: KeyPath) -> object:
        seen.append(path)
        return base + override  # type: ignore[operator]

    merged = merge_values(
        {"counters": {"hits": 2}},
        {"counters": {"hits": 3, "misses": 1}},
        value_merge=lambda path: add if path[-1] in ("hits", "misses") else None,
    )

    assert merged == {"counters": {"hits": 5, "misses": 1}}
    assert seen == [("counters", "hits")]
