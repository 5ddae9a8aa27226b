"""Dictionary helpers used across stratum."""

from __future__ import annotations

import copy
from collections.abc import Callable, Mapping

type KeyPath = tuple[str | int, ...]

ListMergeStrategy = Callable[[KeyPath, list[object], list[object]], list[object]]
SkipPath = Callable[[KeyPath], bool]
ValueMerge = Callable[[object, object, KeyPath], object]
ValueMergeLookup = Callable[[KeyPath], ValueMerge | None]

__all__ = [
    "KeyPath",
    "ListMergeStrategy",
    "SkipPath",
    "ValueMerge",
    "ValueMergeLookup",
    "deep_merge",
    "merge_values",
]


def merge_values(
    base: Mapping[str, object],
    override: Mapping[str, object],
    *,
    path: KeyPath = (),
    list_merge_strategy: ListMergeStrategy | None = None,
    skip_none: bool = False,
    skip_path: SkipPath | None = None,
    value_merge: ValueMergeLookup | None = None,
) -> dict[str, object]:
    """Recursively merge two mappings, giving precedence to override.

    ``value_merge`` maps a key path to a function that combines the existing and
    the overriding value there; it only runs when both sides have the key.
    Neither input is mutated. Values taken from ``override`` are shared, not copied;
    use :func:`deep_merge` when the result must not alias its inputs.
    """
    result: dict[str, object] = dict(base)

    for key, override_value in override.items():
        key_path = (*path, key)
        if skip_path is not None and skip_path(key_path):
            continue
        if override_value is None and skip_none:
            continue

        existing_value = result.get(key)

        custom = value_merge(key_path) if value_merge is not None and key in result else None
        if custom is not None:
            result[key] = custom(existing_value, override_value, key_path)
            continue

        match existing_value, override_value:
            case Mapping(), Mapping():
                result[key] = merge_values(
                    existing_value,
                    override_value,
                    path=key_path,
                    list_merge_strategy=list_merge_strategy,
                    skip_none=skip_none,
                    skip_path=skip_path,
                    value_merge=value_merge,
                )
            case list(), list():
                if list_merge_strategy is not None:
                    result[key] = list_merge_strategy(key_path, list(existing_value), list(override_value))
                else:
                    result[key] = list(override_value)
            case _, Mapping():
                # Replacing a scalar with a mapping still honours skip rules below it
                result[key] = merge_values(
                    {},
                    override_value,
                    path=key_path,
                    list_merge_strategy=list_merge_strategy,
                    skip_none=skip_none,
                    skip_path=skip_path,
                    value_merge=value_merge,
                )
            case _:
                result[key] = override_value

    return result


def deep_merge(
    base: Mapping[str, object],
    override: Mapping[str, object],
    *,
    list_merge_strategy: ListMergeStrategy | None = None,
    skip_none: bool = True,
) -> dict[str, object]:
    """Merge two mappings into an independent copy, giving precedence to override."""
    return copy.deepcopy(
        merge_values(
            base,
            override,
            list_merge_strategy=list_merge_strategy,
            skip_none=skip_none,
        )
    )
