"""Priority-ordered deep merge of configuration fragments."""

from __future__ import annotations

import copy
from collections.abc import Sequence
from typing import Any

from stratum.common import create_logger
from stratum.utils.dicts import merge_values

from .models import Fragment
from .options import ArrayMergeStrategy, MergeFunction, MergePolicy
from .paths import ConfigPath

logger = create_logger("engine.merge")


def merge(fragments: Sequence[Fragment], policy: MergePolicy | None = None) -> dict[str, Any]:
    """Merge fragments lowest priority first; later fragments override earlier ones.

    Equal priorities keep their input order. The returned document shares no
    containers with any fragment.
    """
    policy = policy or MergePolicy()
    ordered = sorted(fragments, key=lambda fragment: fragment.priority)

    def list_merge(path: ConfigPath, base_list: list[object], override_list: list[object]) -> list[object]:
        return _merge_lists(path, base_list, override_list, policy)

    def value_merge(path: ConfigPath) -> MergeFunction | None:
        return _isolated(policy.custom_for(path))

    merged: dict[str, Any] = {}
    for fragment in ordered:
        merged = merge_values(
            merged,
            fragment.data,
            list_merge_strategy=list_merge,
            skip_none=policy.skip_none,
            skip_path=policy.is_ignored if policy.ignore else None,
            value_merge=value_merge if policy.custom else None,
        )

    logger.debug(
        "Fragments merged",
        sources=[fragment.source for fragment in ordered],
        keys=len(merged),
    )
    return copy.deepcopy(merged)


def _isolated(function: MergeFunction | None) -> MergeFunction | None:
    """Hand custom merge functions copies so they cannot alter fragment data."""
    if function is None:
        return None
    return lambda base, override, path: function(copy.deepcopy(base), copy.deepcopy(override), path)


def _merge_lists(
    path: ConfigPath,
    base_list: list[object],
    override_list: list[object],
    policy: MergePolicy,
) -> list[object]:
    match policy.strategy_for(path):
        case ArrayMergeStrategy.CONCAT:
            return [*base_list, *override_list]
        case ArrayMergeStrategy.MERGE:
            return _merge_by_index(path, base_list, override_list, policy)
        case _:
            return list(override_list)


def _merge_by_index(
    path: ConfigPath,
    base_list: list[object],
    override_list: list[object],
    policy: MergePolicy,
) -> list[object]:
    merged: list[object] = []
    for index in range(max(len(base_list), len(override_list))):
        if index >= len(override_list):
            merged.append(base_list[index])
            continue
        if index >= len(base_list):
            merged.append(override_list[index])
            continue

        item_path = (*path, index)
        base_item, override_item = base_list[index], override_list[index]
        match base_item, override_item:
            case dict(), dict():
                merged.append(
                    merge_values(
                        base_item,
                        override_item,
                        path=item_path,
                        list_merge_strategy=lambda p, b, o: _merge_lists(p, b, o, policy),
                        skip_none=policy.skip_none,
                        skip_path=policy.is_ignored if policy.ignore else None,
                        value_merge=(lambda p: _isolated(policy.custom_for(p))) if policy.custom else None,
                    )
                )
            case list(), list():
                merged.append(_merge_lists(item_path, base_item, override_item, policy))
            case _, None if policy.skip_none:
                merged.append(base_item)
            case _:
                merged.append(override_item)
    return merged


__all__ = ["merge"]
