"""Dotted-path differences between two documents."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .models import ChangeType, ConfigChange, ConfigDiff
from .paths import flatten


def diff(old: Mapping[str, Any] | None, new: Mapping[str, Any] | None) -> ConfigDiff:
    """Compare two documents leaf by leaf.

    Both sides are flattened first, so lists and empty mappings compare as whole values.
    """
    old_flat = flatten(old or {})
    new_flat = flatten(new or {})

    changes: list[ConfigChange] = []
    for path in sorted(old_flat.keys() | new_flat.keys()):
        if path not in old_flat:
            changes.append(ConfigChange(path=path, type=ChangeType.ADDED, new_value=new_flat[path]))
        elif path not in new_flat:
            changes.append(ConfigChange(path=path, type=ChangeType.REMOVED, old_value=old_flat[path]))
        elif not _same(old_flat[path], new_flat[path]):
            changes.append(
                ConfigChange(
                    path=path,
                    type=ChangeType.CHANGED,
                    old_value=old_flat[path],
                    new_value=new_flat[path],
                )
            )

    return ConfigDiff(
        added=[change.path for change in changes if change.type is ChangeType.ADDED],
        removed=[change.path for change in changes if change.type is ChangeType.REMOVED],
        changed=[change.path for change in changes if change.type is ChangeType.CHANGED],
        changes=changes,
    )


def _same(left: Any, right: Any) -> bool:
    # 1 == True in Python, but a config flipping from 1 to true is a change
    if type(left) is not type(right):
        return False
    match left:
        case list():
            return len(left) == len(right) and all(_same(a, b) for a, b in zip(left, right, strict=True))
        case dict():
            return left.keys() == right.keys() and all(_same(left[key], right[key]) for key in left)
        case _:
            return left == right


__all__ = ["diff"]
