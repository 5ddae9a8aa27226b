from .dicts import KeyPath, ListMergeStrategy, SkipPath, ValueMerge, ValueMergeLookup, deep_merge, merge_values

__all__ = ["KeyPath", "ListMergeStrategy", "SkipPath", "ValueMerge", "ValueMergeLookup", "deep_merge", "merge_values"]
