"""In-memory source for defaults, presets and tests."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class MemorySource:
    source: str
    data: Mapping[str, Any] = field(default_factory=dict)
    priority: int = 0
    required: bool = False
    timeout: float | None = None

    def load(self) -> dict[str, Any]:
        return copy.deepcopy(dict(self.data))
