"""stratum - hierarchical configuration resolution.

Fragments from ranked sources are merged by priority, interpolated and validated.
stratum's internal logging is disabled when used as a library; call
``stratum.enable_logging()`` to see it.
"""

from stratum.common import disable_library_logging, enable_library_logging

disable_library_logging()

enable_logging = enable_library_logging

__all__ = [
    "enable_logging",
]
