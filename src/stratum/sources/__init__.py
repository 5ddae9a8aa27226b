"""Reference source loaders for the resolution engine."""

from .discovery import (
    GLOBAL_PRIORITY,
    PROJECT_PRIORITY,
    USER_PRIORITY,
    ResolvedConfigPaths,
    discover_config_paths,
    discover_file_sources,
)
from .env_file import EnvFileSource
from .environment import EnvironmentSource, collect_overrides, parse_env_value
from .file import FileSource, load_document
from .memory import MemorySource

__all__ = [
    "GLOBAL_PRIORITY",
    "PROJECT_PRIORITY",
    "USER_PRIORITY",
    "EnvFileSource",
    "EnvironmentSource",
    "FileSource",
    "MemorySource",
    "ResolvedConfigPaths",
    "discover_config_paths",
    "discover_file_sources",
    "collect_overrides",
    "load_document",
    "parse_env_value",
]
