"""Environment variables as a configuration source.

``STRATUM_CONFIG__SERVER__PORT=8080`` becomes ``{"server": {"port": 8080}}``.
Values are read as YAML scalars, so numbers, booleans and inline lists keep
their types; anything that does not parse stays a string.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

import yaml

from stratum.common import create_logger
from stratum.constants import ENV_NESTED_DELIMITER, ENV_PREFIX
from stratum.utils.types import JsonDict

logger = create_logger("sources.environment")


@dataclass(frozen=True)
class EnvironmentSource:
    prefix: str = ENV_PREFIX
    priority: int = 100
    required: bool = False
    timeout: float | None = None
    delimiter: str = ENV_NESTED_DELIMITER
    environ: Mapping[str, str] | None = field(default=None, repr=False)

    @property
    def source(self) -> str:
        return f"env:{self.prefix}"

    def load(self) -> JsonDict:
        environ = self.environ if self.environ is not None else os.environ
        overrides = collect_overrides(environ, self.prefix, self.delimiter)
        logger.debug("Environment overrides collected", prefix=self.prefix, keys=sorted(overrides))
        return overrides


def collect_overrides(variables: Mapping[str, str], prefix: str, delimiter: str) -> JsonDict:
    """Nest every ``prefix``-ed variable by ``delimiter`` into a document."""
    overrides: JsonDict = {}
    for key, value in variables.items():
        if not key.startswith(prefix):
            continue
        path = key[len(prefix) :].strip("_")
        if not path:
            continue
        segments = [segment.lower() for segment in path.split(delimiter) if segment]
        _insert_override(overrides, segments, parse_env_value(value))
    return overrides


def _insert_override(data: JsonDict, path: list[str], value: object) -> None:
    cursor = data
    *parents, leaf = path
    for segment in parents:
        child = cursor.get(segment)
        if not isinstance(child, dict):
            child = {}
            cursor[segment] = child
        cursor = child
    cursor[leaf] = value


def parse_env_value(raw: str) -> object:
    try:
        parsed = yaml.safe_load(raw)
    except yaml.YAMLError:
        return raw
    # Only scalars and inline lists are taken from YAML
    if isinstance(parsed, dict) or not isinstance(parsed, str | int | float | bool | list | None):
        return raw
    return parsed
