"""YAML and JSON files as configuration sources."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from stratum.common import create_logger
from stratum.engine.models import SourceLoadError
from stratum.utils.functools.models import Err, Ok, Result

logger = create_logger("sources.file")

JSON_SUFFIXES = frozenset({".json"})


@dataclass(frozen=True)
class FileSource:
    """One configuration file.

    ``.json`` files are parsed as JSON, everything else as YAML. A missing file
    is an empty fragment unless the source is required.
    """

    path: Path
    priority: int = 0
    required: bool = False
    timeout: float | None = None
    name: str | None = None

    @property
    def source(self) -> str:
        return self.name or str(self.path)

    def load(self) -> Result[dict[str, Any], SourceLoadError]:
        return load_document(self.path, source=self.source, required=self.required)


def load_document(
    path: Path,
    *,
    source: str | None = None,
    required: bool = False,
) -> Result[dict[str, Any], SourceLoadError]:
    source = source or str(path)

    if not path.exists() or not path.is_file():
        if not required:
            logger.debug("Optional config file not found", path=str(path))
            return Ok({})
        return Err(
            SourceLoadError(
                source=source,
                message=f"Configuration file not found at {path}.",
            ),
        )

    try:
        raw_text = path.read_text(encoding="utf-8")
    except OSError as exc:
        return Err(SourceLoadError(source=source, message=str(exc)))

    if path.suffix.lower() in JSON_SUFFIXES:
        try:
            data = json.loads(raw_text) if raw_text.strip() else {}
        except json.JSONDecodeError as exc:
            return Err(
                SourceLoadError(
                    source=source,
                    line=exc.lineno,
                    column=exc.colno,
                    message=exc.msg,
                ),
            )
    else:
        try:
            data = yaml.safe_load(raw_text)
        except yaml.YAMLError as exc:
            mark = getattr(exc, "problem_mark", None)
            line = getattr(mark, "line", None)
            column = getattr(mark, "column", None)
            return Err(
                SourceLoadError(
                    source=source,
                    line=(line + 1) if line is not None else None,
                    column=(column + 1) if column is not None else None,
                    message=str(exc),
                ),
            )

    if data is None:
        data = {}

    if not isinstance(data, dict):
        return Err(
            SourceLoadError(
                source=source,
                message="Configuration root must be a mapping of keys to values.",
            ),
        )

    logger.debug("Config file loaded", path=str(path), keys=len(data))
    return Ok(data)
