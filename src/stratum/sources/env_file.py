"""``.env`` files as a configuration source.

Only variables carrying the prefix are used, nested the same way as
:class:`~stratum.sources.environment.EnvironmentSource`. The files are never
exported into ``os.environ``.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from dotenv import dotenv_values

from stratum.common import create_logger
from stratum.constants import ENV_NESTED_DELIMITER, ENV_PREFIX
from stratum.engine.models import SourceLoadError
from stratum.utils.functools.models import Err, Ok, Result
from stratum.utils.types import JsonDict

from .environment import collect_overrides

logger = create_logger("sources.env_file")


@dataclass(frozen=True)
class EnvFileSource:
    """Prefixed variables from one or more ``.env`` files; later files win.

    Missing files are skipped. A required source fails only when none of its
    files exist. It ranks just below the live environment by default.
    """

    paths: tuple[Path, ...] = (Path(".env"),)
    prefix: str = ENV_PREFIX
    priority: int = 90
    required: bool = False
    timeout: float | None = None
    delimiter: str = ENV_NESTED_DELIMITER

    @classmethod
    def for_environment(
        cls,
        environment: str,
        directory: Path | None = None,
        *,
        extra: Sequence[Path] = (),
        prefix: str = ENV_PREFIX,
        priority: int = 90,
        required: bool = False,
    ) -> EnvFileSource:
        """``extra`` files, then ``.env``, ``.env.<environment>`` and ``.env.<environment>.local``."""
        root = directory or Path.cwd()
        names = (".env", f".env.{environment}", f".env.{environment}.local")
        return cls(
            paths=(*extra, *(root / name for name in names)),
            prefix=prefix,
            priority=priority,
            required=required,
        )

    @property
    def source(self) -> str:
        return "dotenv:" + ",".join(str(path) for path in self.paths)

    def load(self) -> Result[JsonDict, SourceLoadError]:
        variables: dict[str, str] = {}
        found: list[str] = []
        for path in self.paths:
            if not path.is_file():
                continue
            found.append(str(path))
            for key, value in dotenv_values(path, encoding="utf-8").items():
                # A bare ``KEY`` line has no value
                if value is not None:
                    variables[key] = value

        if not found:
            if self.required:
                return Err(
                    SourceLoadError(
                        source=self.source,
                        message=f"No env file found among {', '.join(str(path) for path in self.paths)}.",
                    )
                )
            logger.debug("No env files found", paths=[str(path) for path in self.paths])
            return Ok({})

        overrides = collect_overrides(variables, self.prefix, self.delimiter)
        logger.debug("Env files loaded", files=found, keys=sorted(overrides))
        return Ok(overrides)


__all__ = ["EnvFileSource"]
