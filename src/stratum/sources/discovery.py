"""Layered global, project and user config files."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from stratum.common import (
    AppDirectories,
    ConfigFileNames,
    create_logger,
    get_global_config_root,
    get_project_root,
    resolve_project_dir,
    resolve_working_directory,
)

from .file import FileSource

logger = create_logger("sources.discovery")

GLOBAL_PRIORITY = 10
PROJECT_PRIORITY = 20
USER_PRIORITY = 30


@dataclass(frozen=True, slots=True)
class ResolvedConfigPaths:
    global_path: Path | None
    project_path: Path | None
    user_path: Path | None


def discover_config_paths(
    working_dir: Path | None,
    directories: AppDirectories,
    filenames: ConfigFileNames,
) -> ResolvedConfigPaths:
    start_dir = resolve_working_directory(working_dir)

    global_candidate = get_global_config_root(directories) / filenames.global_file
    global_path = global_candidate if global_candidate.is_file() else None

    project_path: Path | None = None
    user_path: Path | None = None
    project_dir = resolve_project_dir(get_project_root(start_dir, directories), directories)
    if project_dir is not None:
        project_candidate = project_dir / filenames.project_file
        user_candidate = project_dir / filenames.user_file
        project_path = project_candidate if project_candidate.is_file() else None
        user_path = user_candidate if user_candidate.is_file() else None

    return ResolvedConfigPaths(
        global_path=global_path,
        project_path=project_path,
        user_path=user_path,
    )


def discover_file_sources(
    working_dir: Path | None = None,
    directories: AppDirectories | None = None,
    filenames: ConfigFileNames | None = None,
) -> list[FileSource]:
    """File sources for every config scope that exists, lowest priority first.

    Global: ``$XDG_CONFIG_HOME/<app>/config.yaml``; project:
    ``<root>/.<app>/config.yaml``; user: ``<root>/.<app>/config.local.yaml``.
    The project root is the nearest ancestor holding the project marker.
    Only files that exist are returned, and they are required: a file that is
    present but unreadable fails the resolution instead of being skipped.
    """
    directories = directories or AppDirectories()
    filenames = filenames or ConfigFileNames()
    paths = discover_config_paths(working_dir, directories, filenames)

    logger.debug(
        "Config paths discovered",
        global_path=str(paths.global_path) if paths.global_path else None,
        project_path=str(paths.project_path) if paths.project_path else None,
        user_path=str(paths.user_path) if paths.user_path else None,
    )

    scoped = (
        ("global", paths.global_path, GLOBAL_PRIORITY),
        ("project", paths.project_path, PROJECT_PRIORITY),
        ("user", paths.user_path, USER_PRIORITY),
    )
    return [
        FileSource(path=path, priority=priority, required=True, name=f"{scope}:{path}")
        for scope, path, priority in scoped
        if path is not None
    ]
