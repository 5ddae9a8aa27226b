from __future__ import annotations

from pathlib import Path

import pytest

from stratum.common import (
    AppDirectories,
    get_data_directory,
    get_global_config_root,
    get_project_root,
    resolve_project_dir,
    resolve_working_directory,
)


@pytest.fixture
def app_directories() -> AppDirectories:
    return AppDirectories(app_name="stratum", project_marker=".stratum")


def test_project_root_is_found_from_nested_directory(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, app_directories: AppDirectories
) -> None:
    project_root = tmp_path / "project"
    (project_root / ".stratum").mkdir(parents=True)
    nested = project_root / "src" / "service"
    nested.mkdir(parents=True)

    monkeypatch.chdir(nested)

    assert get_project_root(start_dir=None, directories=app_directories) == project_root
    assert resolve_project_dir(project_root, app_directories) == project_root / ".stratum"


def test_project_root_is_none_without_marker(tmp_path: Path, app_directories: AppDirectories) -> None:
    start = tmp_path / "workspace"
    start.mkdir()

    assert get_project_root(start_dir=start, directories=app_directories) is None
    assert resolve_project_dir(None, app_directories) is None


def test_working_directory_of_a_file_is_its_parent(tmp_path: Path) -> None:
    file_path = tmp_path / "repo" / "config.yaml"
    file_path.parent.mkdir(parents=True)
    file_path.write_text("a: 1")

    assert resolve_working_directory(file_path) == file_path.parent.resolve()


@pytest.mark.parametrize(
    ("variable", "resolver"),
    [
        ("XDG_CONFIG_HOME", get_global_config_root),
        ("XDG_DATA_HOME", get_data_directory),
    ],
)
def test_xdg_variables_take_precedence(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    app_directories: AppDirectories,
    variable: str,
    resolver,
) -> None:
    monkeypatch.setenv(variable, str(tmp_path / "xdg"))

    assert resolver(app_directories) == tmp_path / "xdg" / "stratum"


def test_home_fallbacks(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, app_directories: AppDirectories) -> None:
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    monkeypatch.delenv("XDG_DATA_HOME", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))

    assert get_global_config_root(app_directories) == tmp_path / ".config" / "stratum"
    assert get_data_directory(app_directories) == tmp_path / ".local" / "share" / "stratum"
