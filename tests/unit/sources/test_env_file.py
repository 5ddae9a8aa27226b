from __future__ import annotations

import os
from pathlib import Path

import pytest

from stratum.engine.models import SourceLoadError
from stratum.sources import EnvFileSource
from stratum.utils.functools.models import Err, Ok


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_prefixed_variables_are_nested(tmp_path: Path) -> None:
    env_file = _write(
        tmp_path / ".env",
        "# local overrides\n"
        "STRATUM_CONFIG__SERVER__PORT=8080\n"
        'STRATUM_CONFIG__GREETING="hello world"\n'
        "OTHER=ignored\n",
    )

    result = EnvFileSource(paths=(env_file,)).load()

    assert result == Ok({"server": {"port": 8080}, "greeting": "hello world"})


def test_later_files_win(tmp_path: Path) -> None:
    base = _write(tmp_path / ".env", "STRATUM_CONFIG__LEVEL=info\nSTRATUM_CONFIG__NAME=api\n")
    local = _write(tmp_path / ".env.local", "STRATUM_CONFIG__LEVEL=debug\n")

    result = EnvFileSource(paths=(base, local)).load()

    assert result.unwrap() == {"level": "debug", "name": "api"}


def test_for_environment_orders_files(tmp_path: Path) -> None:
    _write(tmp_path / ".env", "STRATUM_CONFIG__A=base\nSTRATUM_CONFIG__B=base\nSTRATUM_CONFIG__C=base\n")
    _write(tmp_path / ".env.production", "STRATUM_CONFIG__B=production\nSTRATUM_CONFIG__C=production\n")
    _write(tmp_path / ".env.production.local", "STRATUM_CONFIG__C=local\n")

    source = EnvFileSource.for_environment("production", tmp_path)

    assert source.load().unwrap() == {"a": "base", "b": "production", "c": "local"}
    assert source.priority == 90


def test_missing_files_are_skipped_unless_required(tmp_path: Path) -> None:
    missing = (tmp_path / ".env",)

    assert EnvFileSource(paths=missing).load() == Ok({})
    match EnvFileSource(paths=missing, required=True).load():
        case Err(SourceLoadError() as error):
            assert "No env file found" in error.message
        case other:
            raise AssertionError(f"expected a load error, got {other!r}")


def test_files_do_not_touch_process_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("STRATUM_CONFIG__SECRET", raising=False)
    env_file = _write(tmp_path / ".env", "STRATUM_CONFIG__SECRET=s3cret\n")

    EnvFileSource(paths=(env_file,)).load()

    assert "STRATUM_CONFIG__SECRET" not in os.environ
