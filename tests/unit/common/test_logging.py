from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path

import pytest
from loguru import logger

from stratum.common import (
    AppDirectories,
    AppInfo,
    LoggingConfig,
    create_logger,
    disable_library_logging,
    setup_cli_logging,
)


@pytest.fixture(autouse=True)
def _reset_logger() -> Iterator[None]:
    yield
    logger.remove()
    disable_library_logging()


def test_disabled_config_adds_no_handler(tmp_path: Path) -> None:
    handler = setup_cli_logging(AppInfo(), LoggingConfig(enabled=False), AppDirectories())

    assert handler is None


def test_json_logs_are_written_to_configured_file(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "stratum.log"
    config = LoggingConfig(log_file=str(log_file), format="json", log_level="DEBUG")

    handler = setup_cli_logging(AppInfo(environment="test"), config, AppDirectories())
    create_logger("engine.test").info("Resolved", sources=2)
    logger.remove(handler)

    records = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
    resolved = next(record for record in records if record["record"]["message"] == "Resolved")
    assert resolved["record"]["extra"]["scope"] == "engine.test"
    assert resolved["record"]["extra"]["sources"] == 2


def test_default_log_file_lives_in_data_directory(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))

    handler = setup_cli_logging(AppInfo(), LoggingConfig(), AppDirectories())
    logger.remove(handler)

    assert (tmp_path / "stratum" / "logs").is_dir()


def test_logging_config_rejects_unknown_keys() -> None:
    with pytest.raises(ValueError):
        LoggingConfig.model_validate({"level": "INFO"})
