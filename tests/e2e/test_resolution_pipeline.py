from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from pydantic import BaseModel, Field

from stratum.engine import (
    ArrayMergeStrategy,
    ConfigChangeEvent,
    ErrorCode,
    InterpolationContext,
    MergePolicy,
    ResolutionManager,
    ResolutionOptions,
    RuleResult,
    Severity,
    ValidationOptions,
    rule,
)
from stratum.sources import EnvironmentSource, MemorySource, discover_file_sources

pytestmark = pytest.mark.e2e


class Database(BaseModel):
    host: str
    port: int = Field(default=5432, ge=1, le=65535)
    password: str


class Service(BaseModel):
    name: str
    url: str
    plugins: list[str] = Field(default_factory=list)
    database: Database


@rule("url-scheme", path="url", priority=10)
def url_scheme(value: Any, path: tuple, document: Any) -> bool:
    """URL must use http or https."""
    return str(value).startswith(("http://", "https://"))


@rule("normalize-name", path="name")
def normalize_name(value: Any, path: tuple, document: Any) -> RuleResult:
    return RuleResult.passed(str(value).strip().lower())


@rule("plugin-count", path="plugins", severity=Severity.WARNING)
def plugin_count(value: Any, path: tuple, document: Any) -> RuleResult:
    if len(value) > 2:
        return RuleResult.failed(f"{len(value)} plugins configured; more than 2 slows startup")
    return RuleResult.passed()


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    _write(
        tmp_path / "xdg" / "stratum" / "config.yaml",
        """
plugins: [metrics]
database:
  host: localhost
""",
    )
    root = tmp_path / "service"
    _write(
        root / ".stratum" / "config.yaml",
        """
name: "  Billing "
url: http://${config:database.host}:${PORT}
plugins: [auth]
database:
  host: db.${context:region}.internal
  password: ${file:secrets/db_password}
""",
    )
    _write(root / ".stratum" / "config.local.yaml", "plugins: [debug-toolbar]\n")
    _write(root / "secrets" / "db_password", "s3cr3t\n")
    return root


@pytest.mark.asyncio
async def test_layered_resolution_end_to_end(project: Path) -> None:
    context = InterpolationContext(env={"PORT": "8443"}, cwd=project, values={"region": "eu"})
    options = ResolutionOptions(merge=MergePolicy(overrides={"plugins": ArrayMergeStrategy.CONCAT}))
    manager = ResolutionManager(
        schema=Service,
        rules=[normalize_name, url_scheme, plugin_count],
        options=options,
        context=context,
    )
    events: list[ConfigChangeEvent] = []
    manager.watch(events.append)

    sources = [
        *discover_file_sources(project),
        EnvironmentSource(environ={"STRATUM_CONFIG__DATABASE__PORT": "6432"}),
    ]
    document = (await manager.resolve(sources)).unwrap()

    assert document == {
        "name": "billing",
        "url": "http://db.eu.internal:8443",
        "plugins": ["metrics", "auth", "debug-toolbar"],
        "database": {"host": "db.eu.internal", "port": 6432, "password": "s3cr3t"},
    }
    assert [(w.dotted_path, w.code) for w in manager.warnings] == [("plugins", ErrorCode.RULE_FAILED)]
    assert [event.old for event in events] == [None]
    assert manager.snapshot().unwrap().document == document


@pytest.mark.asyncio
async def test_invalid_layer_keeps_previous_document(project: Path) -> None:
    context = InterpolationContext(env={"PORT": "8443"}, cwd=project, values={"region": "eu"})
    manager = ResolutionManager(
        schema=Service,
        options=ResolutionOptions(validation=ValidationOptions(strict=True)),
        context=context,
    )
    files = discover_file_sources(project)
    good = (await manager.resolve(files)).unwrap()

    broken = [
        *files,
        MemorySource("override", {"database": {"port": 0}, "timeout": 5}, priority=200),
    ]
    failure = (await manager.resolve(broken)).unwrap_err()

    assert failure.code is ErrorCode.VALIDATION_ERROR
    assert {(d.dotted_path, d.code) for d in failure.errors} == {
        ("database.port", ErrorCode.VALUE_TOO_SMALL),
        ("timeout", ErrorCode.UNKNOWN_PROPERTY),
    }
    assert manager.current == good
