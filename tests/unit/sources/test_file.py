from __future__ import annotations

from pathlib import Path

from stratum.engine import ErrorCode
from stratum.sources import FileSource, load_document
from stratum.utils.functools.models import is_err, is_ok


def test_load_yaml_and_json(tmp_path: Path) -> None:
    yaml_path = tmp_path / "config.yaml"
    yaml_path.write_text("server:\n  port: 8080\n", encoding="utf-8")
    json_path = tmp_path / "config.json"
    json_path.write_text('{"server": {"host": "localhost"}}', encoding="utf-8")

    assert load_document(yaml_path).unwrap() == {"server": {"port": 8080}}
    assert load_document(json_path).unwrap() == {"server": {"host": "localhost"}}


def test_empty_file_is_empty_document(tmp_path: Path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")

    assert load_document(path).unwrap() == {}


def test_missing_file_depends_on_required(tmp_path: Path) -> None:
    missing = tmp_path / "missing.yaml"

    assert is_ok(load_document(missing))
    result = load_document(missing, required=True)
    assert is_err(result)
    assert result.err_value.code is ErrorCode.SOURCE_LOAD_ERROR
    assert "not found" in result.err_value.message


def test_yaml_errors_carry_position(tmp_path: Path) -> None:
    path = tmp_path / "broken.yaml"
    path.write_text("server:\n  port: [1, 2\n", encoding="utf-8")

    error = load_document(path).unwrap_err()

    assert error.source == str(path)
    assert error.line is not None
    assert error.column is not None


def test_json_errors_carry_position(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text('{\n  "a": 1,\n}', encoding="utf-8")

    error = load_document(path).unwrap_err()

    assert error.line == 3
    assert error.column == 1


def test_root_must_be_mapping(tmp_path: Path) -> None:
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")

    assert "mapping" in load_document(path).unwrap_err().message


def test_file_source_uses_name_as_source(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("a: 1\n", encoding="utf-8")
    source = FileSource(path=path, priority=20, name="project")

    assert source.source == "project"
    assert source.load().unwrap() == {"a": 1}
    assert FileSource(path=path).source == str(path)
