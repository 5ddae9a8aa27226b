from __future__ import annotations

import pytest

from stratum.utils.functools.models import Err, Ok, Result, UnwrapError, is_err, is_ok


def _parse_port(raw: str) -> Result[int, str]:
    if raw.isdigit():
        return Ok(int(raw))
    return Err(f"not a port: {raw}")


def test_ok_and_err_are_distinguished() -> None:
    ok = _parse_port("80")
    err = _parse_port("eighty")

    assert is_ok(ok) and ok.ok_value == 80
    assert is_err(err) and err.err_value == "not a port: eighty"


def test_pattern_matching() -> None:
    match _parse_port("443"):
        case Ok(port):
            assert port == 443
        case Err(_):
            pytest.fail("expected Ok")


def test_combinators() -> None:
    assert _parse_port("80").map(lambda port: port + 1).unwrap() == 81
    assert _parse_port("x").map(lambda port: port + 1).unwrap_or(0) == 0
    assert _parse_port("x").map_err(str.upper).unwrap_err() == "NOT A PORT: X"
    assert _parse_port("80").and_then(lambda port: Err("too low") if port < 1024 else Ok(port)).is_err()


def test_unwrap_on_err_raises() -> None:
    with pytest.raises(UnwrapError):
        _parse_port("x").unwrap()
    with pytest.raises(UnwrapError):
        Ok(1).unwrap_err()
