"""Tests for autoship.core.result."""

from __future__ import annotations

import pytest

from autoship.core.result import Err, Ok, Result, is_err, is_ok


class TestOk:
    def test_ok_is_ok(self) -> None:
        result = Ok(42)
        assert result.is_ok() is True
        assert result.is_err() is False

    def test_unwrap(self) -> None:
        assert Ok("x").unwrap() == "x"
        assert Ok("x").unwrap_or("y") == "x"

    def test_map(self) -> None:
        assert Ok(2).map(lambda v: v * 3) == Ok(6)

    def test_frozen(self) -> None:
        result = Ok(1)
        with pytest.raises(AttributeError):
            result.value = 2  # type: ignore[misc]


class TestErr:
    def test_err_is_err(self) -> None:
        result = Err("bad")
        assert result.is_err() is True
        assert result.is_ok() is False

    def test_unwrap_raises(self) -> None:
        with pytest.raises(ValueError):
            Err("bad").unwrap()

    def test_unwrap_or(self) -> None:
        assert Err("bad").unwrap_or(5) == 5

    def test_map_keeps_error(self) -> None:
        assert Err("bad").map(lambda v: v) == Err("bad")


class TestGuards:
    def test_guards(self) -> None:
        ok: Result[int, str] = Ok(1)
        err: Result[int, str] = Err("e")
        assert is_ok(ok) and not is_err(ok)
        assert is_err(err) and not is_ok(err)

    def test_match(self) -> None:
        result: Result[int, str] = Ok(3)
        match result:
            case Ok(value):
                assert value == 3
            case Err(_):
                pytest.fail("expected Ok")
