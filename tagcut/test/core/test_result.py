"""Tests for tagcut.core.result module."""

import pytest

from tagcut.core.result import Err, Ok, Result, is_err, is_ok


class TestOk:
    def test_unwrap(self) -> None:
        assert Ok(42).unwrap() == 42

    def test_unwrap_or_ignores_default(self) -> None:
        assert Ok(42).unwrap_or(0) == 42

    def test_unwrap_err_raises(self) -> None:
        with pytest.raises(ValueError, match="called unwrap_err on Ok"):
            Ok(42).unwrap_err()

    def test_map(self) -> None:
        assert Ok(2).map(lambda v: v * 10) == Ok(20)

    def test_map_err_is_identity(self) -> None:
        ok = Ok("v1.2.3")
        assert ok.map_err(str.upper) is ok


class TestErr:
    def test_unwrap_raises(self) -> None:
        with pytest.raises(ValueError, match="called unwrap on Err: boom"):
            Err("boom").unwrap()

    def test_unwrap_or_returns_default(self) -> None:
        assert Err("boom").unwrap_or(7) == 7

    def test_map_err(self) -> None:
        assert Err("push rejected").map_err(lambda e: f"rollback: {e}") == Err("rollback: push rejected")

    def test_map_is_identity(self) -> None:
        err = Err("boom")
        assert err.map(lambda v: v) is err


def test_type_guards() -> None:
    results: list[Result[int, str]] = [Ok(1), Err("x")]

    assert [is_ok(r) for r in results] == [True, False]
    assert [is_err(r) for r in results] == [False, True]


def test_pattern_matching() -> None:
    def describe(result: Result[int, str]) -> str:
        match result:
            case Ok(value):
                return f"ok {value}"
            case Err(error):
                return f"err {error}"

    assert describe(Ok(3)) == "ok 3"
    assert describe(Err("no")) == "err no"
