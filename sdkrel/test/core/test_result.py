from __future__ import annotations

import pytest

from sdkrel.core.result import Err, Ok, Result


def _half(n: int) -> Result[int, str]:
    if n % 2:
        return Err(f"{n} is odd")
    return Ok(n // 2)


def test_isinstance_narrowing() -> None:
    ok = _half(4)
    err = _half(3)

    assert isinstance(ok, Ok) and ok.value == 2
    assert isinstance(err, Err) and err.error == "3 is odd"


def test_match_destructures() -> None:
    match _half(10):
        case Ok(value):
            assert value == 5
        case Err(_):
            pytest.fail("expected Ok")


def test_values_compare_by_content() -> None:
    assert Ok(1) == Ok(1)
    assert Ok(1) != Err(1)
    assert repr(Ok("x")) == "Ok('x')"
    assert repr(Err(1)) == "Err(1)"
