"""Tests for the Result types."""

import pytest

from prdforge.domain.shared import Err, Ok, is_err, is_ok


def test_predicates():
    assert is_ok(Ok(1)) and not is_err(Ok(1))
    assert is_err(Err("no")) and not is_ok(Err("no"))


def test_results_are_immutable_values():
    assert Ok([1]) == Ok([1])
    assert Err("a") != Err("b")
    with pytest.raises(AttributeError):
        Ok(1).value = 2  # type: ignore[misc]
