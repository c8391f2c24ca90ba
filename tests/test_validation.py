"""Tests for the input validation boundary."""

from __future__ import annotations

import pytest

from clinic_forecaster.validation import (
    InvalidSeriesError,
    validate_horizon,
    validate_lag_size,
    validate_series,
)


def test_returns_new_float_list() -> None:
    series = [1, 2.5, 3]
    out = validate_series(series)
    assert out == [1.0, 2.5, 3.0]
    assert out is not series


def test_accepts_tuples_and_empty() -> None:
    assert validate_series((4, 5)) == [4.0, 5.0]
    assert validate_series([]) == []


@pytest.mark.parametrize(
    "bad",
    [
        [1.0, "2"],
        [1.0, None],
        [True, 2.0],
        [1.0, float("nan")],
        [float("inf")],
        [1.0, -0.5],
    ],
)
def test_rejects_bad_elements(bad: list) -> None:
    with pytest.raises(InvalidSeriesError):
        validate_series(bad)


@pytest.mark.parametrize("bad", [None, "123", b"12", {"values": [1]}])
def test_rejects_non_sequences(bad: object) -> None:
    with pytest.raises(InvalidSeriesError):
        validate_series(bad)  # type: ignore[arg-type]


def test_error_names_series_and_index() -> None:
    with pytest.raises(InvalidSeriesError, match=r"revenue\[2\]"):
        validate_series([1, 2, -3], "revenue")


def test_error_is_value_error() -> None:
    assert issubclass(InvalidSeriesError, ValueError)


def test_horizon_rules() -> None:
    assert validate_horizon(0) == 0
    assert validate_horizon(30) == 30
    for bad in (-1, 2.0, True, "3"):
        with pytest.raises(InvalidSeriesError):
            validate_horizon(bad)


def test_lag_size_rules() -> None:
    assert validate_lag_size(1) == 1
    for bad in (0, -2, 1.5, False):
        with pytest.raises(InvalidSeriesError):
            validate_lag_size(bad)
