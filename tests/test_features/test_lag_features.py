"""
Tests for lag-window feature extraction.

All expected values are computed by hand from short integer series.
"""

from __future__ import annotations

import math

import pytest

from clinic_forecaster.features.lag_features import (
    build_feature_vector,
    extract_features,
    feature_length,
)
from clinic_forecaster.validation import InvalidSeriesError


class TestExtractFeatures:
    def test_first_row_layout(self):
        """Lags most recent first, then MA(3), trend, weekly cycle."""
        X, y = extract_features([1, 2, 3, 4, 5, 6], lag_size=3)
        assert X[0][:3] == [3.0, 2.0, 1.0]
        assert X[0][3] == pytest.approx(2.0)     # (3 + 2 + 1) / 3
        assert X[0][4] == pytest.approx(1.0)     # 3 - 2
        assert X[0][5] == pytest.approx(math.sin(2 * math.pi * 3 / 7))
        assert y[0] == 4.0

    def test_row_count_is_length_minus_lag(self):
        X, y = extract_features(list(range(20)), lag_size=5)
        assert len(X) == len(y) == 15

    def test_targets_follow_their_window(self):
        series = [10, 20, 30, 40, 50]
        X, y = extract_features(series, lag_size=2)
        assert y == [30.0, 40.0, 50.0]
        assert [row[0] for row in X] == [20.0, 30.0, 40.0]

    def test_short_series_returns_empty(self):
        """Four points with lag 5 is insufficient data, not an error."""
        assert extract_features([1, 2, 3, 4], lag_size=5) == ([], [])

    def test_series_equal_to_lag_returns_empty(self):
        assert extract_features([1, 2, 3], lag_size=3) == ([], [])

    def test_empty_series_returns_empty(self):
        assert extract_features([], lag_size=1) == ([], [])

    def test_lag_one_uses_single_value_average(self):
        """With lag 1 the moving average is the lag itself and trend is 0."""
        X, _ = extract_features([5, 7, 9], lag_size=1)
        assert X[0][:3] == [5.0, 5.0, 0.0]

    def test_lag_two_moving_average_uses_two_values(self):
        X, _ = extract_features([4, 8, 12], lag_size=2)
        assert X[0][2] == pytest.approx(6.0)
        assert X[0][3] == pytest.approx(2.0)

    @pytest.mark.parametrize("lag_size", [1, 2, 3, 5, 7])
    def test_feature_length_invariant(self, lag_size):
        X, _ = extract_features([float(i % 9) for i in range(30)], lag_size)
        assert X
        assert all(len(row) == lag_size + 3 == feature_length(lag_size) for row in X)

    def test_cycle_repeats_weekly(self):
        X, _ = extract_features(list(range(30)), lag_size=1)
        # Rows 0 and 7 have targets at positions 1 and 8.
        assert X[0][-1] == pytest.approx(X[7][-1])

    def test_does_not_mutate_input(self):
        series = [1.0, 2.0, 3.0, 4.0]
        extract_features(series, lag_size=2)
        assert series == [1.0, 2.0, 3.0, 4.0]

    def test_lag_zero_rejected(self):
        with pytest.raises(InvalidSeriesError):
            extract_features([1, 2, 3], lag_size=0)

    def test_non_numeric_rejected(self):
        with pytest.raises(InvalidSeriesError):
            extract_features([1, "2", 3], lag_size=1)


class TestBuildFeatureVector:
    def test_matches_training_rows(self):
        """Inference vectors are built exactly like training vectors."""
        series = [3.0, 1.0, 4.0, 1.0, 5.0, 9.0, 2.0, 6.0]
        X, _ = extract_features(series, lag_size=4)
        for row_index, i in enumerate(range(4, len(series))):
            assert build_feature_vector(series[i - 4:i], i) == X[row_index]

    def test_window_order_is_oldest_first(self):
        vec = build_feature_vector([10.0, 20.0, 30.0], target_index=3)
        assert vec[:3] == [30.0, 20.0, 10.0]
