"""
Recursive multi-step forecasting with a random forest.

How a forecast is produced
--------------------------
1.  Histories shorter than ``min_history`` (10) go straight to the growth
    fallback (``fallback.project_growth``).
2.  Otherwise ``lag_size = min(max_lag, len(series) // 3)`` and the series is
    turned into a training set with ``extract_features``.  An empty training
    set also falls back.
3.  One forest is built per call (seed 42 by default).
4.  For each step the last ``lag_size`` values of the working series become a
    feature vector; the forest's prediction gets ±``noise_pct`` of its own
    magnitude as noise, is rounded to a whole number, and is appended to the
    working series so the next step sees it as history.

Tree counts per call site
-------------------------
``DEFAULT_NUM_TREES`` (10) for clinic revenue/patient forecasts and their
backtests; ``LIGHT_NUM_TREES`` (5) for the per-day ratio model in
``analytics.patients``.

Determinism
-----------
The noise stream is seeded from ``noise_seed`` (defaults to the forest seed),
so identical inputs give identical forecasts.  ``add_noise=False`` removes the
perturbation entirely.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from clinic_forecaster.config import AppConfig
from clinic_forecaster.features.lag_features import build_feature_vector, extract_features
from clinic_forecaster.forecasting.fallback import project_growth
from clinic_forecaster.forecasting.noise import DEFAULT_NOISE_PCT, NoiseSource
from clinic_forecaster.ml.forest import (
    DEFAULT_NUM_TREES,
    DEFAULT_SEED,
    TREE_MAX_DEPTH,
    TREE_MIN_SAMPLES_SPLIT,
    build_forest,
    predict_forest,
)
from clinic_forecaster.models.forecast import ForecastResult
from clinic_forecaster.utils.numeric import round_half_up
from clinic_forecaster.validation import validate_horizon, validate_series

logger = logging.getLogger(__name__)

MIN_HISTORY = 10
MAX_LAG = 5


def choose_lag_size(history_length: int, max_lag: int = MAX_LAG) -> int:
    """Lag window for a history: a third of its length, at most ``max_lag``."""
    return min(max_lag, history_length // 3)


class AutoregressiveForecaster:
    """Random-forest forecaster with a growth-rate fallback.

    Holds settings only.  Each ``forecast()`` call builds its own forest,
    working series and noise stream, so one instance can serve concurrent
    callers.
    """

    def __init__(
        self,
        num_trees: int = DEFAULT_NUM_TREES,
        seed: int = DEFAULT_SEED,
        add_noise: bool = True,
        noise_pct: float = DEFAULT_NOISE_PCT,
        noise_seed: Optional[int] = None,
        min_history: int = MIN_HISTORY,
        max_lag: int = MAX_LAG,
        max_depth: int = TREE_MAX_DEPTH,
        min_samples_split: int = TREE_MIN_SAMPLES_SPLIT,
        threshold_strategy: str = "midpoint",
    ) -> None:
        if num_trees < 1:
            raise ValueError(f"num_trees must be >= 1, got {num_trees}.")
        if max_lag < 1:
            raise ValueError(f"max_lag must be >= 1, got {max_lag}.")
        self.num_trees = num_trees
        self.seed = seed
        self.noise_pct = noise_pct if add_noise else 0.0
        self.noise_seed = seed if noise_seed is None else noise_seed
        self.min_history = min_history
        self.max_lag = max_lag
        self.max_depth = max_depth
        self.min_samples_split = min_samples_split
        self.threshold_strategy = threshold_strategy

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        light: bool = False,
        add_noise: Optional[bool] = None,
    ) -> "AutoregressiveForecaster":
        """Build a forecaster from ``AppConfig`` sections.

        Args:
            config:    Application config.
            light:     Use ``forest.light_num_trees`` instead of ``num_trees``.
            add_noise: Overrides ``forecast.add_noise`` when not ``None``.
        """
        return cls(
            num_trees=config.forest.light_num_trees if light else config.forest.num_trees,
            seed=config.forest.seed,
            add_noise=config.forecast.add_noise if add_noise is None else add_noise,
            noise_pct=config.forecast.noise_pct,
            min_history=config.forecast.min_history,
            max_lag=config.forecast.max_lag,
            max_depth=config.forest.max_depth,
            min_samples_split=config.forest.min_samples_split,
            threshold_strategy=config.forest.threshold_strategy,
        )

    def forecast(self, series: Sequence[float], horizon: int) -> ForecastResult:
        """Forecast ``horizon`` whole-number values after ``series``.

        Raises:
            InvalidSeriesError: For malformed input (see ``validation``).
        """
        values = validate_series(series)
        steps = validate_horizon(horizon)
        noise = NoiseSource(self.noise_pct, self.noise_seed)

        if len(values) < self.min_history:
            logger.debug(
                "History of %d points is below %d; using growth fallback.",
                len(values), self.min_history,
            )
            return self._fallback_result(values, steps, noise)

        lag_size = choose_lag_size(len(values), self.max_lag)
        if lag_size < 1:
            return self._fallback_result(values, steps, noise)
        X, y = extract_features(values, lag_size)
        if not X:
            logger.debug("No training rows for lag_size=%d; using growth fallback.", lag_size)
            return self._fallback_result(values, steps, noise)

        forecast: list[int] = []
        if steps > 0:
            forest = build_forest(
                X,
                y,
                num_trees=self.num_trees,
                seed=self.seed,
                max_depth=self.max_depth,
                min_samples_split=self.min_samples_split,
                threshold_strategy=self.threshold_strategy,
            )
            working = list(values)
            for step in range(steps):
                window = working[-lag_size:]
                if len(window) < lag_size:
                    forecast.extend(project_growth(working, steps - step, noise))
                    break
                prediction = predict_forest(forest, build_feature_vector(window, len(working)))
                value = max(0, round_half_up(prediction + noise.draw() * abs(prediction)))
                forecast.append(value)
                working.append(float(value))

        return ForecastResult(
            values=forecast,
            horizon=steps,
            method="random_forest",
            history_length=len(values),
            lag_size=lag_size,
            num_trees=self.num_trees,
            seed=self.seed,
            noise_pct=self.noise_pct,
        )

    def _fallback_result(
        self,
        values: list[float],
        steps: int,
        noise: NoiseSource,
    ) -> ForecastResult:
        return ForecastResult(
            values=project_growth(values, steps, noise),
            horizon=steps,
            method="exponential_fallback",
            history_length=len(values),
            seed=self.seed,
            noise_pct=self.noise_pct,
        )


def random_forest_forecast(
    series: Sequence[float],
    horizon: int,
    *,
    num_trees: int = DEFAULT_NUM_TREES,
    seed: int = DEFAULT_SEED,
    add_noise: bool = True,
    noise_pct: float = DEFAULT_NOISE_PCT,
    noise_seed: Optional[int] = None,
) -> list[int]:
    """Convenience wrapper returning only the forecast values."""
    forecaster = AutoregressiveForecaster(
        num_trees=num_trees,
        seed=seed,
        add_noise=add_noise,
        noise_pct=noise_pct,
        noise_seed=noise_seed,
    )
    return forecaster.forecast(series, horizon).values
