"""
Tests for layered configuration loading.

What we test
------------
1. Built-in defaults match ``config/default.toml``.
2. An explicit TOML file overrides defaults section by section.
3. ``local.toml`` beside the config file is deep-merged on top.
4. ``CLINIC_FORECASTER_*`` environment variables win over files.
5. Invalid values fail validation; a missing explicit file raises.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from clinic_forecaster.config import (
    AppConfig,
    BacktestConfig,
    ForecastConfig,
    ForestConfig,
    LoggingConfig,
    load_config,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in ("CLINIC_FORECASTER_LOG_LEVEL", "CLINIC_FORECASTER_SEED", "CLINIC_FORECASTER_DEBUG"):
        monkeypatch.delenv(var, raising=False)


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


# ── Loading ────────────────────────────────────────────────────────────────────

def test_default_file_matches_builtin_defaults() -> None:
    assert load_config() == AppConfig()


def test_explicit_file_overrides_section(tmp_path: Path) -> None:
    cfg = _write(tmp_path / "custom.toml", "[forest]\nnum_trees = 25\nseed = 7\n")
    config = load_config(cfg)
    assert config.forest.num_trees == 25
    assert config.forest.seed == 7
    assert config.forest.max_depth == 3
    assert config.backtest == BacktestConfig()


def test_local_toml_is_merged(tmp_path: Path) -> None:
    cfg = _write(tmp_path / "custom.toml", "[forecast]\ndefault_horizon = 14\nnoise_pct = 0.02\n")
    _write(tmp_path / "local.toml", "[forecast]\nnoise_pct = 0.0\n")
    config = load_config(cfg)
    assert config.forecast.default_horizon == 14
    assert config.forecast.noise_pct == 0.0


def test_env_overrides_win(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    cfg = _write(tmp_path / "custom.toml", "[forest]\nseed = 7\n")
    monkeypatch.setenv("CLINIC_FORECASTER_SEED", "99")
    monkeypatch.setenv("CLINIC_FORECASTER_LOG_LEVEL", "debug")
    monkeypatch.setenv("CLINIC_FORECASTER_DEBUG", "yes")
    config = load_config(cfg)
    assert config.forest.seed == 99
    assert config.logging.level == "DEBUG"
    assert config.debug is True


def test_missing_explicit_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.toml")


def test_invalid_value_fails_validation(tmp_path: Path) -> None:
    cfg = _write(tmp_path / "bad.toml", '[forest]\nthreshold_strategy = "quantile"\n')
    with pytest.raises(ValidationError):
        load_config(cfg)


# ── Model validators ───────────────────────────────────────────────────────────

def test_forest_rejects_zero_trees() -> None:
    with pytest.raises(ValidationError):
        ForestConfig(num_trees=0)


def test_forecast_max_lag_bounds() -> None:
    """A single lag is enough: the moving average shrinks to min(3, lag)."""
    assert ForecastConfig(max_lag=1).max_lag == 1
    with pytest.raises(ValidationError):
        ForecastConfig(max_lag=0)


def test_forecast_rejects_noise_out_of_range() -> None:
    with pytest.raises(ValidationError):
        ForecastConfig(noise_pct=1.5)


def test_backtest_weights_must_sum_to_one() -> None:
    with pytest.raises(ValidationError, match="must equal 1.0"):
        BacktestConfig(revenue_weight=0.7, patient_weight=0.4)


def test_backtest_floor_above_cap_rejected() -> None:
    with pytest.raises(ValidationError):
        BacktestConfig(confidence_floor=96, confidence_cap=95)


def test_logging_level_normalised() -> None:
    assert LoggingConfig(level="warning").level == "WARNING"
    with pytest.raises(ValidationError):
        LoggingConfig(level="LOUD")


def test_config_is_frozen() -> None:
    config = AppConfig()
    with pytest.raises(ValidationError):
        config.debug = True  # type: ignore[misc]
