"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      : committed static defaults
  2. ``config/local.toml``        : optional local overrides (gitignored)
  3. ``.env``                     : local env overrides (gitignored)
  4. Environment variables        : ``CLINIC_FORECASTER_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

The engine functions take plain keyword arguments whose defaults match the
values below.  The CLI and the batch runner read an ``AppConfig`` and pass
its values through; library code never reads env vars directly.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

# ── Sub-config models ─────────────────────────────────────────────────────────


class ForestConfig(BaseModel):
    """Random-forest hyperparameters shared by every forecasting call site."""

    model_config = ConfigDict(frozen=True)

    num_trees: int = 10
    light_num_trees: int = 5
    max_depth: int = 3
    min_samples_split: int = 2
    seed: int = 42
    threshold_strategy: str = "midpoint"

    @field_validator("num_trees", "light_num_trees", "max_depth")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"must be >= 1, got {v}.")
        return v

    @field_validator("threshold_strategy")
    @classmethod
    def validate_strategy(cls, v: str) -> str:
        valid = {"midpoint", "linspace"}
        if v not in valid:
            raise ValueError(f"threshold_strategy must be one of {sorted(valid)}, got '{v}'.")
        return v


class ForecastConfig(BaseModel):
    """Autoregressive forecast settings."""

    model_config = ConfigDict(frozen=True)

    min_history: int = 10
    max_lag: int = 5
    default_horizon: int = 30
    noise_pct: float = 0.01
    add_noise: bool = True

    @field_validator("noise_pct")
    @classmethod
    def validate_noise(cls, v: float) -> float:
        if not 0.0 <= v < 1.0:
            raise ValueError(f"noise_pct must be in [0.0, 1.0), got {v}.")
        return v

    @field_validator("max_lag")
    @classmethod
    def validate_max_lag(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_lag must be >= 1, got {v}.")
        return v


class BacktestConfig(BaseModel):
    """Train/test backtest and confidence mapping parameters."""

    model_config = ConfigDict(frozen=True)

    min_points: int = 10
    train_fraction: float = 0.7
    min_test_points: int = 3
    baseline_confidence: int = 60
    short_test_confidence: int = 65
    confidence_floor: int = 50
    confidence_cap: int = 95
    revenue_weight: float = 0.6
    patient_weight: float = 0.4

    @field_validator("train_fraction")
    @classmethod
    def validate_fraction(cls, v: float) -> float:
        if not 0.0 < v < 1.0:
            raise ValueError(f"train_fraction must be in (0.0, 1.0), got {v}.")
        return v

    @model_validator(mode="after")
    def validate_weights_and_bounds(self) -> "BacktestConfig":
        if abs(self.revenue_weight + self.patient_weight - 1.0) > 1e-9:
            raise ValueError(
                f"revenue_weight + patient_weight must equal 1.0, got "
                f"{self.revenue_weight} + {self.patient_weight}."
            )
        if not 0 <= self.confidence_floor <= self.confidence_cap <= 100:
            raise ValueError(
                "confidence bounds must satisfy 0 <= floor <= cap <= 100, got "
                f"floor={self.confidence_floor}, cap={self.confidence_cap}."
            )
        return self


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = ""
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration.

    Constructed by ``load_config()`` which merges TOML + .env + environment.
    """

    model_config = ConfigDict(frozen=True)

    forest: ForestConfig = ForestConfig()
    forecast: ForecastConfig = ForecastConfig()
    backtest: BacktestConfig = BacktestConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.  When the default file
            is absent (e.g. an installed wheel), built-in defaults are used.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If an explicit ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    load_dotenv(dotenv_path=root / ".env", override=False)

    raw: dict[str, Any] = {}
    if config_path is None:
        default_path = root / "config" / "default.toml"
        if default_path.exists():
            raw = _read_toml(default_path)
            config_dir = default_path.parent
        else:
            config_dir = None
    else:
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        raw = _read_toml(config_path)
        config_dir = config_path.parent

    if config_dir is not None:
        local_config_path = config_dir / "local.toml"
        if local_config_path.exists():
            raw = _deep_merge(raw, _read_toml(local_config_path))

    raw = _apply_env_overrides(raw)
    return _build_app_config(raw)


def _read_toml(path: Path) -> dict[str, Any]:
    with open(path, "rb") as f:
        return tomllib.load(f)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply CLINIC_FORECASTER_* env vars to the raw config dict.

    Supported overrides:
      CLINIC_FORECASTER_LOG_LEVEL  → raw["logging"]["level"]
      CLINIC_FORECASTER_SEED       → raw["forest"]["seed"]
      CLINIC_FORECASTER_DEBUG      → raw["debug"]
    """
    if log_level := os.environ.get("CLINIC_FORECASTER_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if seed := os.environ.get("CLINIC_FORECASTER_SEED"):
        raw.setdefault("forest", {})["seed"] = int(seed)

    if debug := os.environ.get("CLINIC_FORECASTER_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    return AppConfig(
        forest=ForestConfig(**raw.get("forest", {})),
        forecast=ForecastConfig(**raw.get("forecast", {})),
        backtest=BacktestConfig(**raw.get("backtest", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", False),
    )
