"""
Clinic Forecaster CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Read and validate the JSON input.
  4. Run the forecaster / evaluator.
  5. Print the result as JSON on stdout.

Input files are JSON: a series is either a bare array of numbers or an
object with a ``"values"`` array; daily trends are an object matching
``DailyTrends``.

Install and run::

    pip install -e .
    clinic-forecaster --help
    clinic-forecaster forecast --input revenue.json --horizon 14
    clinic-forecaster forecast --input revenue.json --month-end --last-date 2026-10-12
    clinic-forecaster confidence --input revenue.json
    clinic-forecaster clinic-confidence --revenue revenue.json --patients patients.json
    clinic-forecaster patient-analytics --input trends.json
    clinic-forecaster project-revenue --input trends.json --today 2026-10-18
    clinic-forecaster validate-config --full
"""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any, Optional

import typer

app = typer.Typer(
    name="clinic-forecaster",
    help="Clinic revenue and patient-count forecasting CLI.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from clinic_forecaster.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from clinic_forecaster.utils.logging import configure_logging
    configure_logging(config.logging, debug=config.debug)


def _read_json_or_exit(path: str) -> Any:
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        typer.echo(f"[ERROR] Input file not found: {path}", err=True)
        raise typer.Exit(code=1)
    except json.JSONDecodeError as exc:
        typer.echo(f"[ERROR] {path} is not valid JSON: {exc}", err=True)
        raise typer.Exit(code=1)


def _read_series_or_exit(path: str, name: str = "series") -> list[float]:
    """Read a JSON series file and validate it."""
    from clinic_forecaster.validation import InvalidSeriesError, validate_series

    payload = _read_json_or_exit(path)
    if isinstance(payload, dict):
        payload = payload.get("values")
    try:
        return validate_series(payload, name)
    except InvalidSeriesError as exc:
        typer.echo(f"[ERROR] {path}: {exc}", err=True)
        raise typer.Exit(code=1)


def _parse_date_or_exit(value: str, option: str) -> date:
    from clinic_forecaster.utils.time_utils import parse_iso_date

    try:
        return parse_iso_date(value)
    except ValueError:
        typer.echo(f"[ERROR] {option} must be an ISO date (YYYY-MM-DD), got '{value}'.", err=True)
        raise typer.Exit(code=1)


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, default=str))


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("forecast")
def forecast(
    input_path: str = typer.Option(..., "--input", help="JSON file with the daily series."),
    horizon: Optional[int] = typer.Option(
        None, "--horizon", help="Days to forecast (default: forecast.default_horizon)."
    ),
    month_end: bool = typer.Option(
        False, "--month-end", help="Forecast from --last-date to the end of --today's month."
    ),
    last_date: Optional[str] = typer.Option(
        None, "--last-date", help="Date of the last value in the series (with --month-end)."
    ),
    today: Optional[str] = typer.Option(
        None, "--today", help="Reference date for --month-end (default: today)."
    ),
    seed: Optional[int] = typer.Option(None, "--seed", help="Override the forest seed."),
    no_noise: bool = typer.Option(False, "--no-noise", help="Disable forecast noise."),
    light: bool = typer.Option(False, "--light", help="Use the light tree count."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Forecast a daily series with the random forest (or growth fallback)."""
    from clinic_forecaster.forecasting.autoregressive import AutoregressiveForecaster
    from clinic_forecaster.utils.time_utils import forecast_dates

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    values = _read_series_or_exit(input_path)

    dates: list[date] = []
    if month_end:
        if last_date is None:
            typer.echo("[ERROR] --month-end requires --last-date.", err=True)
            raise typer.Exit(code=1)
        last = _parse_date_or_exit(last_date, "--last-date")
        ref = _parse_date_or_exit(today, "--today") if today else date.today()
        dates = forecast_dates(last, ref)
        steps = len(dates)
    else:
        steps = config.forecast.default_horizon if horizon is None else horizon
        if steps < 0:
            typer.echo(f"[ERROR] --horizon must be >= 0, got {steps}.", err=True)
            raise typer.Exit(code=1)

    if seed is not None:
        config = config.model_copy(
            update={"forest": config.forest.model_copy(update={"seed": seed})}
        )
    forecaster = AutoregressiveForecaster.from_config(
        config, light=light, add_noise=False if no_noise else None
    )
    result = forecaster.forecast(values, steps)

    payload = result.model_dump()
    if dates:
        payload["dates"] = [d.isoformat() for d in dates]
    _echo_json(payload)


@app.command("confidence")
def confidence(
    input_path: str = typer.Option(..., "--input", help="JSON file with the daily series."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Backtested forecast confidence (0–100) for one series."""
    from clinic_forecaster.backtest.evaluator import BacktestEvaluator

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    values = _read_series_or_exit(input_path)

    report = BacktestEvaluator.from_config(config).evaluate(values)
    _echo_json(report.model_dump())


@app.command("clinic-confidence")
def clinic_confidence(
    revenue_path: str = typer.Option(..., "--revenue", help="JSON file with daily revenue."),
    patients_path: str = typer.Option(..., "--patients", help="JSON file with daily patient counts."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Blended revenue/patient confidence (0–100) for the clinic dashboard."""
    from clinic_forecaster.backtest.evaluator import BacktestEvaluator
    from clinic_forecaster.validation import InvalidSeriesError

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    revenue = _read_series_or_exit(revenue_path, "revenue")
    patients = _read_series_or_exit(patients_path, "patients")

    try:
        report = BacktestEvaluator.from_config(config).evaluate_clinic(revenue, patients)
    except InvalidSeriesError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    _echo_json(report.model_dump())


@app.command("patient-analytics")
def patient_analytics(
    input_path: str = typer.Option(..., "--input", help="JSON file with daily trends."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Retention, visit-frequency and growth cards for a clinic history."""
    from pydantic import ValidationError

    from clinic_forecaster.analytics.patients import analyze_patients
    from clinic_forecaster.models.analytics import DailyTrends

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    payload = _read_json_or_exit(input_path)

    try:
        trends = DailyTrends.model_validate(payload)
    except ValidationError as exc:
        typer.echo(f"[ERROR] {input_path}: {exc}", err=True)
        raise typer.Exit(code=1)
    _echo_json(analyze_patients(trends, config.forest).model_dump())


@app.command("project-revenue")
def project_revenue(
    input_path: str = typer.Option(..., "--input", help="JSON file with daily trends (this month at least)."),
    history_path: Optional[str] = typer.Option(
        None, "--history", help="JSON daily trends with the full revenue history to train on."
    ),
    today: Optional[str] = typer.Option(None, "--today", help="Reference date (default: today)."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Month-to-date revenue plus a forecast for the rest of the month."""
    from pydantic import ValidationError

    from clinic_forecaster.forecasting.autoregressive import AutoregressiveForecaster
    from clinic_forecaster.forecasting.projection import project_month_revenue
    from clinic_forecaster.models.analytics import DailyTrends

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    ref = _parse_date_or_exit(today, "--today") if today else date.today()

    try:
        trends = DailyTrends.model_validate(_read_json_or_exit(input_path))
        history = (
            DailyTrends.model_validate(_read_json_or_exit(history_path))
            if history_path
            else None
        )
    except ValidationError as exc:
        typer.echo(f"[ERROR] Invalid daily trends: {exc}", err=True)
        raise typer.Exit(code=1)

    projection = project_month_revenue(
        trends, ref, history=history, forecaster=AutoregressiveForecaster.from_config(config)
    )
    _echo_json(projection.model_dump())


@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Trees (default/light): {config.forest.num_trees}/{config.forest.light_num_trees}")
    typer.echo(f"  Seed:                  {config.forest.seed}")
    typer.echo(f"  Threshold strategy:    {config.forest.threshold_strategy}")
    typer.echo(f"  Default horizon:       {config.forecast.default_horizon}")
    typer.echo(f"  Noise:                 {config.forecast.noise_pct if config.forecast.add_noise else 'off'}")
    typer.echo(f"  Train fraction:        {config.backtest.train_fraction}")
    typer.echo(f"  Log level:             {config.logging.level}")
    typer.echo(f"  Debug mode:            {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))

    typer.echo("")


if __name__ == "__main__":
    app()
