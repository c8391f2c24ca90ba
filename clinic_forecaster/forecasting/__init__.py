"""
Multi-step forecasters.

Modules
-------
noise           Seeded ±pct multiplicative noise, one stream per call.
fallback        Growth-rate extrapolation for short histories.
autoregressive  Random-forest recursive forecaster with fallback.
batch           Parallel forecasts over independent series.
projection      Month-to-date revenue plus a forecast to month end.
"""
