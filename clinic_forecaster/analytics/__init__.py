"""
Patient analytics built on the forecasting engine.

Modules
-------
patients  Retention, visit-frequency and growth cards from daily trends.
"""
