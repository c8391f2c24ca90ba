"""
Clinic Forecaster: random-forest forecasting and backtested confidence for
daily clinic revenue and patient-count series.
"""

__version__ = "0.3.0"
