"""
Feature engineering for the forecasting engine.

Modules
-------
lag_features  Lag-window feature vectors (lags, moving average, trend,
              weekly cycle) and the sliding-window training-set builder.
"""
