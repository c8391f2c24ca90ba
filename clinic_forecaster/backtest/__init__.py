"""
Train/test backtesting for forecast confidence.

Modules
-------
metrics    MAE, RMSE and zero-safe MAPE.
evaluator  70/30 backtest, MAPE → confidence mapping, revenue/patient blend.
"""
