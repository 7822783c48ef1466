"""Backtest metrics over a canonical OHLC series."""

from tradelab.backtest.metrics import MetricsEngine

__all__ = ["MetricsEngine"]
