"""tradelab: single-ticker price history, backtest metrics, and headline sentiment."""

__version__ = "0.1.0"
