"""Price sources: live provider adapters and the synthetic fallback.

Architecture
------------
    Provider API → SourceAdapter → list[OHLCBar] → AcquisitionOrchestrator
                   SeriesGenerator ↗ (demo fallback)

Key abstractions:

- ``SourceAdapter``: async ``fetch(ticker, start, end)`` protocol.
- ``normalize_series``: inclusive window filter, dedupe, ascending sort.
- ``SeriesGenerator``: business-day random walk.

Built-in implementations:

- ``AlphaVantageSource``: full-history query, client-side filtering.
- ``FinnhubSource``: windowed candle query, plus quotes and company news.
"""

from tradelab.prices.alpha_vantage import AlphaVantageAdapter, AlphaVantageSource
from tradelab.prices.finnhub import FinnhubAdapter, FinnhubSource
from tradelab.prices.normalize import business_days, normalize_series
from tradelab.prices.provider import SourceAdapter
from tradelab.prices.synthetic import SeriesGenerator

__all__ = [
    # Protocols
    "SourceAdapter",
    # Normalization
    "normalize_series",
    "business_days",
    # Alpha Vantage
    "AlphaVantageAdapter",
    "AlphaVantageSource",
    # Finnhub
    "FinnhubAdapter",
    "FinnhubSource",
    # Synthetic
    "SeriesGenerator",
]
