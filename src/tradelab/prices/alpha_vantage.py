"""Alpha Vantage price source: full-history daily series over httpx.

``TIME_SERIES_DAILY`` has no range filter, so every call pulls the full
history and the adapter filters to the requested window client-side. The
provider reports problems inside a 200 response (``Error Message``,
``Note``, ``Information``), which are checked before the data field.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from pydantic import ValidationError

from tradelab.core.config import AlphaVantageConfig
from tradelab.core.exceptions import (
    ConfigurationError,
    EmptyRangeError,
    InvalidSymbolError,
    PayloadError,
    RateLimitError,
)
from tradelab.core.models import OHLCBar
from tradelab.prices.normalize import normalize_series
from tradelab.prices.transport import get_json

logger = logging.getLogger(__name__)

_QUERY_PATH = "/query"
SERIES_KEY = "Time Series (Daily)"

# Provider fields are ordinal-prefixed labels
_FIELD_MAP: dict[str, str] = {
    "open": "1. open",
    "high": "2. high",
    "low": "3. low",
    "close": "4. close",
    "volume": "5. volume",
}


class AlphaVantageAdapter:
    """Transforms an Alpha Vantage daily series payload into OHLCBar records."""

    name = "alpha_vantage"

    def check_notices(self, raw_data: Any, ticker: str) -> dict[str, Any]:
        """Raise on provider-reported failures; return the date-keyed series."""
        context = {"provider": self.name, "ticker": ticker}
        if not isinstance(raw_data, dict):
            raise PayloadError(
                "Alpha Vantage response is not an object",
                context={**context, "reason": "not_an_object"},
            )

        if "Error Message" in raw_data:
            raise InvalidSymbolError(
                f"Alpha Vantage rejected symbol {ticker!r}",
                context={**context, "detail": str(raw_data["Error Message"])[:200]},
            )

        for notice_key in ("Note", "Information"):
            if notice_key in raw_data:
                raise RateLimitError(
                    "Alpha Vantage rate limit or plan notice",
                    context={**context, "detail": str(raw_data[notice_key])[:200]},
                )

        series = raw_data.get(SERIES_KEY)
        if not isinstance(series, dict) or not series:
            raise EmptyRangeError(
                f"Alpha Vantage returned no daily series for {ticker}",
                context={**context, "available_keys": sorted(raw_data)},
            )
        return series

    def adapt(self, raw_data: Any, ticker: str, start: date, end: date) -> list[OHLCBar]:
        """Parse, filter to ``[start, end]`` inclusive, and sort ascending."""
        series = self.check_notices(raw_data, ticker)

        bars: list[OHLCBar] = []
        for day, values in series.items():
            try:
                bar_date = date.fromisoformat(day)
            except ValueError as e:
                raise PayloadError(
                    f"Alpha Vantage series key is not a date: {day!r}",
                    context={"provider": self.name, "ticker": ticker, "reason": "bad_date"},
                ) from e
            if not start <= bar_date <= end:
                continue
            bars.append(self._parse_entry(bar_date, values, ticker))

        result = normalize_series(bars, start, end)
        if not result:
            raise EmptyRangeError(
                f"Alpha Vantage has no bars for {ticker} inside {start}..{end}",
                context={
                    "provider": self.name,
                    "ticker": ticker,
                    "total_points": len(series),
                },
            )
        return result

    def _parse_entry(self, bar_date: date, values: Any, ticker: str) -> OHLCBar:
        try:
            volume = values.get(_FIELD_MAP["volume"])
            return OHLCBar(
                time=bar_date,
                open=float(values[_FIELD_MAP["open"]]),
                high=float(values[_FIELD_MAP["high"]]),
                low=float(values[_FIELD_MAP["low"]]),
                close=float(values[_FIELD_MAP["close"]]),
                volume=int(volume) if volume is not None else None,
            )
        except (AttributeError, KeyError, TypeError, ValueError, ValidationError) as e:
            raise PayloadError(
                f"Alpha Vantage entry for {bar_date} could not be parsed: {e}",
                context={"provider": self.name, "ticker": ticker, "reason": "bad_values"},
            ) from e


class AlphaVantageSource:
    """Fetches daily bars from Alpha Vantage.

    Parameters
    ----------
    config : AlphaVantageConfig
        Must carry an ``api_key``; otherwise construction fails with
        ``ConfigurationError``.
    adapter : AlphaVantageAdapter | None
        Custom adapter instance. Uses default if None.
    """

    name = "alpha_vantage"

    def __init__(
        self,
        config: AlphaVantageConfig,
        adapter: AlphaVantageAdapter | None = None,
    ) -> None:
        if not config.api_key:
            raise ConfigurationError(
                "Alpha Vantage API key is not configured",
                context={"provider": self.name, "field": "alpha_vantage.api_key"},
            )
        self._config = config
        self._adapter = adapter or AlphaVantageAdapter()

    async def fetch(self, ticker: str, start: date, end: date) -> list[OHLCBar]:
        """Fetch full history in one request and keep ``[start, end]``."""
        raw = await get_json(
            f"{self._config.base_url}{_QUERY_PATH}",
            {
                "function": "TIME_SERIES_DAILY",
                "symbol": ticker,
                "outputsize": self._config.output_size,
                "apikey": self._config.api_key or "",
            },
            timeout=self._config.request_timeout,
            provider=self.name,
            ticker=ticker,
        )
        series = self._adapter.adapt(raw, ticker, start, end)
        logger.info("Alpha Vantage returned %d bars for %s", len(series), ticker)
        return series
