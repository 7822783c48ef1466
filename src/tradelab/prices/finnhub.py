"""Finnhub price source: windowed candle queries over httpx.

Uses ``/stock/candle`` with an explicit ``from``/``to`` epoch window, so the
provider only returns bars inside the requested range. The same client also
serves real-time quotes (``/quote``) and company news (``/company-news``).
"""

from __future__ import annotations

import logging
from datetime import UTC, date, datetime, time, timedelta
from typing import Any

from pydantic import ValidationError

from tradelab.core.config import FinnhubConfig
from tradelab.core.exceptions import (
    ConfigurationError,
    EmptyRangeError,
    PayloadError,
)
from tradelab.core.models import Headline, OHLCBar, Quote
from tradelab.prices.normalize import normalize_series
from tradelab.prices.transport import get_json

logger = logging.getLogger(__name__)

_CANDLE_PATH = "/stock/candle"
_QUOTE_PATH = "/quote"
_NEWS_PATH = "/company-news"


class FinnhubAdapter:
    """Transforms a Finnhub columnar candle response into OHLCBar records.

    The response carries parallel arrays ``t, o, h, l, c, v`` and a status
    flag ``s``. Values may arrive as numbers or numeric strings.
    """

    name = "finnhub"

    def adapt(self, raw_data: Any, ticker: str, start: date, end: date) -> list[OHLCBar]:
        """Parse a candle payload into a normalized series.

        Raises
        ------
        EmptyRangeError
            Status is not ``"ok"`` or the arrays are empty.
        PayloadError
            Arrays are ragged or values are not numeric.
        """
        context = {"provider": self.name, "ticker": ticker}
        if not isinstance(raw_data, dict):
            raise PayloadError(
                "Finnhub candle response is not an object",
                context={**context, "reason": "not_an_object"},
            )

        status = raw_data.get("s")
        timestamps = raw_data.get("t") or []
        if status != "ok" or not timestamps or not raw_data.get("c"):
            raise EmptyRangeError(
                f"Finnhub has no data for {ticker} between {start} and {end}",
                context={**context, "status": status},
            )

        try:
            columns = {key: raw_data.get(key) or [] for key in ("o", "h", "l", "c")}
            volumes = raw_data.get("v") or []
            ragged = any(len(col) != len(timestamps) for col in columns.values())
        except TypeError as e:
            raise PayloadError(
                "Finnhub candle columns are not arrays",
                context={**context, "reason": "not_an_array"},
            ) from e
        if ragged:
            raise PayloadError(
                "Finnhub candle arrays have mismatched lengths",
                context={**context, "reason": "ragged_arrays"},
            )

        try:
            bars = [
                OHLCBar(
                    time=datetime.fromtimestamp(int(ts), tz=UTC).date(),
                    open=float(columns["o"][i]),
                    high=float(columns["h"][i]),
                    low=float(columns["l"][i]),
                    close=float(columns["c"][i]),
                    volume=int(float(volumes[i])) if i < len(volumes) else None,
                )
                for i, ts in enumerate(timestamps)
            ]
        except (KeyError, TypeError, ValueError, OverflowError, OSError, ValidationError) as e:
            raise PayloadError(
                f"Finnhub candle values could not be parsed: {e}",
                context={**context, "reason": "bad_values"},
            ) from e

        series = normalize_series(bars, start, end)
        if not series:
            raise EmptyRangeError(
                f"Finnhub returned no bars for {ticker} inside {start}..{end}",
                context=context,
            )
        return series


class FinnhubSource:
    """Fetches candles, quotes, and company news from Finnhub.

    Parameters
    ----------
    config : FinnhubConfig
        Must carry an ``api_key``; otherwise construction fails with
        ``ConfigurationError``.
    adapter : FinnhubAdapter | None
        Custom adapter instance. Uses default if None.
    """

    name = "finnhub"

    def __init__(self, config: FinnhubConfig, adapter: FinnhubAdapter | None = None) -> None:
        if not config.api_key:
            raise ConfigurationError(
                "Finnhub API key is not configured",
                context={"provider": self.name, "field": "finnhub.api_key"},
            )
        self._config = config
        self._adapter = adapter or FinnhubAdapter()

    async def _get(self, path: str, ticker: str, params: dict[str, str]) -> Any:
        return await get_json(
            f"{self._config.base_url}{path}",
            {**params, "token": self._config.api_key or ""},
            timeout=self._config.request_timeout,
            provider=self.name,
            ticker=ticker,
        )

    async def fetch(self, ticker: str, start: date, end: date) -> list[OHLCBar]:
        """Fetch daily candles for ``[start, end]`` in one windowed request."""
        period_from = int(datetime.combine(start, time.min, tzinfo=UTC).timestamp())
        period_to = int(datetime.combine(end, time.max, tzinfo=UTC).timestamp())

        raw = await self._get(
            _CANDLE_PATH,
            ticker,
            {
                "symbol": ticker,
                "resolution": "D",
                "from": str(period_from),
                "to": str(period_to),
            },
        )
        series = self._adapter.adapt(raw, ticker, start, end)
        logger.info("Finnhub returned %d bars for %s", len(series), ticker)
        return series

    async def get_quote(self, ticker: str) -> Quote:
        """Fetch the current quote snapshot for a ticker."""
        raw = await self._get(_QUOTE_PATH, ticker, {"symbol": ticker})
        if not isinstance(raw, dict) or not raw.get("c"):
            # Finnhub answers unknown symbols with an all-zero quote
            raise EmptyRangeError(
                f"Finnhub has no quote for {ticker}",
                context={"provider": self.name, "ticker": ticker},
            )
        try:
            return Quote(
                ticker=ticker,
                current=raw["c"],
                high=raw["h"],
                low=raw["l"],
                open=raw["o"],
                previous_close=raw["pc"],
                change=raw.get("d"),
                change_percent=raw.get("dp"),
            )
        except (KeyError, ValidationError) as e:
            raise PayloadError(
                f"Finnhub quote could not be parsed: {e}",
                context={"provider": self.name, "ticker": ticker, "reason": "bad_quote"},
            ) from e

    async def company_news(
        self,
        ticker: str,
        lookback_days: int = 30,
        limit: int = 15,
        today: date | None = None,
    ) -> list[Headline]:
        """Fetch up to ``limit`` headlines from the last ``lookback_days`` days."""
        end = today or datetime.now(UTC).date()
        start = end - timedelta(days=lookback_days)
        raw = await self._get(
            _NEWS_PATH,
            ticker,
            {"symbol": ticker, "from": start.isoformat(), "to": end.isoformat()},
        )
        if not isinstance(raw, list):
            raise PayloadError(
                "Finnhub company news response is not a list",
                context={"provider": self.name, "ticker": ticker, "reason": "not_a_list"},
            )

        headlines: list[Headline] = []
        for article in raw:
            text = article.get("headline") if isinstance(article, dict) else None
            if not text:
                continue
            try:
                published = datetime.fromtimestamp(int(article.get("datetime") or 0), tz=UTC)
                headline = Headline(text=text, published_at=published)
            except (TypeError, ValueError, OverflowError, OSError, ValidationError):
                logger.debug("Skipping Finnhub article with unreadable fields: %r", article)
                continue
            headlines.append(headline)
            if len(headlines) >= limit:
                break

        if not headlines:
            raise EmptyRangeError(
                f"No news available for {ticker}",
                context={"provider": self.name, "ticker": ticker},
            )
        return headlines
