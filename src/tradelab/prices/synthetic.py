"""Synthetic OHLC series via a bounded random walk.

Used as the demo fallback when no live source can serve a request. The
shape of the output (one bar per business day) is deterministic; the prices
are not unless a seeded generator is supplied.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta

import numpy as np

from tradelab.core.exceptions import GenerationError
from tradelab.core.models import OHLCBar

logger = logging.getLogger(__name__)

DAILY_VOLATILITY = 0.02
DRIFT_CENTER = 0.48  # uniform draw centred below 0.5 gives a slight upward bias
DRIFT_SCALE = 0.01
MIN_VOLUME = 1_000_000
VOLUME_SPAN = 5_000_000


class SeriesGenerator:
    """Produces a plausible daily OHLC series for a date window.

    Parameters
    ----------
    rng : numpy.random.Generator | None
        Random source. A fresh unseeded generator is used if None.
    """

    def __init__(self, rng: np.random.Generator | None = None) -> None:
        self._rng = rng if rng is not None else np.random.default_rng()

    def random_base_price(self, low: float = 100.0, high: float = 300.0) -> float:
        """Draw a starting price uniformly from ``[low, high)``."""
        return float(low + self._rng.random() * (high - low))

    def generate(self, start: date, end: date, base_price: float) -> list[OHLCBar]:
        """Walk every weekday in ``[start, end]`` and emit one bar per day.

        Each day opens at the previous close (``base_price`` on the first
        day). High and low extend beyond the body by a random amount of at
        most twice the day's move, so the OHLC invariants always hold.
        """
        if not isinstance(start, date) or not isinstance(end, date):
            raise GenerationError(
                "start and end must be calendar dates",
                context={"start": repr(start), "end": repr(end)},
            )
        if not np.isfinite(base_price) or base_price <= 0:
            raise GenerationError(
                f"base_price must be a positive number, got {base_price}",
                context={"base_price": base_price},
            )

        bars: list[OHLCBar] = []
        price = float(base_price)
        current = start
        while current <= end:
            if current.weekday() < 5:
                bar, price = self._next_bar(current, price)
                bars.append(bar)
            current += timedelta(days=1)

        logger.debug(
            "Generated %d synthetic bars for %s..%s (base %.2f)",
            len(bars),
            start,
            end,
            base_price,
        )
        return bars

    def _next_bar(self, day: date, price: float) -> tuple[OHLCBar, float]:
        u = self._rng.random(5)
        trend = (u[0] - DRIFT_CENTER) * DRIFT_SCALE
        open_ = price
        change = open_ * (trend + (u[1] - 0.5) * DAILY_VOLATILITY)
        close = open_ + change

        max_move = abs(change) * 2
        high = max(open_, close) + u[2] * max_move
        low = min(open_, close) - u[3] * max_move
        volume = int(MIN_VOLUME + u[4] * VOLUME_SPAN)

        bar = OHLCBar(
            time=day,
            open=round(float(open_), 2),
            high=round(float(high), 2),
            low=round(float(low), 2),
            close=round(float(close), 2),
            volume=volume,
        )
        return bar, float(close)
