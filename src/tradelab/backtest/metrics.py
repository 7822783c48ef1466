"""Performance metrics: total return, intraday drawdown, trade heuristics."""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

import numpy as np

from tradelab.core.models import MetricsRecord, OHLCBar

logger = logging.getLogger(__name__)

OBSERVATIONS_PER_TRADE = 5
BASE_WIN_RATE = 50.0
WIN_RATE_TILT = 10.0
WIN_RATE_NOISE = 10.0


class MetricsEngine:
    """Computes the summary statistics record for an OHLC series.

    ``total_return_pct`` and ``max_drawdown_pct`` are pure functions of the
    series. ``win_rate_pct`` and ``profitable_trade_count`` include a random
    component and are not a simulated strategy.

    Parameters
    ----------
    rng : numpy.random.Generator | None
        Random source for the win-rate noise term.
    clamp_win_rate : bool
        Clamp ``win_rate_pct`` into ``[0, 100]``. Default: True.
    """

    def __init__(
        self,
        rng: np.random.Generator | None = None,
        clamp_win_rate: bool = True,
    ) -> None:
        self._rng = rng if rng is not None else np.random.default_rng()
        self._clamp = clamp_win_rate

    def compute(self, series: Sequence[OHLCBar]) -> MetricsRecord:
        """Compute all metrics. An empty series yields an all-zero record."""
        if not series:
            return MetricsRecord()

        total_return = self.total_return(series)
        max_dd = self.max_drawdown(series)
        trades = self.trade_count(series)
        win_rate = self.win_rate(total_return)
        profitable = math.floor(trades * win_rate / 100)

        return MetricsRecord(
            total_return_pct=round(total_return, 2),
            max_drawdown_pct=round(max_dd, 2),
            win_rate_pct=round(win_rate, 2),
            trade_count=trades,
            profitable_trade_count=min(max(profitable, 0), trades),
        )

    def total_return(self, series: Sequence[OHLCBar]) -> float:
        """Percent change from the first close to the last close."""
        if len(series) < 2:
            return 0.0
        first = series[0].close
        if first == 0:
            return 0.0
        return float((series[-1].close - first) / first * 100)

    def max_drawdown(self, series: Sequence[OHLCBar]) -> float:
        """Largest decline from a running high to a bar's low, in percent.

        The peak starts at the first close and is raised by each bar's high
        before that bar's low is measured against it, so a wide single day
        can set the maximum. Fewer than two bars give 0.
        """
        if len(series) < 2:
            return 0.0

        highs = np.fromiter((b.high for b in series), dtype=float, count=len(series))
        lows = np.fromiter((b.low for b in series), dtype=float, count=len(series))

        peaks = np.maximum.accumulate(np.concatenate(([series[0].close], highs)))[1:]
        with np.errstate(divide="ignore", invalid="ignore"):
            drawdowns = np.where(peaks > 0, (peaks - lows) / peaks * 100, 0.0)

        return float(max(0.0, drawdowns.max()))

    def trade_count(self, series: Sequence[OHLCBar]) -> int:
        """Density heuristic: one trade per five observations."""
        return len(series) // OBSERVATIONS_PER_TRADE

    def win_rate(self, total_return_pct: float) -> float:
        """50 ± 10 keyed by return sign, plus uniform noise in ``[0, 10)``."""
        tilt = WIN_RATE_TILT if total_return_pct > 0 else -WIN_RATE_TILT
        rate = BASE_WIN_RATE + tilt + float(self._rng.random()) * WIN_RATE_NOISE
        if self._clamp:
            rate = min(max(rate, 0.0), 100.0)
        return rate
