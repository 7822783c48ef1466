"""Canonical series normalization shared by every source adapter."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from tradelab.core.models import OHLCBar


def normalize_series(bars: Iterable[OHLCBar], start: date, end: date) -> list[OHLCBar]:
    """Filter to ``[start, end]`` inclusive, drop duplicate dates, sort ascending.

    Later duplicates replace earlier ones. Applying this twice yields the
    same series as applying it once.
    """
    by_time: dict[date, OHLCBar] = {}
    for bar in bars:
        if start <= bar.time <= end:
            by_time[bar.time] = bar
    return [by_time[t] for t in sorted(by_time)]


def business_days(start: date, end: date) -> int:
    """Number of Monday–Friday dates in ``[start, end]``."""
    if start > end:
        return 0
    total = (end - start).days + 1
    full_weeks, remainder = divmod(total, 7)
    count = full_weeks * 5
    weekday = start.weekday()
    for offset in range(remainder):
        if (weekday + offset) % 7 < 5:
            count += 1
    return count
