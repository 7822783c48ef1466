"""Pydantic data models: the system's type contracts."""

from __future__ import annotations

import re
from datetime import date, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

# --- Type Aliases ---

Ticker = str
ProviderName = str

_TICKER_RE = re.compile(r"^[A-Z0-9.\-^=]{1,15}$")
_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def normalize_ticker(value: Any) -> str:
    """Strip and upper-case a ticker, rejecting empty or odd symbols."""
    if not isinstance(value, str):
        raise ValueError("ticker must be a string")
    ticker = value.strip().upper()
    if not ticker:
        raise ValueError("ticker must not be empty")
    if not _TICKER_RE.match(ticker):
        raise ValueError(f"ticker contains invalid characters: {value!r}")
    return ticker


# --- Enumerations ---


class Provenance(StrEnum):
    """Whether a result came from a live source or the synthetic generator."""

    REAL = "real"
    DEMO = "demo"


class AttemptOutcome(StrEnum):
    """How a single live-provider attempt ended."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"


class IndicatorStatus(StrEnum):
    """Direction of a leading indicator in a narrative analysis."""

    BULLISH = "Bullish"
    NEUTRAL = "Neutral"
    BEARISH = "Bearish"


# --- Price Models ---


class OHLCBar(BaseModel):
    """A single daily price bar: the canonical OHLC record.

    Every source adapter and the synthetic generator produce this shape.
    """

    model_config = ConfigDict(frozen=True)

    time: date
    open: float
    high: float
    low: float
    close: float
    volume: int | None = None

    @field_validator("volume")
    @classmethod
    def volume_non_negative(cls, v: int | None) -> int | None:
        if v is not None and v < 0:
            raise ValueError(f"volume must be >= 0, got {v}")
        return v

    @model_validator(mode="after")
    def range_contains_body(self) -> OHLCBar:
        if self.high < self.low:
            raise ValueError(f"high ({self.high}) must be >= low ({self.low})")
        if self.low > min(self.open, self.close):
            raise ValueError(
                f"low ({self.low}) must be <= min(open, close) on {self.time}"
            )
        if self.high < max(self.open, self.close):
            raise ValueError(
                f"high ({self.high}) must be >= max(open, close) on {self.time}"
            )
        return self


class Quote(BaseModel):
    """Real-time quote snapshot for a ticker."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    ticker: Ticker
    current: float
    high: float
    low: float
    open: float
    previous_close: float
    change: float | None = None
    change_percent: float | None = None


# --- Metrics Models ---


class MetricsRecord(BaseModel):
    """Summary statistics derived from an OHLC series.

    Percentages are already rounded to 2 decimals.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    total_return_pct: float = 0.0
    max_drawdown_pct: float = Field(default=0.0, ge=0.0)
    win_rate_pct: float = Field(default=0.0, ge=0.0, le=100.0)
    trade_count: int = Field(default=0, ge=0)
    profitable_trade_count: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def profitable_within_trades(self) -> MetricsRecord:
        if self.profitable_trade_count > self.trade_count:
            raise ValueError(
                f"profitable_trade_count ({self.profitable_trade_count}) "
                f"must be <= trade_count ({self.trade_count})"
            )
        return self


# --- Backtest Models ---


class BacktestRequest(BaseModel):
    """Validated inbound request for a single-ticker backtest."""

    model_config = ConfigDict(frozen=True)

    ticker: Ticker
    start_date: date
    end_date: date
    prefer_live: bool = True
    base_price: float | None = Field(default=None, gt=0)

    @field_validator("ticker", mode="before")
    @classmethod
    def ticker_normalized(cls, v: Any) -> str:
        return normalize_ticker(v)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def iso_calendar_date(cls, v: Any) -> Any:
        if isinstance(v, str):
            if not _ISO_DATE_RE.match(v):
                raise ValueError(f"date must be formatted YYYY-MM-DD, got {v!r}")
            return date.fromisoformat(v)
        if isinstance(v, datetime):
            return v.date()
        if not isinstance(v, date):
            raise ValueError(f"expected a calendar date, got {type(v).__name__}")
        return v

    @model_validator(mode="after")
    def start_not_after_end(self) -> BacktestRequest:
        if self.start_date > self.end_date:
            raise ValueError(
                f"start_date ({self.start_date}) must be <= end_date ({self.end_date})"
            )
        return self


class ProviderAttempt(BaseModel):
    """One live-provider attempt recorded by the orchestrator."""

    model_config = ConfigDict(frozen=True)

    provider: ProviderName
    outcome: AttemptOutcome
    error_type: str | None = None
    message: str | None = None


class BacktestResult(BaseModel):
    """A series, its metrics, and where the series came from."""

    model_config = ConfigDict(frozen=True)

    ticker: Ticker
    series: list[OHLCBar]
    metrics: MetricsRecord
    provenance: Provenance
    source: ProviderName
    attempts: list[ProviderAttempt] = Field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        """Render the caller-facing ``{series, metrics, provenance}`` shape."""
        return {
            "series": [bar.model_dump(mode="json") for bar in self.series],
            "metrics": self.metrics.model_dump(mode="json", by_alias=True),
            "provenance": self.provenance.value,
        }


# --- Narrative Models ---


class Headline(BaseModel):
    """A news headline fed to the narrative analyzer."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    text: str
    published_at: datetime


class NarrativeRequest(BaseModel):
    """Input contract for the narrative collaborator."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    ticker: Ticker
    headlines: list[Headline]
    max_headlines: int = 15
    lookback_days: int = 30


class LeadingIndicator(BaseModel):
    """A named driver with a directional read."""

    model_config = ConfigDict(frozen=True)

    name: str
    status: IndicatorStatus
    reason: str


class NarrativeAnalysis(BaseModel):
    """Headline sentiment summary returned by the narrative collaborator."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    sentiment_score: float = Field(ge=0.0, le=100.0)
    sentiment_summary: str
    fair_value_estimate: str = "N/A"
    leading_indicators: list[LeadingIndicator] = Field(default_factory=list)
