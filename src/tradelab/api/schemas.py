"""API-specific request/response schemas (Pydantic v2)."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from tradelab.core.models import MetricsRecord, OHLCBar, ProviderAttempt


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# -- Error --


class ErrorResponse(BaseModel):
    """Standard error envelope."""

    error: str
    detail: str | None = None


# -- Health --


class HealthResponse(_CamelModel):
    status: str
    version: str
    providers: list[str]
    narrative_enabled: bool


# -- Backtest --


class BacktestRequestBody(_CamelModel):
    """POST /api/backtest body. Dates stay strings so validation owns the format."""

    ticker: str
    start_date: str | date
    end_date: str | date
    prefer_live: bool | None = None


class BacktestResponse(_CamelModel):
    ticker: str
    series: list[OHLCBar]
    metrics: MetricsRecord
    provenance: str
    source: str
    attempts: list[ProviderAttempt] = Field(default_factory=list)


# -- Narrative --


class FundamentalAnalysisRequest(BaseModel):
    ticker: str = ""
