"""Backtest service: validate the request, acquire a series, compute metrics."""

from __future__ import annotations

import logging
from datetime import date

import numpy as np
from pydantic import ValidationError

from tradelab.acquisition.orchestrator import AcquisitionOrchestrator
from tradelab.backtest.metrics import MetricsEngine
from tradelab.core.config import TradelabConfig, load_config
from tradelab.core.exceptions import InvalidRequestError
from tradelab.core.models import BacktestRequest, BacktestResult, normalize_ticker

logger = logging.getLogger(__name__)


def make_request(
    ticker: str,
    start_date: str | date,
    end_date: str | date,
    prefer_live: bool = True,
    base_price: float | None = None,
) -> BacktestRequest:
    """Validate raw inputs into a ``BacktestRequest``.

    Raises
    ------
    InvalidRequestError
        Malformed ticker or dates, or start after end.
    """
    try:
        return BacktestRequest(
            ticker=ticker,
            start_date=start_date,
            end_date=end_date,
            prefer_live=prefer_live,
            base_price=base_price,
        )
    except ValidationError as e:
        fields = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
        raise InvalidRequestError(
            f"Invalid backtest request: {e.errors()[0]['msg']}",
            context={"field": fields[0] if fields else None, "fields": fields},
        ) from e


def clean_ticker(ticker: str) -> str:
    """Normalize a bare ticker, raising ``InvalidRequestError`` if malformed."""
    try:
        return normalize_ticker(ticker)
    except ValueError as e:
        raise InvalidRequestError(str(e), context={"field": "ticker"}) from e


class BacktestService:
    """Single entry point used by the CLI and the HTTP API."""

    def __init__(
        self,
        orchestrator: AcquisitionOrchestrator,
        engine: MetricsEngine | None = None,
    ) -> None:
        self._orchestrator = orchestrator
        self._engine = engine or MetricsEngine()

    @classmethod
    def from_config(cls, config: TradelabConfig) -> BacktestService:
        return cls(
            orchestrator=AcquisitionOrchestrator.from_config(config),
            engine=MetricsEngine(np.random.default_rng(config.generator.seed)),
        )

    async def run(self, request: BacktestRequest) -> BacktestResult:
        """Acquire the series for ``request`` and attach fresh metrics."""
        outcome = await self._orchestrator.acquire(
            request.ticker,
            request.start_date,
            request.end_date,
            prefer_live=request.prefer_live,
            base_price=request.base_price,
        )
        metrics = self._engine.compute(outcome.series)
        return BacktestResult(
            ticker=request.ticker,
            series=outcome.series,
            metrics=metrics,
            provenance=outcome.provenance,
            source=outcome.source,
            attempts=outcome.attempts,
        )


async def run_backtest(
    ticker: str,
    start_date: str | date,
    end_date: str | date,
    prefer_live: bool = True,
    config: TradelabConfig | None = None,
) -> BacktestResult:
    """Convenience wrapper: validate, acquire, and compute in one call."""
    request = make_request(ticker, start_date, end_date, prefer_live)
    service = BacktestService.from_config(config or load_config())
    return await service.run(request)
