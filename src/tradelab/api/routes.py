"""FastAPI route definitions for the tradelab API."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

import tradelab
from tradelab.acquisition.service import BacktestService, clean_ticker, make_request
from tradelab.api.deps import get_config, get_service
from tradelab.api.schemas import (
    BacktestRequestBody,
    BacktestResponse,
    ErrorResponse,
    FundamentalAnalysisRequest,
    HealthResponse,
)
from tradelab.core.config import TradelabConfig
from tradelab.core.models import NarrativeAnalysis, Quote
from tradelab.narrative.pipeline import fundamental_analysis
from tradelab.prices.finnhub import FinnhubSource

logger = logging.getLogger(__name__)

router = APIRouter()

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


# -- Health --


@router.get("/health", response_model=HealthResponse)
async def health_check(config: TradelabConfig = Depends(get_config)):
    """Liveness plus the configured provider order."""
    return HealthResponse(
        status="ok",
        version=tradelab.__version__,
        providers=list(config.acquisition.providers),
        narrative_enabled=config.narrative.enabled,
    )


# -- Backtest --


@router.post("/backtest", response_model=BacktestResponse, responses=_ERROR_RESPONSES)
async def backtest(
    body: BacktestRequestBody,
    service: BacktestService = Depends(get_service),
    config: TradelabConfig = Depends(get_config),
):
    """Acquire a series for the ticker and window, then compute metrics.

    Live failures fall back to synthetic data; check ``provenance``.
    """
    prefer_live = config.acquisition.prefer_live if body.prefer_live is None else body.prefer_live
    request = make_request(body.ticker, body.start_date, body.end_date, prefer_live)
    result = await service.run(request)
    return BacktestResponse(
        ticker=result.ticker,
        series=result.series,
        metrics=result.metrics,
        provenance=result.provenance.value,
        source=result.source,
        attempts=result.attempts,
    )


# -- Quote --


@router.get("/quote/{ticker}", response_model=Quote, responses=_ERROR_RESPONSES)
async def quote(ticker: str, config: TradelabConfig = Depends(get_config)):
    """Real-time quote from Finnhub."""
    return await FinnhubSource(config.finnhub).get_quote(clean_ticker(ticker))


# -- Narrative --


@router.post(
    "/fundamental-analysis", response_model=NarrativeAnalysis, responses=_ERROR_RESPONSES
)
async def fundamental(
    body: FundamentalAnalysisRequest,
    config: TradelabConfig = Depends(get_config),
):
    """Headline sentiment for a ticker from the last month of news."""
    return await fundamental_analysis(clean_ticker(body.ticker), config)
