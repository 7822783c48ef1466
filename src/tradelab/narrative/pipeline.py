"""News fetch + analysis, run independently of the backtest path."""

from __future__ import annotations

import logging
from typing import Any

from tradelab.core.config import TradelabConfig
from tradelab.core.exceptions import NarrativeError
from tradelab.core.models import NarrativeAnalysis, NarrativeRequest
from tradelab.narrative.analyzer import GeminiBackend, NarrativeAnalyzer
from tradelab.prices.finnhub import FinnhubSource

logger = logging.getLogger(__name__)


async def fundamental_analysis(
    ticker: str,
    config: TradelabConfig,
    news_source: Any | None = None,
    analyzer: NarrativeAnalyzer | None = None,
) -> NarrativeAnalysis:
    """Fetch recent headlines for ``ticker`` and analyze them.

    ``news_source`` needs a ``company_news(ticker, lookback_days, limit)``
    coroutine; Finnhub is used if None.

    Raises
    ------
    NarrativeError
        Narrative analysis is disabled.
    ConfigurationError
        Finnhub or Gemini credentials are missing.
    EmptyRangeError
        No headlines in the lookback window.
    LLMError
        The backend failed or returned an unusable answer.
    """
    narrative = config.narrative
    if not narrative.enabled:
        raise NarrativeError(
            "Narrative analysis is disabled in config",
            context={"field": "narrative.enabled"},
        )

    source = news_source or FinnhubSource(config.finnhub)
    analyzer = analyzer or NarrativeAnalyzer(GeminiBackend(narrative))

    headlines = await source.company_news(
        ticker,
        lookback_days=narrative.lookback_days,
        limit=narrative.max_headlines,
    )
    request = NarrativeRequest(
        ticker=ticker,
        headlines=headlines,
        max_headlines=narrative.max_headlines,
        lookback_days=narrative.lookback_days,
    )
    analysis = await analyzer.analyze(request)
    logger.info(
        "Narrative for %s: sentiment %.0f from %d headlines",
        ticker,
        analysis.sentiment_score,
        len(headlines),
    )
    return analysis
