"""Headline sentiment (narrative) collaborator. Optional, outside the backtest path."""

from tradelab.narrative.analyzer import (
    ANALYST_PROMPT_TEMPLATE,
    GeminiBackend,
    LLMBackend,
    NarrativeAnalyzer,
    build_prompt,
    parse_analysis,
)
from tradelab.narrative.pipeline import fundamental_analysis

__all__ = [
    "ANALYST_PROMPT_TEMPLATE",
    "LLMBackend",
    "GeminiBackend",
    "NarrativeAnalyzer",
    "build_prompt",
    "parse_analysis",
    "fundamental_analysis",
]
