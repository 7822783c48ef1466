"""Headline sentiment analysis with a pluggable LLM backend."""

from __future__ import annotations

import json
import logging
from typing import Protocol, runtime_checkable

import httpx
from pydantic import ValidationError

from tradelab.core.config import NarrativeConfig
from tradelab.core.exceptions import ConfigurationError, LLMError
from tradelab.core.models import NarrativeAnalysis, NarrativeRequest

logger = logging.getLogger(__name__)

# --- Prompt Template ---

ANALYST_PROMPT_TEMPLATE = """You are a Senior Equity Analyst. Analyze these recent news headlines for {ticker}.

NEWS HEADLINES:
{headlines}

Return ONLY a valid JSON object with this EXACT structure (no markdown, no explanation):
{{
  "sentiment_score": <number 0-100>,
  "sentiment_summary": "<1 sentence explaining the overall market sentiment>",
  "fair_value_estimate": "<Extract any price target range mentioned (e.g., $450-$480). If none found, write 'N/A'>",
  "leading_indicators": [
    {{
      "name": "<Key metric relevant to {ticker}>",
      "status": "<Bullish|Neutral|Bearish>",
      "reason": "<Why? Brief explanation>"
    }}
  ]
}}

Include exactly three leading indicators.
IMPORTANT: Return ONLY valid JSON. No markdown code blocks, no explanations outside the JSON."""


# --- Backend Protocol ---


@runtime_checkable
class LLMBackend(Protocol):
    """Protocol for LLM API backends."""

    @property
    def name(self) -> str: ...

    async def query(self, prompt: str) -> str: ...


class GeminiBackend:
    """LLM backend using the Gemini ``generateContent`` REST endpoint."""

    def __init__(self, config: NarrativeConfig) -> None:
        if not config.gemini_api_key:
            raise ConfigurationError(
                "Gemini API key is not configured",
                context={"provider": "gemini", "field": "narrative.gemini_api_key"},
            )
        self._config = config

    @property
    def name(self) -> str:
        return "gemini"

    async def query(self, prompt: str) -> str:
        url = f"{self._config.base_url}/models/{self._config.model}:generateContent"
        body = {"contents": [{"parts": [{"text": prompt}]}]}

        try:
            async with httpx.AsyncClient(timeout=self._config.timeout_seconds) as client:
                resp = await client.post(
                    url,
                    params={"key": self._config.gemini_api_key or ""},
                    json=body,
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as e:
            raise LLMError(
                f"Gemini API error: HTTP {e.response.status_code}",
                context={
                    "provider": self.name,
                    "status_code": e.response.status_code,
                    "response_body": e.response.text[:500],
                },
            ) from e
        except httpx.RequestError as e:
            raise LLMError(
                f"Gemini connection error: {e}",
                context={"provider": self.name},
            ) from e
        except ValueError as e:
            raise LLMError(
                "Gemini returned a non-JSON body",
                context={"provider": self.name},
            ) from e

        try:
            return data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise LLMError(
                "Gemini response has no candidate text",
                context={"provider": self.name, "response_body": json.dumps(data)[:500]},
            ) from e


# --- Response Parsing ---


def parse_analysis(raw: str) -> NarrativeAnalysis:
    """Parse LLM output into a NarrativeAnalysis.

    Handles markdown code fences and surrounding whitespace.
    """
    cleaned = raw.strip()
    if cleaned.startswith("```"):
        lines = cleaned.split("\n")
        lines = [line for line in lines if not line.strip().startswith("```")]
        cleaned = "\n".join(lines).strip()

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise LLMError(
            f"Failed to parse LLM response as JSON: {e}",
            context={"response_body": raw[:500], "parse_error": str(e)},
        ) from e

    if not isinstance(data, dict):
        raise LLMError(
            f"Expected JSON object, got {type(data).__name__}",
            context={"response_body": raw[:500]},
        )

    try:
        return NarrativeAnalysis.model_validate(data)
    except ValidationError as e:
        raise LLMError(
            f"LLM response does not match the analysis shape: {e.error_count()} error(s)",
            context={"response_body": raw[:500]},
        ) from e


def build_prompt(request: NarrativeRequest) -> str:
    """Render numbered headlines with their publication dates into the prompt."""
    lines = [
        f"{i}. {h.text} ({h.published_at.date().isoformat()})"
        for i, h in enumerate(request.headlines[: request.max_headlines], start=1)
    ]
    return ANALYST_PROMPT_TEMPLATE.format(ticker=request.ticker, headlines="\n".join(lines))


# --- Analyzer ---


class NarrativeAnalyzer:
    """Turns a ticker's recent headlines into a sentiment summary."""

    def __init__(self, backend: LLMBackend) -> None:
        self._backend = backend

    @property
    def backend_name(self) -> str:
        return self._backend.name

    async def analyze(self, request: NarrativeRequest) -> NarrativeAnalysis:
        if not request.headlines:
            raise LLMError(
                f"No headlines to analyze for {request.ticker}",
                context={"provider": self._backend.name},
            )
        prompt = build_prompt(request)
        logger.debug(
            "Querying %s with %d headlines for %s",
            self._backend.name,
            min(len(request.headlines), request.max_headlines),
            request.ticker,
        )
        raw = await self._backend.query(prompt)
        return parse_analysis(raw)
