"""Custom exception hierarchy for tradelab."""

from typing import Any


class TradelabError(Exception):
    """Base exception for all tradelab errors.

    All exceptions carry an optional `context` dict for structured error
    metadata that can be logged or serialized without parsing the message.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.context = context or {}


class ConfigError(TradelabError):
    """Invalid configuration file or values.

    Raised by load_config() during startup. Should be treated as fatal.

    Context keys:
        field: str - the config field that failed validation
        value: Any - the invalid value (redacted for secrets)
    """


class InvalidRequestError(TradelabError):
    """Structurally invalid backtest request (bad ticker, bad dates).

    Policy: raised before any adapter runs and propagated to the caller.

    Context keys:
        field: str - the request field that failed validation
    """


class SourceError(TradelabError):
    """A live price source failed to produce a series.

    Policy: the acquisition orchestrator logs it and moves to the next
    provider. Never propagated to the caller of run_backtest().

    Context keys:
        provider: str - "finnhub", "alpha_vantage", ...
        ticker: str - the requested symbol
    """


class ConfigurationError(SourceError):
    """Provider credential is missing.

    Raised from the adapter constructor, not at fetch time.
    """


class TransportError(SourceError):
    """Network failure or non-success HTTP status.

    Context keys:
        status_code: int | None - HTTP status when the server answered
        url: str - the endpoint that was called
    """


class RateLimitError(SourceError):
    """Provider signalled throttling (HTTP 429 or a rate-limit notice)."""


class InvalidSymbolError(SourceError):
    """Provider reported that the ticker does not exist."""


class EmptyRangeError(SourceError):
    """Well-formed request, but no records fell inside the window."""


class PayloadError(SourceError):
    """Provider answered with a payload that could not be normalized.

    Context keys:
        reason: str - what was wrong with the payload
    """


class GenerationError(TradelabError):
    """Synthetic series generation failed.

    Policy: fatal. There is no fallback below the generator.
    """


class NarrativeError(TradelabError):
    """Headline sentiment analysis failed.

    Policy: log and report separately. Never affects a backtest result.
    """


class LLMError(NarrativeError):
    """LLM provider returned an error or malformed response.

    Context keys:
        provider: str - "gemini", ...
        status_code: int | None - HTTP status code if applicable
        response_body: str | None - truncated response for debugging
    """
