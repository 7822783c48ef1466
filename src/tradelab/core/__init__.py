"""tradelab.core: Foundation types, config, and exceptions."""

from tradelab.core.config import (
    AcquisitionConfig,
    AlphaVantageConfig,
    APIConfig,
    FinnhubConfig,
    GeneratorConfig,
    NarrativeConfig,
    TradelabConfig,
    load_config,
)
from tradelab.core.exceptions import (
    ConfigError,
    ConfigurationError,
    EmptyRangeError,
    GenerationError,
    InvalidRequestError,
    InvalidSymbolError,
    LLMError,
    NarrativeError,
    PayloadError,
    RateLimitError,
    SourceError,
    TradelabError,
    TransportError,
)
from tradelab.core.models import (
    AttemptOutcome,
    BacktestRequest,
    BacktestResult,
    Headline,
    IndicatorStatus,
    LeadingIndicator,
    MetricsRecord,
    NarrativeAnalysis,
    NarrativeRequest,
    OHLCBar,
    Provenance,
    ProviderAttempt,
    ProviderName,
    Quote,
    Ticker,
)

__all__ = [
    # Type aliases
    "Ticker",
    "ProviderName",
    # Enums
    "Provenance",
    "AttemptOutcome",
    "IndicatorStatus",
    # Price models
    "OHLCBar",
    "Quote",
    # Backtest models
    "MetricsRecord",
    "BacktestRequest",
    "ProviderAttempt",
    "BacktestResult",
    # Narrative models
    "Headline",
    "NarrativeRequest",
    "LeadingIndicator",
    "NarrativeAnalysis",
    # Config
    "TradelabConfig",
    "FinnhubConfig",
    "AlphaVantageConfig",
    "AcquisitionConfig",
    "GeneratorConfig",
    "NarrativeConfig",
    "APIConfig",
    "load_config",
    # Exceptions
    "TradelabError",
    "ConfigError",
    "InvalidRequestError",
    "SourceError",
    "ConfigurationError",
    "TransportError",
    "RateLimitError",
    "InvalidSymbolError",
    "EmptyRangeError",
    "PayloadError",
    "GenerationError",
    "NarrativeError",
    "LLMError",
]
