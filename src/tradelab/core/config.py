"""Configuration loading, validation, and access."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from tradelab.core.exceptions import ConfigError

KNOWN_PROVIDERS = ("alpha_vantage", "finnhub")


class FinnhubConfig(BaseModel):
    """Finnhub API access configuration (candles, quotes, company news)."""

    model_config = ConfigDict(frozen=True)

    api_key: str | None = None
    base_url: str = "https://finnhub.io/api/v1"
    request_timeout: float = 15.0

    @field_validator("request_timeout")
    @classmethod
    def timeout_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("request_timeout must be > 0")
        return v


class AlphaVantageConfig(BaseModel):
    """Alpha Vantage API access configuration."""

    model_config = ConfigDict(frozen=True)

    api_key: str | None = None
    base_url: str = "https://www.alphavantage.co"
    output_size: str = "full"
    request_timeout: float = 30.0

    @field_validator("output_size")
    @classmethod
    def output_size_known(cls, v: str) -> str:
        if v not in ("full", "compact"):
            raise ValueError("output_size must be 'full' or 'compact'")
        return v

    @field_validator("request_timeout")
    @classmethod
    def timeout_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("request_timeout must be > 0")
        return v


class AcquisitionConfig(BaseModel):
    """Live-provider priority and fallback behaviour."""

    model_config = ConfigDict(frozen=True)

    providers: list[str] = ["alpha_vantage", "finnhub"]
    prefer_live: bool = True

    @field_validator("providers", mode="before")
    @classmethod
    def split_comma_list(cls, v: object) -> object:
        """Accept ``"alpha_vantage,finnhub"`` as written in env vars."""
        if isinstance(v, str):
            return [p.strip().lower() for p in v.split(",") if p.strip()]
        return v

    @field_validator("providers")
    @classmethod
    def providers_known(cls, v: list[str]) -> list[str]:
        unknown = [p for p in v if p not in KNOWN_PROVIDERS]
        if unknown:
            raise ValueError(
                f"unknown providers {unknown}; expected any of {list(KNOWN_PROVIDERS)}"
            )
        if len(set(v)) != len(v):
            raise ValueError("providers must not contain duplicates")
        return v


class GeneratorConfig(BaseModel):
    """Synthetic series generator settings."""

    model_config = ConfigDict(frozen=True)

    min_base_price: float = 100.0
    max_base_price: float = 300.0
    seed: int | None = None

    @model_validator(mode="after")
    def price_range_valid(self) -> GeneratorConfig:
        if self.min_base_price <= 0:
            raise ValueError("min_base_price must be > 0")
        if self.max_base_price < self.min_base_price:
            raise ValueError("max_base_price must be >= min_base_price")
        return self


class NarrativeConfig(BaseModel):
    """Headline sentiment (narrative) collaborator configuration."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    gemini_api_key: str | None = None
    model: str = "gemini-1.5-flash"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    max_headlines: int = 15
    lookback_days: int = 30
    timeout_seconds: float = 60.0

    @field_validator("max_headlines", "lookback_days")
    @classmethod
    def positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be >= 1")
        return v


class APIConfig(BaseModel):
    """FastAPI server configuration."""

    model_config = ConfigDict(frozen=True)

    host: str = "127.0.0.1"
    port: int = 8000
    api_key: str | None = None


class TradelabConfig(BaseModel):
    """Root configuration for the entire tradelab system."""

    model_config = ConfigDict(frozen=True)

    finnhub: FinnhubConfig = FinnhubConfig()
    alpha_vantage: AlphaVantageConfig = AlphaVantageConfig()
    acquisition: AcquisitionConfig = AcquisitionConfig()
    generator: GeneratorConfig = GeneratorConfig()
    narrative: NarrativeConfig = NarrativeConfig()
    api: APIConfig = APIConfig()


def load_config(
    config_path: str | None = None,
    env_prefix: str = "TRADELAB_",
) -> TradelabConfig:
    """Load configuration from environment + YAML file + defaults.

    Resolution order (highest priority first):
    1. Environment variables (TRADELAB_FINNHUB__API_KEY, etc.)
    2. YAML file at config_path
    3. Built-in defaults

    Nested keys use double-underscore in env vars:
        TRADELAB_ALPHA_VANTAGE__API_KEY=demo  ->  alpha_vantage.api_key = "demo"
    """
    try:
        yaml_path = _resolve_config_path(config_path)
        base: dict = {}
        if yaml_path is not None:
            base = _load_yaml(yaml_path)

        merged = _merge_env_vars(base, env_prefix)
        return TradelabConfig.model_validate(merged)
    except Exception as e:
        if isinstance(e, ConfigError):
            raise
        raise ConfigError(str(e), context={"source": "load_config"}) from e


def _resolve_config_path(explicit: str | None) -> Path | None:
    """Determine config file path."""
    if explicit is not None:
        p = Path(explicit)
        if not p.exists():
            raise ConfigError(
                f"Config file not found: {explicit}",
                context={"field": "config_path", "value": explicit},
            )
        return p

    env_path = os.environ.get("TRADELAB_CONFIG")
    if env_path:
        p = Path(env_path)
        if not p.exists():
            raise ConfigError(
                f"Config file from TRADELAB_CONFIG not found: {env_path}",
                context={"field": "TRADELAB_CONFIG", "value": env_path},
            )
        return p

    default = Path("tradelab.yml")
    if default.exists():
        return default

    return None


def _load_yaml(path: Path) -> dict:
    """Load and parse YAML file."""
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(
                f"YAML config must be a mapping, got {type(data).__name__}",
                context={"field": "config_file", "value": str(path)},
            )
        return data
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Failed to parse YAML config: {e}",
            context={"field": "config_file", "value": str(path)},
        ) from e


def _merge_env_vars(base: dict, prefix: str) -> dict:
    """Overlay environment variables onto base config dict.

    Double-underscore separates nesting levels. Single underscores inside a
    section name are kept, so ``ALPHA_VANTAGE__API_KEY`` maps to
    ``alpha_vantage.api_key``.
    """
    result = dict(base)

    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue

        remainder = key[len(prefix) :]
        parts = [p.lower() for p in remainder.split("__")]

        if parts == ["config"]:
            continue

        # Keys and tokens stay strings even when they look numeric
        cast_value = value if parts[-1].endswith("api_key") else _auto_cast(value)

        target = result
        for part in parts[:-1]:
            if not isinstance(target.get(part), dict):
                target[part] = {}
            target = target[part]
        target[parts[-1]] = cast_value

    return result


def _auto_cast(value: str) -> str | int | float | bool:
    """Auto-cast string values from environment variables."""
    if value.lower() == "true":
        return True
    if value.lower() == "false":
        return False
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        pass
    return value
