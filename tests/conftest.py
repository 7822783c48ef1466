"""Shared pytest fixtures for tradelab."""

from datetime import date

import numpy as np
import pytest

from tradelab.core.config import (
    AlphaVantageConfig,
    FinnhubConfig,
    NarrativeConfig,
    TradelabConfig,
)
from tradelab.core.models import OHLCBar


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(42)


@pytest.fixture
def live_config() -> TradelabConfig:
    return TradelabConfig(
        finnhub=FinnhubConfig(api_key="fh-test", base_url="https://finnhub.test/api/v1"),
        alpha_vantage=AlphaVantageConfig(api_key="av-test", base_url="https://av.test"),
        narrative=NarrativeConfig(
            gemini_api_key="gm-test",
            base_url="https://gemini.test/v1beta",
        ),
    )


@pytest.fixture
def keyless_config() -> TradelabConfig:
    return TradelabConfig()


@pytest.fixture
def sample_series() -> list[OHLCBar]:
    return [
        OHLCBar(time=date(2024, 1, 2), open=99.0, high=101.0, low=98.5, close=100.0, volume=1_200_000),
        OHLCBar(time=date(2024, 1, 3), open=100.0, high=105.0, low=99.5, close=104.0, volume=1_500_000),
        OHLCBar(time=date(2024, 1, 4), open=104.0, high=104.5, low=101.0, close=102.0, volume=900_000),
        OHLCBar(time=date(2024, 1, 5), open=102.0, high=103.5, low=101.5, close=103.0, volume=1_100_000),
    ]
