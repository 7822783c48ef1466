"""Tests for the FastAPI REST API module."""

from __future__ import annotations

from datetime import date

import httpx
import numpy as np
import pytest
import respx
from fastapi.testclient import TestClient

from tradelab.acquisition.orchestrator import AcquisitionOrchestrator, ProviderSlot
from tradelab.acquisition.service import BacktestService
from tradelab.api.app import create_app
from tradelab.backtest.metrics import MetricsEngine
from tradelab.core.config import AcquisitionConfig, APIConfig, NarrativeConfig, TradelabConfig
from tradelab.core.models import OHLCBar
from tradelab.prices.normalize import business_days
from tradelab.prices.synthetic import SeriesGenerator

FH_QUOTE_URL = "https://finnhub.test/api/v1/quote"


# -- Fixtures --


def _offline_service(seed: int = 7) -> BacktestService:
    """Service with no live providers, so every backtest is demo data."""
    return BacktestService(
        orchestrator=AcquisitionOrchestrator(
            providers=[],
            generator=SeriesGenerator(np.random.default_rng(seed)),
        ),
        engine=MetricsEngine(np.random.default_rng(seed)),
    )


@pytest.fixture
def client(live_config):
    app = create_app(config=live_config, service=_offline_service())
    with TestClient(app) as c:
        yield c


@pytest.fixture
def keyless_client(keyless_config):
    app = create_app(config=keyless_config, service=_offline_service())
    with TestClient(app) as c:
        yield c


@pytest.fixture
def authed_client():
    config = TradelabConfig(api=APIConfig(api_key="test-secret-key"))
    app = create_app(config=config, service=_offline_service())
    with TestClient(app) as c:
        yield c


BACKTEST_BODY = {"ticker": "aapl", "startDate": "2024-01-01", "endDate": "2024-01-31"}


# -- Health --


class TestHealth:
    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["providers"] == ["alpha_vantage", "finnhub"]
        assert data["narrativeEnabled"] is True


# -- Backtest --


class TestBacktest:
    def test_demo_backtest(self, client):
        resp = client.post("/api/backtest", json=BACKTEST_BODY)
        assert resp.status_code == 200
        data = resp.json()
        assert data["ticker"] == "AAPL"
        assert data["provenance"] == "demo"
        assert data["source"] == "synthetic"
        assert len(data["series"]) == 23
        assert data["series"][0]["time"] == "2024-01-01"
        assert set(data["metrics"]) == {
            "totalReturnPct",
            "maxDrawdownPct",
            "winRatePct",
            "tradeCount",
            "profitableTradeCount",
        }
        assert data["metrics"]["tradeCount"] == 23 // 5

    def test_series_length_matches_business_days(self, client):
        resp = client.post(
            "/api/backtest",
            json={"ticker": "MSFT", "startDate": "2024-02-01", "endDate": "2024-03-15"},
        )
        assert len(resp.json()["series"]) == business_days(date(2024, 2, 1), date(2024, 3, 15))

    def test_single_weekend_day_is_empty(self, client):
        resp = client.post(
            "/api/backtest",
            json={"ticker": "MSFT", "startDate": "2024-01-06", "endDate": "2024-01-06"},
        )
        data = resp.json()
        assert data["series"] == []
        assert data["metrics"]["totalReturnPct"] == 0
        assert data["metrics"]["tradeCount"] == 0

    def test_bad_date_format(self, client):
        body = dict(BACKTEST_BODY, startDate="01/01/2024")
        resp = client.post("/api/backtest", json=body)
        assert resp.status_code == 400
        assert resp.json()["error"] == "InvalidRequestError"

    def test_reversed_window(self, client):
        body = dict(BACKTEST_BODY, startDate="2024-02-01")
        resp = client.post("/api/backtest", json=body)
        assert resp.status_code == 400

    def test_missing_ticker(self, client):
        resp = client.post("/api/backtest", json={"startDate": "2024-01-01", "endDate": "2024-01-31"})
        assert resp.status_code == 422


# -- Quote --


class TestQuote:
    @respx.mock
    def test_quote(self, client):
        respx.get(FH_QUOTE_URL).mock(
            return_value=httpx.Response(
                200,
                json={"c": 190.5, "h": 191.0, "l": 188.2, "o": 189.0, "pc": 188.9, "d": 1.6, "dp": 0.85},
            )
        )
        resp = client.get("/api/quote/aapl")
        assert resp.status_code == 200
        data = resp.json()
        assert data["ticker"] == "AAPL"
        assert data["current"] == 190.5
        assert data["previousClose"] == 188.9

    @respx.mock
    def test_unknown_symbol(self, client):
        respx.get(FH_QUOTE_URL).mock(
            return_value=httpx.Response(200, json={"c": 0, "h": 0, "l": 0, "o": 0, "pc": 0})
        )
        resp = client.get("/api/quote/ZZZZ")
        assert resp.status_code == 404

    @respx.mock
    def test_upstream_failure(self, client):
        respx.get(FH_QUOTE_URL).mock(return_value=httpx.Response(500))
        resp = client.get("/api/quote/AAPL")
        assert resp.status_code == 502
        assert resp.json()["error"] == "TransportError"

    def test_missing_key(self, keyless_client):
        resp = keyless_client.get("/api/quote/AAPL")
        assert resp.status_code == 503
        assert resp.json()["error"] == "ConfigurationError"


# -- Fundamental analysis --


class TestFundamentalAnalysis:
    def test_empty_ticker(self, client):
        resp = client.post("/api/fundamental-analysis", json={"ticker": ""})
        assert resp.status_code == 400

    def test_disabled(self):
        config = TradelabConfig(narrative=NarrativeConfig(enabled=False))
        app = create_app(config=config, service=_offline_service())
        with TestClient(app) as c:
            resp = c.post("/api/fundamental-analysis", json={"ticker": "NVDA"})
        assert resp.status_code == 502
        assert resp.json()["error"] == "NarrativeError"

    @respx.mock
    def test_no_news(self, client):
        respx.get("https://finnhub.test/api/v1/company-news").mock(
            return_value=httpx.Response(200, json=[])
        )
        resp = client.post("/api/fundamental-analysis", json={"ticker": "NVDA"})
        assert resp.status_code == 404


# -- Auth --


class TestAuth:
    def test_health_exempt(self, authed_client):
        assert authed_client.get("/api/health").status_code == 200

    def test_missing_key(self, authed_client):
        resp = authed_client.post("/api/backtest", json=BACKTEST_BODY)
        assert resp.status_code == 401

    def test_wrong_key(self, authed_client):
        resp = authed_client.post(
            "/api/backtest", json=BACKTEST_BODY, headers={"X-API-Key": "nope"}
        )
        assert resp.status_code == 401

    def test_valid_key(self, authed_client):
        resp = authed_client.post(
            "/api/backtest", json=BACKTEST_BODY, headers={"X-API-Key": "test-secret-key"}
        )
        assert resp.status_code == 200


# -- Live preference --


class _RecordingAdapter:
    name = "finnhub"

    def __init__(self) -> None:
        self.calls = 0

    async def fetch(self, ticker, start, end):
        self.calls += 1
        return [
            OHLCBar(time=date(2024, 1, 2), open=10.0, high=11.0, low=9.5, close=10.5),
            OHLCBar(time=date(2024, 1, 3), open=10.5, high=12.0, low=10.0, close=11.5),
        ]


class TestLivePreference:
    def _client(self, prefer_live: bool, adapter: _RecordingAdapter) -> TestClient:
        config = TradelabConfig(acquisition=AcquisitionConfig(prefer_live=prefer_live))
        service = BacktestService(
            orchestrator=AcquisitionOrchestrator(
                providers=[ProviderSlot("finnhub", lambda: adapter)],
                generator=SeriesGenerator(np.random.default_rng(3)),
            ),
        )
        return TestClient(create_app(config=config, service=service))

    def test_config_default_demo_is_honoured(self):
        adapter = _RecordingAdapter()
        with self._client(False, adapter) as c:
            resp = c.post("/api/backtest", json=BACKTEST_BODY)
        assert resp.json()["provenance"] == "demo"
        assert adapter.calls == 0

    def test_body_overrides_config(self):
        adapter = _RecordingAdapter()
        with self._client(False, adapter) as c:
            resp = c.post("/api/backtest", json=dict(BACKTEST_BODY, preferLive=True))
        assert resp.json()["provenance"] == "real"
        assert adapter.calls == 1

    def test_config_default_live(self):
        adapter = _RecordingAdapter()
        with self._client(True, adapter) as c:
            resp = c.post("/api/backtest", json=BACKTEST_BODY)
        assert resp.json()["source"] == "finnhub"


# -- Error envelope --


class TestErrorEnvelope:
    def test_domain_error_shape(self, client):
        resp = client.post("/api/backtest", json=dict(BACKTEST_BODY, startDate="bad"))
        assert set(resp.json()) == {"error", "detail"}

    def test_documented_in_openapi(self, client):
        spec = client.get("/openapi.json").json()
        responses = spec["paths"]["/api/backtest"]["post"]["responses"]
        assert responses["400"]["content"]["application/json"]["schema"]["$ref"].endswith(
            "/ErrorResponse"
        )
