"""Tests for the acquisition state machine, orchestrator, and service."""

from __future__ import annotations

from datetime import date

import httpx
import numpy as np
import pytest
import respx

from tradelab.acquisition.orchestrator import (
    SYNTHETIC_SOURCE,
    AcquisitionOrchestrator,
    ProviderSlot,
    build_provider_slots,
)
from tradelab.acquisition.service import (
    BacktestService,
    clean_ticker,
    make_request,
    run_backtest,
)
from tradelab.acquisition.states import (
    Done,
    Event,
    Fallback,
    TryingProvider,
    initial_state,
    next_state,
)
from tradelab.backtest.metrics import MetricsEngine
from tradelab.core.config import AcquisitionConfig, TradelabConfig
from tradelab.core.exceptions import (
    ConfigurationError,
    GenerationError,
    InvalidRequestError,
    InvalidSymbolError,
    RateLimitError,
    TransportError,
)
from tradelab.core.models import AttemptOutcome, OHLCBar, Provenance
from tradelab.prices.normalize import business_days
from tradelab.prices.synthetic import SeriesGenerator

START = date(2024, 1, 1)
END = date(2024, 1, 31)

LIVE_SERIES = [
    OHLCBar(time=date(2024, 1, 2), open=10.0, high=11.0, low=9.5, close=10.5, volume=100),
    OHLCBar(time=date(2024, 1, 3), open=10.5, high=12.0, low=10.0, close=11.5, volume=120),
]


class FakeAdapter:
    """Records calls and either returns a series or raises."""

    def __init__(self, name: str, result: list[OHLCBar] | Exception) -> None:
        self.name = name
        self._result = result
        self.calls: list[tuple[str, date, date]] = []

    async def fetch(self, ticker: str, start: date, end: date) -> list[OHLCBar]:
        self.calls.append((ticker, start, end))
        if isinstance(self._result, Exception):
            raise self._result
        return self._result


def _slot(adapter: FakeAdapter) -> ProviderSlot:
    return ProviderSlot(adapter.name, lambda: adapter)


def _orchestrator(*adapters: FakeAdapter, seed: int = 0) -> AcquisitionOrchestrator:
    return AcquisitionOrchestrator(
        providers=[_slot(a) for a in adapters],
        generator=SeriesGenerator(np.random.default_rng(seed)),
    )


# --- State machine ---


class TestStateMachine:
    def test_initial_live(self):
        assert initial_state(True, 2) == TryingProvider(0)

    def test_initial_demo(self):
        assert initial_state(False, 2) == Fallback()

    def test_initial_live_without_providers(self):
        assert initial_state(True, 0) == Fallback()

    def test_success_is_real(self):
        assert next_state(TryingProvider(1), Event.SUCCEEDED, 2) == Done(Provenance.REAL)

    def test_failure_moves_to_next_provider(self):
        assert next_state(TryingProvider(0), Event.FAILED, 2) == TryingProvider(1)

    def test_last_failure_falls_back(self):
        assert next_state(TryingProvider(1), Event.FAILED, 2) == Fallback()

    def test_fallback_success_is_demo(self):
        assert next_state(Fallback(), Event.SUCCEEDED, 2) == Done(Provenance.DEMO)

    def test_fallback_cannot_fail_over(self):
        with pytest.raises(ValueError):
            next_state(Fallback(), Event.FAILED, 2)

    def test_done_is_terminal(self):
        with pytest.raises(ValueError, match="terminal"):
            next_state(Done(Provenance.REAL), Event.SUCCEEDED, 2)


# --- Orchestrator ---


class TestOrchestrator:
    async def test_first_provider_success(self):
        first = FakeAdapter("alpha_vantage", LIVE_SERIES)
        second = FakeAdapter("finnhub", LIVE_SERIES)

        outcome = await _orchestrator(first, second).acquire("IBM", START, END)

        assert outcome.provenance == Provenance.REAL
        assert outcome.source == "alpha_vantage"
        assert outcome.series == LIVE_SERIES
        assert second.calls == []
        assert [a.outcome for a in outcome.attempts] == [AttemptOutcome.SUCCEEDED]

    async def test_falls_through_to_second_provider(self):
        first = FakeAdapter("alpha_vantage", RateLimitError("slow down"))
        second = FakeAdapter("finnhub", LIVE_SERIES)

        outcome = await _orchestrator(first, second).acquire("IBM", START, END)

        assert outcome.provenance == Provenance.REAL
        assert outcome.source == "finnhub"
        assert outcome.attempts[0].error_type == "RateLimitError"
        assert outcome.attempts[1].outcome == AttemptOutcome.SUCCEEDED

    async def test_invalid_symbol_falls_back_to_demo(self):
        adapter = FakeAdapter("alpha_vantage", InvalidSymbolError("Invalid API call."))

        outcome = await _orchestrator(adapter).acquire("NOPE", START, END)

        assert outcome.provenance == Provenance.DEMO
        assert outcome.source == SYNTHETIC_SOURCE
        assert len(outcome.series) == business_days(START, END)
        assert outcome.attempts[0].error_type == "InvalidSymbolError"

    async def test_all_failures_fall_back(self):
        a = FakeAdapter("alpha_vantage", TransportError("down"))
        b = FakeAdapter("finnhub", ConfigurationError("no key"))

        outcome = await _orchestrator(a, b).acquire("IBM", START, END)

        assert outcome.provenance == Provenance.DEMO
        assert [x.error_type for x in outcome.attempts] == ["TransportError", "ConfigurationError"]

    async def test_empty_live_series_counts_as_failure(self):
        a = FakeAdapter("alpha_vantage", [])
        b = FakeAdapter("finnhub", LIVE_SERIES)

        outcome = await _orchestrator(a, b).acquire("IBM", START, END)

        assert outcome.source == "finnhub"
        assert outcome.attempts[0].error_type == "EmptyRangeError"

    async def test_prefer_live_false_skips_providers(self):
        a = FakeAdapter("alpha_vantage", LIVE_SERIES)

        outcome = await _orchestrator(a).acquire("IBM", START, END, prefer_live=False)

        assert outcome.provenance == Provenance.DEMO
        assert a.calls == []
        assert outcome.attempts == []

    async def test_constructor_failure_is_attempt_failure(self):
        def broken():
            raise ConfigurationError("Finnhub API key is not configured")

        orchestrator = AcquisitionOrchestrator(
            providers=[ProviderSlot("finnhub", broken)],
            generator=SeriesGenerator(np.random.default_rng(0)),
        )
        outcome = await orchestrator.acquire("IBM", START, END)

        assert outcome.provenance == Provenance.DEMO
        assert outcome.attempts[0].error_type == "ConfigurationError"

    async def test_non_source_errors_propagate(self):
        a = FakeAdapter("alpha_vantage", RuntimeError("bug"))
        with pytest.raises(RuntimeError):
            await _orchestrator(a).acquire("IBM", START, END)

    async def test_caller_base_price(self):
        outcome = await _orchestrator().acquire("IBM", START, END, prefer_live=False, base_price=42.0)
        assert outcome.series[0].open == 42.0

    async def test_generator_failure_is_fatal(self):
        with pytest.raises(GenerationError):
            await _orchestrator().acquire("IBM", START, END, prefer_live=False, base_price=-1.0)

    @respx.mock
    async def test_demo_mode_issues_no_requests(self, live_config):
        orchestrator = AcquisitionOrchestrator.from_config(live_config)

        outcome = await orchestrator.acquire("IBM", START, END, prefer_live=False)

        assert outcome.provenance == Provenance.DEMO
        assert len(respx.calls) == 0

    @respx.mock
    async def test_alpha_vantage_error_message_falls_back(self, live_config):
        config = live_config.model_copy(
            update={"acquisition": AcquisitionConfig(providers=["alpha_vantage"])}
        )
        respx.get("https://av.test/query").mock(
            return_value=httpx.Response(200, json={"Error Message": "Invalid API call."})
        )

        outcome = await AcquisitionOrchestrator.from_config(config).acquire("ZZZZ", START, END)

        assert outcome.provenance == Provenance.DEMO
        assert outcome.attempts[0].error_type == "InvalidSymbolError"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"t": [10**20]},
            {"o": 5},
        ],
        ids=["timestamp_overflow", "scalar_column"],
    )
    @respx.mock
    async def test_malformed_finnhub_candles_fall_back(self, live_config, overrides):
        config = live_config.model_copy(
            update={"acquisition": AcquisitionConfig(providers=["finnhub"])}
        )
        payload = {"s": "ok", "t": [1704153600], "o": [1.0], "h": [1.0], "l": [1.0], "c": [1.0]}
        respx.get("https://finnhub.test/api/v1/stock/candle").mock(
            return_value=httpx.Response(200, json={**payload, **overrides})
        )

        outcome = await AcquisitionOrchestrator.from_config(config).acquire("IBM", START, END)

        assert outcome.provenance == Provenance.DEMO
        assert outcome.attempts[0].error_type == "PayloadError"


class TestBuildProviderSlots:
    def test_order_follows_config(self, live_config):
        config = live_config.model_copy(
            update={"acquisition": AcquisitionConfig(providers=["finnhub", "alpha_vantage"])}
        )
        assert [s.name for s in build_provider_slots(config)] == ["finnhub", "alpha_vantage"]

    def test_missing_keys_surface_on_build(self, keyless_config):
        slots = build_provider_slots(keyless_config)
        for slot in slots:
            with pytest.raises(ConfigurationError):
                slot.factory()


# --- Service ---


class TestMakeRequest:
    def test_valid(self):
        req = make_request("msft", "2024-01-01", "2024-02-01", prefer_live=False)
        assert req.ticker == "MSFT"
        assert req.prefer_live is False

    def test_bad_date_is_invalid_request(self):
        with pytest.raises(InvalidRequestError) as exc_info:
            make_request("MSFT", "01/01/2024", "2024-02-01")
        assert exc_info.value.context["field"] == "start_date"

    def test_reversed_window_is_invalid_request(self):
        with pytest.raises(InvalidRequestError):
            make_request("MSFT", "2024-03-01", "2024-02-01")

    def test_empty_ticker_is_invalid_request(self):
        with pytest.raises(InvalidRequestError):
            make_request("  ", "2024-01-01", "2024-02-01")

    def test_clean_ticker(self):
        assert clean_ticker(" nvda ") == "NVDA"
        with pytest.raises(InvalidRequestError):
            clean_ticker("")


class TestBacktestService:
    async def test_run_live(self):
        service = BacktestService(
            orchestrator=_orchestrator(FakeAdapter("finnhub", LIVE_SERIES)),
            engine=MetricsEngine(np.random.default_rng(0)),
        )
        result = await service.run(make_request("IBM", START, END))

        assert result.provenance == Provenance.REAL
        assert result.source == "finnhub"
        assert result.metrics.total_return_pct == round((11.5 - 10.5) / 10.5 * 100, 2)
        assert result.to_payload()["provenance"] == "real"

    async def test_run_demo(self):
        service = BacktestService(orchestrator=_orchestrator())
        result = await service.run(make_request("IBM", START, END, prefer_live=False))

        assert result.provenance == Provenance.DEMO
        assert result.metrics.trade_count == len(result.series) // 5

    async def test_run_backtest_without_keys_is_demo(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        result = await run_backtest("AAPL", "2024-01-01", "2024-03-31", config=TradelabConfig())

        assert result.provenance == Provenance.DEMO
        assert {a.error_type for a in result.attempts} == {"ConfigurationError"}
        assert len(result.series) == business_days(date(2024, 1, 1), date(2024, 3, 31))

    async def test_run_backtest_rejects_bad_input(self):
        with pytest.raises(InvalidRequestError):
            await run_backtest("AAPL", "2024-13-01", "2024-03-31", config=TradelabConfig())
