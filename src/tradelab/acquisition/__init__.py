"""Acquisition: provider fallback state machine and the backtest service."""

from tradelab.acquisition.orchestrator import (
    AcquisitionOrchestrator,
    AcquisitionOutcome,
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

__all__ = [
    # Orchestrator
    "AcquisitionOrchestrator",
    "AcquisitionOutcome",
    "ProviderSlot",
    "build_provider_slots",
    # State machine
    "TryingProvider",
    "Fallback",
    "Done",
    "Event",
    "initial_state",
    "next_state",
    # Service
    "BacktestService",
    "clean_ticker",
    "make_request",
    "run_backtest",
]
