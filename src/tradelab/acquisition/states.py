"""Provider fallback as an explicit state machine.

The fallback order is data (a list of providers); ``next_state`` is a pure
function from (state, event) to the following state:

    TryingProvider(0) --Failed--> TryingProvider(1) ... --> Fallback
    TryingProvider(i) --Succeeded--> Done(real)
    Fallback          --Succeeded--> Done(demo)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from tradelab.core.models import Provenance


class Event(StrEnum):
    """Result of running the current state's action."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class TryingProvider:
    index: int


@dataclass(frozen=True)
class Fallback:
    pass


@dataclass(frozen=True)
class Done:
    provenance: Provenance


State = TryingProvider | Fallback | Done


def initial_state(prefer_live: bool, provider_count: int) -> State:
    """Live path starts at the first provider; otherwise go straight to fallback."""
    if prefer_live and provider_count > 0:
        return TryingProvider(0)
    return Fallback()


def next_state(state: State, event: Event, provider_count: int) -> State:
    """Advance the machine by one event."""
    if isinstance(state, TryingProvider):
        if event == Event.SUCCEEDED:
            return Done(Provenance.REAL)
        if state.index + 1 < provider_count:
            return TryingProvider(state.index + 1)
        return Fallback()

    if isinstance(state, Fallback):
        if event == Event.SUCCEEDED:
            return Done(Provenance.DEMO)
        raise ValueError("fallback has no further state to fail over to")

    raise ValueError(f"no transition out of terminal state {state!r}")
