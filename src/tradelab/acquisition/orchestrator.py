"""Acquisition orchestrator: live providers in priority order, then synthetic."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import date

import numpy as np

from tradelab.acquisition.states import (
    Done,
    Event,
    Fallback,
    State,
    TryingProvider,
    initial_state,
    next_state,
)
from tradelab.core.config import GeneratorConfig, TradelabConfig
from tradelab.core.exceptions import EmptyRangeError, SourceError
from tradelab.core.models import (
    AttemptOutcome,
    OHLCBar,
    Provenance,
    ProviderAttempt,
    ProviderName,
)
from tradelab.prices.alpha_vantage import AlphaVantageSource
from tradelab.prices.finnhub import FinnhubSource
from tradelab.prices.provider import SourceAdapter
from tradelab.prices.synthetic import SeriesGenerator

logger = logging.getLogger(__name__)

SYNTHETIC_SOURCE = "synthetic"

AdapterFactory = Callable[[], SourceAdapter]


@dataclass(frozen=True)
class ProviderSlot:
    """A named provider whose adapter is built on first use."""

    name: ProviderName
    factory: AdapterFactory


@dataclass
class AcquisitionOutcome:
    """Series plus where it came from and what was tried on the way."""

    series: list[OHLCBar]
    provenance: Provenance
    source: ProviderName
    attempts: list[ProviderAttempt] = field(default_factory=list)


def build_provider_slots(config: TradelabConfig) -> list[ProviderSlot]:
    """Turn ``acquisition.providers`` into ordered provider slots."""
    factories: dict[str, AdapterFactory] = {
        "alpha_vantage": lambda: AlphaVantageSource(config.alpha_vantage),
        "finnhub": lambda: FinnhubSource(config.finnhub),
    }
    return [ProviderSlot(name, factories[name]) for name in config.acquisition.providers]


class AcquisitionOrchestrator:
    """Runs the provider fallback state machine for one request at a time.

    Parameters
    ----------
    providers : Sequence[ProviderSlot]
        Live providers in priority order. An adapter whose constructor raises
        ``ConfigurationError`` counts as a failed attempt for that slot.
    generator : SeriesGenerator | None
        Synthetic fallback. A fresh unseeded generator is used if None.
    generator_config : GeneratorConfig | None
        Base-price range used when the caller does not supply one.
    """

    def __init__(
        self,
        providers: Sequence[ProviderSlot],
        generator: SeriesGenerator | None = None,
        generator_config: GeneratorConfig | None = None,
    ) -> None:
        self._providers = list(providers)
        self._generator = generator or SeriesGenerator()
        self._generator_config = generator_config or GeneratorConfig()

    @classmethod
    def from_config(cls, config: TradelabConfig) -> AcquisitionOrchestrator:
        """Build an orchestrator wired to the configured providers."""
        rng = np.random.default_rng(config.generator.seed)
        return cls(
            providers=build_provider_slots(config),
            generator=SeriesGenerator(rng),
            generator_config=config.generator,
        )

    @property
    def provider_names(self) -> list[ProviderName]:
        return [slot.name for slot in self._providers]

    async def acquire(
        self,
        ticker: str,
        start: date,
        end: date,
        prefer_live: bool = True,
        base_price: float | None = None,
    ) -> AcquisitionOutcome:
        """Return the first successful live series, else a synthetic one.

        Live failures are logged and recorded in ``attempts`` but never
        raised. Only ``GenerationError`` from the fallback escapes.
        """
        attempts: list[ProviderAttempt] = []
        state: State = initial_state(prefer_live, len(self._providers))
        series: list[OHLCBar] = []
        source = SYNTHETIC_SOURCE

        while not isinstance(state, Done):
            if isinstance(state, TryingProvider):
                slot = self._providers[state.index]
                result, attempt = await self._try_provider(slot, ticker, start, end)
                attempts.append(attempt)
                if result is not None:
                    series, source = result, slot.name
                    event = Event.SUCCEEDED
                else:
                    event = Event.FAILED
            elif isinstance(state, Fallback):
                series = self._generate(start, end, base_price)
                source = SYNTHETIC_SOURCE
                event = Event.SUCCEEDED
            state = next_state(state, event, len(self._providers))

        logger.info(
            "Acquired %d bars for %s from %s (%s)",
            len(series),
            ticker,
            source,
            state.provenance,
        )
        return AcquisitionOutcome(
            series=series,
            provenance=state.provenance,
            source=source,
            attempts=attempts,
        )

    async def _try_provider(
        self,
        slot: ProviderSlot,
        ticker: str,
        start: date,
        end: date,
    ) -> tuple[list[OHLCBar] | None, ProviderAttempt]:
        try:
            adapter = slot.factory()
            series = await adapter.fetch(ticker, start, end)
            if not series:
                raise EmptyRangeError(
                    f"{slot.name} returned an empty series",
                    context={"provider": slot.name, "ticker": ticker},
                )
        except SourceError as e:
            logger.warning(
                "Provider %s failed for %s (%s): %s",
                slot.name,
                ticker,
                type(e).__name__,
                e,
            )
            return None, ProviderAttempt(
                provider=slot.name,
                outcome=AttemptOutcome.FAILED,
                error_type=type(e).__name__,
                message=str(e),
            )

        return series, ProviderAttempt(provider=slot.name, outcome=AttemptOutcome.SUCCEEDED)

    def _generate(self, start: date, end: date, base_price: float | None) -> list[OHLCBar]:
        if base_price is None:
            base_price = self._generator.random_base_price(
                self._generator_config.min_base_price,
                self._generator_config.max_base_price,
            )
        return self._generator.generate(start, end, base_price)
