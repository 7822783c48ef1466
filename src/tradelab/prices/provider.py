"""Source adapter protocol: the provider-agnostic interface layer.

Architecture
------------
Each live price provider is wrapped by a ``SourceAdapter`` that turns the
provider's wire format into the canonical ``OHLCBar`` series:

    Provider API → SourceAdapter.fetch() → list[OHLCBar] → Orchestrator

Adapters are constructed from an explicit config object. A missing
credential is a constructor-time ``ConfigurationError``. At fetch time an
adapter raises one of the ``SourceError`` subclasses and never retries;
fallback is the orchestrator's job.
"""

from __future__ import annotations

from datetime import date
from typing import Protocol, runtime_checkable

from tradelab.core.models import OHLCBar


@runtime_checkable
class SourceAdapter(Protocol):
    """Fetches one ticker's daily bars for an inclusive date window.

    Returns
    -------
    list[OHLCBar]
        Non-empty, unique by date, sorted ascending, every bar inside
        ``[start, end]``.

    Raises
    ------
    TransportError, RateLimitError, InvalidSymbolError, EmptyRangeError,
    PayloadError
    """

    @property
    def name(self) -> str: ...

    async def fetch(self, ticker: str, start: date, end: date) -> list[OHLCBar]: ...
