"""Single-shot JSON GET with provider failures mapped to SourceError types."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from tradelab.core.exceptions import PayloadError, RateLimitError, TransportError

logger = logging.getLogger(__name__)

_USER_AGENT = "Mozilla/5.0 (compatible; tradelab/0.1)"


async def get_json(
    url: str,
    params: dict[str, str],
    *,
    timeout: float,
    provider: str,
    ticker: str,
) -> Any:
    """Issue one GET and return the decoded JSON body.

    No retries. HTTP 429 becomes ``RateLimitError``, any other non-2xx status
    or connection problem becomes ``TransportError``, and an undecodable body
    becomes ``PayloadError``.
    """
    context = {"provider": provider, "ticker": ticker, "url": url}
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            resp = await client.get(
                url,
                params=params,
                headers={"User-Agent": _USER_AGENT},
            )
            resp.raise_for_status()
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        logger.debug(
            "%s HTTP error for %s: %s %s",
            provider,
            ticker,
            status,
            e.response.text[:200],
        )
        if status == 429:
            raise RateLimitError(
                f"{provider} rate limit reached (HTTP 429)",
                context={**context, "status_code": status},
            ) from e
        raise TransportError(
            f"{provider} returned HTTP {status}",
            context={**context, "status_code": status},
        ) from e
    except httpx.RequestError as e:
        raise TransportError(
            f"{provider} request failed: {e}",
            context={**context, "status_code": None},
        ) from e

    try:
        return resp.json()
    except ValueError as e:
        raise PayloadError(
            f"{provider} returned a non-JSON body",
            context={**context, "reason": "invalid_json"},
        ) from e
