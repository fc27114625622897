"""Bounded exponential backoff for calls to external capabilities."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import httpx
import structlog

from geo_cli.core.errors import UpstreamFailure

T = TypeVar("T")

logger = structlog.get_logger(__name__)


async def with_retries(
    call: Callable[[], Awaitable[T]],
    *,
    max_retries: int = 2,
    base_delay: float = 1.0,
    operation: str = "upstream_call",
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
) -> T:
    """Run *call*, retrying retryable failures up to *max_retries* times.

    Delays grow as ``base_delay * 2**attempt`` (1s, 2s with the defaults).
    Transport errors count as retryable. Non-retryable upstream failures and
    the last failure after retries are re-raised as ``UpstreamFailure``.
    """
    attempt = 0
    while True:
        try:
            return await call()
        except UpstreamFailure as exc:
            if not exc.retryable or attempt >= max_retries:
                raise
            error: Exception = exc
        except httpx.HTTPError as exc:
            if attempt >= max_retries:
                raise UpstreamFailure(str(exc) or type(exc).__name__, retryable=True) from exc
            error = exc

        delay = base_delay * (2**attempt)
        logger.info(
            "retry_scheduled",
            operation=operation,
            attempt=attempt + 1,
            delay=delay,
            error=str(error) or type(error).__name__,
        )
        await sleep(delay)
        attempt += 1
