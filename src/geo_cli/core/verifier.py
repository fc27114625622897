"""Reachability verifier: does a cited URL actually resolve?"""

from __future__ import annotations

import httpx
import structlog

from geo_cli.core.errors import NetworkFailure
from geo_cli.core.models import HallucinationType, Verification

DEFAULT_TIMEOUT = 8.0
USER_AGENT = "Mozilla/5.0 (compatible; GeoCitationVerifier/1.0)"

logger = structlog.get_logger(__name__)


async def _head(url: str, client: httpx.AsyncClient, timeout: float) -> httpx.Response:
    """HEAD *url*, raising :class:`NetworkFailure` when no response arrives."""
    try:
        return await client.head(
            url,
            follow_redirects=True,
            timeout=timeout,
            headers={"User-Agent": USER_AGENT},
        )
    except httpx.TimeoutException as exc:
        raise NetworkFailure("timeout") from exc
    except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
        raise NetworkFailure(type(exc).__name__) from exc


async def verify_url(
    url: str, client: httpx.AsyncClient, *, timeout: float = DEFAULT_TIMEOUT
) -> Verification:
    """HEAD the URL and report whether it resolved. Never raises.

    Timeouts and connection errors are normalized to ``unreachable``;
    a 404 is reported as ``fake_domain``.
    """
    try:
        resp = await _head(url, client, timeout)
    except NetworkFailure as exc:
        logger.info("verify_network_error", url=url, error=str(exc), timeout=timeout)
        return Verification(
            reachable=False,
            failure_reason=HallucinationType.unreachable,
            detail=str(exc),
        )

    status = resp.status_code
    if 200 <= status < 300:
        return Verification(reachable=True, status_code=status)

    reason = HallucinationType.fake_domain if status == 404 else HallucinationType.unreachable
    logger.info("verify_non_success", url=url, status=status)
    return Verification(
        reachable=False, status_code=status, failure_reason=reason, detail=f"HTTP {status}"
    )
