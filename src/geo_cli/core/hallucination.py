"""Hallucination detector: a citation that does not resolve is treated as fabricated."""

from __future__ import annotations

from geo_cli.core.models import HallucinationType, HallucinationVerdict, Verification


def detect_hallucination(verification: Verification) -> HallucinationVerdict:
    """Derive the fabrication verdict from a verification outcome.

    ``is_hallucinated`` is exactly ``not reachable``. A 404 is a fake domain;
    every other failure is unreachable.
    """
    if verification.reachable:
        return HallucinationVerdict()

    if verification.status_code == 404:
        kind = HallucinationType.fake_domain
    else:
        kind = HallucinationType.unreachable

    reason = verification.detail or (
        f"HTTP {verification.status_code}" if verification.status_code is not None else None
    )
    return HallucinationVerdict(is_hallucinated=True, hallucination_type=kind, reason=reason)
