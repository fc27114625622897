"""URL and domain normalization shared by the classifier, verifier and signal ingest."""

from __future__ import annotations

from urllib.parse import urlparse, urlunparse

_TRACKING_PREFIXES = ("utm_",)
_TRACKING_PARAMS = frozenset({"fbclid", "gclid", "ref", "ref_src"})


def extract_domain(url: str) -> str:
    """Return the lowercase host of *url* without a leading ``www.``.

    Bare hosts (``example.com/path``) are accepted. Returns ``""`` when no host
    can be parsed.
    """
    if not url:
        return ""
    candidate = url.strip()
    if "://" not in candidate:
        candidate = f"https://{candidate}"
    try:
        host = urlparse(candidate).hostname or ""
    except ValueError:
        return ""
    return normalize_domain(host)


def normalize_domain(domain: str) -> str:
    """Lowercase *domain* and strip scheme, path, port and a leading ``www.``."""
    d = (domain or "").strip().lower()
    if "://" in d:
        d = d.split("://", 1)[1]
    d = d.split("/", 1)[0].split(":", 1)[0]
    if d.startswith("www."):
        d = d[4:]
    return d


def normalize_url(url: str) -> str:
    """Scheme-less, ``www.``-less, trailing-slash-less lowercase form of *url*.

    Used for rule matching only; the stored URL is never rewritten.
    """
    u = (url or "").strip().lower()
    if "://" in u:
        u = u.split("://", 1)[1]
    if u.startswith("www."):
        u = u[4:]
    return u.rstrip("/")


def canonical_url(url: str) -> str:
    """Canonical form used to deduplicate ingested signals.

    Lowercases scheme and host, drops ``www.``, fragments and tracking query
    parameters, and removes the trailing slash from the path.
    """
    candidate = (url or "").strip()
    if "://" not in candidate:
        candidate = f"https://{candidate}"
    parsed = urlparse(candidate)
    host = normalize_domain(parsed.netloc)
    path = parsed.path.rstrip("/")
    query = "&".join(
        part
        for part in parsed.query.split("&")
        if part
        and not part.split("=", 1)[0].lower().startswith(_TRACKING_PREFIXES)
        and part.split("=", 1)[0].lower() not in _TRACKING_PARAMS
    )
    return urlunparse(("https", host, path, "", query, ""))
