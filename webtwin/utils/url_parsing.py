"""
URL parsing utilities for page keys and site identifiers.
"""
from urllib.parse import urlparse
from typing import Dict, Optional


def page_key_from_url(url: Optional[str]) -> str:
    """
    Derive the page key used to group events into one logical page.

    Absolute URLs collapse to their path (query string and fragment are
    dropped), bare paths are kept as-is, anything else maps to "/".
    """
    if not url:
        return "/"
    try:
        parsed = urlparse(url)
    except ValueError:
        return url if url.startswith("/") else "/"
    if parsed.scheme and (parsed.netloc or parsed.path):
        return parsed.path or "/"
    return url if url.startswith("/") else "/"


def normalize_site_to_url(site: Optional[str]) -> str:
    """Turn user input like "example.com" into "https://example.com"."""
    trimmed = (site or "").strip()
    if not trimmed:
        return ""
    if trimmed.startswith("http://") or trimmed.startswith("https://"):
        return trimmed
    return f"https://{trimmed}"


def normalize_site(site: Optional[str]) -> Optional[Dict[str, str]]:
    """
    Normalize a site for scan dispatch.

    Returns {"site": host, "url": "<scheme>://<host>"} or None when the
    input has no dotted hostname.
    """
    trimmed = (site or "").strip().lower()
    if not trimmed:
        return None

    with_scheme = normalize_site_to_url(trimmed)
    try:
        parsed = urlparse(with_scheme)
        host = (parsed.hostname or "").lower()
    except ValueError:
        return None

    if not host or "." not in host:
        return None

    return {"site": host, "url": f"{parsed.scheme}://{host}"}


def site_filter(site: Optional[str]) -> Optional[str]:
    """Canonical form of a ?site= filter: trimmed, lower-cased, None if blank."""
    cleaned = (site or "").strip().lower()
    return cleaned or None
