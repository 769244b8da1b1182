"""
Screenshot service connector

Proxies rendered screenshots so the dashboard never embeds the access key
host directly.
"""
from typing import Dict, Optional
from urllib.parse import urlparse

import httpx

from webtwin.connectors.base import BaseConnector

ALLOWED_HOST_SUFFIX = "screenshotone.com"


class SnapshotURLError(ValueError):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code


def validate_snapshot_url(url: Optional[str]) -> str:
    """Raise SnapshotURLError unless `url` points at the screenshot service"""
    if not url:
        raise SnapshotURLError(400, "Missing url")
    try:
        parsed = urlparse(url)
        host = parsed.hostname or ""
    except ValueError:
        raise SnapshotURLError(400, "Invalid url")
    if parsed.scheme not in ("http", "https") or not host:
        raise SnapshotURLError(400, "Invalid url")
    if ALLOWED_HOST_SUFFIX not in host:
        raise SnapshotURLError(403, "Host not allowed")
    return url


class ScreenshotConnector(BaseConnector):
    """Fetches a screenshot image by URL"""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__("Screenshot", timeout=60.0, transport=transport)

    async def fetch(self, url: str) -> Dict:
        """{"status_code", "content_type", "content"}; transport errors propagate"""
        async with self.client() as client:
            response = await client.get(url)
        return {
            "status_code": response.status_code,
            "content_type": response.headers.get("content-type", "application/octet-stream"),
            "content": response.content,
        }
