"""
Live uptime check
"""
import time
from typing import Dict, Optional

import httpx

from webtwin.config import get_settings
from webtwin.connectors.base import BaseConnector
from webtwin.utils.helpers import utcnow
from webtwin.utils.logger import log

settings = get_settings()


class UptimeConnector(BaseConnector):
    """GETs a URL (following redirects) and reports status and latency"""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__("Uptime", timeout=settings.uptime_timeout_seconds, transport=transport)

    async def check(self, url: str) -> Dict:
        started = time.monotonic()
        try:
            async with self.client() as client:
                response = await client.get(url)
            is_up = response.is_success
            status_code = response.status_code
        except httpx.HTTPError as e:
            log.warning(f"Uptime check failed for {url}: {str(e)}")
            is_up = False
            status_code = 0

        return {
            "isUp": is_up,
            "statusCode": status_code,
            "responseMs": int((time.monotonic() - started) * 1000),
            "checkedAt": utcnow().isoformat() + "Z",
        }
