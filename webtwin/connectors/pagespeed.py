"""
Google PageSpeed Insights connector (live Lighthouse scores)
"""
from typing import Dict, Optional

import httpx

from webtwin.config import get_settings
from webtwin.connectors.base import BaseConnector
from webtwin.utils.logger import log

settings = get_settings()

PAGESPEED_API_URL = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"

# Lighthouse category id -> response field
CATEGORIES = {
    "performance": "performance",
    "accessibility": "accessibility",
    "seo": "seo",
    "best-practices": "bestPractices",
}


def _unavailable(reason: str) -> Dict:
    return {
        "performance": None,
        "accessibility": None,
        "seo": None,
        "bestPractices": None,
        "source": f"unavailable ({reason})",
    }


def _score_to_100(value) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return int(round(value * 100))


class PageSpeedConnector(BaseConnector):
    """Runs a PageSpeed v5 audit and reduces it to 0-100 category scores"""

    def __init__(self, api_key: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__("PageSpeed", timeout=settings.pagespeed_timeout_seconds, transport=transport)
        self.api_key = api_key if api_key is not None else settings.pagespeed_api_key

    async def fetch_scores(self, url: str, strategy: str = "mobile") -> Dict:
        """
        Category scores for `url`.

        Never raises: HTTP errors and API error bodies come back as null
        scores with source "unavailable (...)".
        """
        params = {"url": url, "strategy": strategy, "category": list(CATEGORIES)}
        if self.api_key:
            params["key"] = self.api_key

        try:
            async with self.client() as client:
                response = await client.get(PAGESPEED_API_URL, params=params)
        except httpx.HTTPError as e:
            log.warning(f"PageSpeed request failed for {url}: {str(e)}")
            return _unavailable(type(e).__name__)

        if response.status_code != 200:
            log.warning(f"PageSpeed returned {response.status_code} for {url}")
            return _unavailable(str(response.status_code))

        try:
            data = response.json()
        except ValueError:
            return _unavailable("invalid response")

        error_message = (data.get("error") or {}).get("message")
        if error_message:
            return _unavailable(error_message)

        categories = (data.get("lighthouseResult") or {}).get("categories") or {}
        result = {
            field: _score_to_100((categories.get(category_id) or {}).get("score"))
            for category_id, field in CATEGORIES.items()
        }
        result["source"] = "pagespeed"
        return result
