"""
Site Health Service

Lighthouse scores per strategy (latest stored run, else a live PageSpeed
audit) combined with a live uptime check.
"""
import asyncio
from typing import Dict, List, Optional

from webtwin.connectors.pagespeed import PageSpeedConnector
from webtwin.connectors.uptime import UptimeConnector
from webtwin.models.lighthouse import LighthouseRun
from webtwin.services.event_store import EventStore
from webtwin.utils.logger import log
from webtwin.utils.url_parsing import normalize_site, normalize_site_to_url, site_filter

STRATEGIES = ("mobile", "desktop")

EMPTY_SCORES = {"performance": None, "accessibility": None, "seo": None, "bestPractices": None}


def missing_site_health() -> Dict:
    return {
        "lighthouse": {strategy: dict(EMPTY_SCORES) for strategy in STRATEGIES},
        "lighthouseSource": "unavailable (missing site)",
        "scanUrl": None,
        "homepageLoadSec": {strategy: None for strategy in STRATEGIES},
        "recommendations": {"performance": [], "seo": [], "uiux": []},
        "uptime": {"isUp": None, "statusCode": None, "responseMs": None, "checkedAt": None},
    }


def site_key(site: str) -> Optional[str]:
    """Key lighthouse runs are stored under: the bare lower-cased host"""
    normalized = normalize_site(site)
    if normalized:
        return normalized["site"]
    return site_filter(site)


class SiteHealthService:
    """Service for the site health panel"""

    def __init__(
        self,
        store: EventStore,
        pagespeed: Optional[PageSpeedConnector] = None,
        uptime: Optional[UptimeConnector] = None,
    ):
        self.store = store
        self.pagespeed = pagespeed or PageSpeedConnector()
        self.uptime = uptime or UptimeConnector()

    async def get_site_health(self, site: Optional[str]) -> Dict:
        target_url = normalize_site_to_url(site)
        if not target_url:
            return missing_site_health()

        key = site_key(site)
        runs = {strategy: self.store.latest_run(key, strategy) for strategy in STRATEGIES}
        live_strategies = [s for s in STRATEGIES if runs[s] is None]

        live_results = await asyncio.gather(
            *(self.pagespeed.fetch_scores(target_url, strategy) for strategy in live_strategies),
            self.uptime.check(target_url),
        )
        uptime = live_results[-1]
        live = dict(zip(live_strategies, live_results[:-1]))

        lighthouse = {}
        sources: List[str] = []
        for strategy in STRATEGIES:
            if runs[strategy] is not None:
                lighthouse[strategy] = runs[strategy].scores()
                source = "stored"
            else:
                scores = dict(live[strategy])
                source = scores.pop("source")
                lighthouse[strategy] = scores
            if source not in sources:
                sources.append(source)

        stored_runs = [run for run in runs.values() if run is not None]
        newest = max(stored_runs, key=lambda r: r.checked_at) if stored_runs else None

        log.info(f"Site health for {key}: lighthouse={'/'.join(sources)}, up={uptime['isUp']}")

        return {
            "lighthouse": lighthouse,
            "lighthouseSource": " / ".join(sources),
            "scanUrl": newest.final_url if newest else None,
            "homepageLoadSec": {
                strategy: runs[strategy].homepage_load_sec if runs[strategy] else None
                for strategy in STRATEGIES
            },
            "recommendations": self._recommendations(newest),
            "uptime": uptime,
        }

    @staticmethod
    def _recommendations(run: Optional[LighthouseRun]) -> Dict:
        if run is None:
            return {"performance": [], "seo": [], "uiux": []}
        return {
            "performance": run.perf_recommendations or [],
            "seo": run.seo_recommendations or [],
            "uiux": run.uiux_recommendations or [],
        }
