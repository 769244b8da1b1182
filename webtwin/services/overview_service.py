"""
Overview Service

Headline RUM numbers for the dashboard overview card.
"""
from typing import Dict, Optional

from webtwin.services.event_store import EventStore
from webtwin.utils.helpers import safe_divide, sanitize_ms
from webtwin.utils.logger import log


class OverviewService:
    """Pageview totals and averages over the most recent events"""

    def __init__(self, store: EventStore, event_limit: int = 200, recent_count: int = 8):
        self.store = store
        self.event_limit = event_limit
        self.recent_count = recent_count

    def get_overview(self, site: Optional[str] = None) -> Dict:
        events = self.store.recent_events(site=site, limit=self.event_limit, ascending=False)

        total = len(events)
        unique_pages = len({e["url"] for e in events if e.get("url")})
        dcl_sum = sum(sanitize_ms((e.get("vitals") or {}).get("domContentLoaded")) for e in events)
        load_sum = sum(sanitize_ms((e.get("vitals") or {}).get("load")) for e in events)

        log.info(f"Overview for site={site or '*'}: {total} pageviews, {unique_pages} pages")

        return {
            "totals": {
                "pageviews": total,
                "uniquePages": unique_pages,
                "domContentLoadedAvg": safe_divide(dcl_sum, total),
                "loadAvg": safe_divide(load_sum, total),
            },
            "events": [
                {
                    "site": e.get("site"),
                    "url": e.get("url"),
                    "vitals": e.get("vitals"),
                    "ts": e["ts"].isoformat() if e.get("ts") else None,
                }
                for e in events[:self.recent_count]
            ],
        }
