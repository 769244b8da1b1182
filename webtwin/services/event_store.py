"""
Event & Run Store

Thin query layer over the rum_events and lighthouse_runs tables. Callers
get plain dicts / model rows and never build queries themselves.
"""
from typing import Dict, List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import desc

from webtwin.models.rum import RumEvent
from webtwin.models.lighthouse import LighthouseRun
from webtwin.utils.helpers import parse_client_timestamp, utcnow
from webtwin.utils.url_parsing import site_filter


class EventStore:
    """Persistence for RUM events and Lighthouse runs"""

    def __init__(self, db: Session):
        self.db = db

    def insert_event(self, payload: Dict) -> RumEvent:
        """
        Store one RUM beacon.

        Every field is optional; ts falls back to ingestion time so the
        event still has a place in the time ordering.
        """
        site = payload.get("site")
        event = RumEvent(
            site=site_filter(site) if isinstance(site, str) else None,
            type=_text(payload.get("type")),
            url=_text(payload.get("url")),
            referrer=_text(payload.get("referrer")),
            user_agent=_text(payload.get("userAgent"), 500),
            viewport=payload.get("viewport") if isinstance(payload.get("viewport"), dict) else None,
            vitals=payload.get("vitals") if isinstance(payload.get("vitals"), dict) else None,
            ts=parse_client_timestamp(payload.get("ts")) or utcnow(),
        )
        self.db.add(event)
        self.db.commit()
        return event

    def insert_run(self, payload: Dict) -> LighthouseRun:
        """Store one Lighthouse run posted by the runner workflow"""
        run = LighthouseRun(
            site=payload["site"].strip().lower(),
            strategy=payload["strategy"],
            performance=payload.get("performance"),
            accessibility=payload.get("accessibility"),
            seo=payload.get("seo"),
            best_practices=payload.get("bestPractices"),
            homepage_load_sec=payload.get("homepageLoadSec"),
            final_url=payload.get("finalUrl"),
            perf_recommendations=payload.get("perfRecommendations") or [],
            seo_recommendations=payload.get("seoRecommendations") or [],
            uiux_recommendations=payload.get("uiuxRecommendations") or [],
            checked_at=parse_client_timestamp(payload.get("checkedAt")) or utcnow(),
        )
        self.db.add(run)
        self.db.commit()
        return run

    def recent_events(
        self,
        site: Optional[str] = None,
        limit: int = 500,
        ascending: bool = True,
    ) -> List[Dict]:
        """
        The `limit` most recent events, optionally for one site.

        With ascending=True the window is returned oldest-first, which is
        the order the Twin Map pipeline needs.
        """
        query = self.db.query(RumEvent)
        site = site_filter(site)
        if site:
            query = query.filter(RumEvent.site == site)

        rows = (
            query.order_by(desc(RumEvent.ts), desc(RumEvent.id))
            .limit(limit)
            .all()
        )
        if ascending:
            rows.reverse()

        return [
            {
                "site": row.site,
                "url": row.url,
                "vitals": row.vitals,
                "ts": row.ts,
            }
            for row in rows
        ]

    def latest_run(self, site: str, strategy: str) -> Optional[LighthouseRun]:
        """Newest Lighthouse run for site + strategy, or None"""
        return (
            self.db.query(LighthouseRun)
            .filter(
                LighthouseRun.site == site_filter(site),
                LighthouseRun.strategy == strategy,
            )
            .order_by(desc(LighthouseRun.checked_at), desc(LighthouseRun.id))
            .first()
        )


def _text(value, max_length: Optional[int] = None) -> Optional[str]:
    if value is None:
        return None
    text = value if isinstance(value, str) else str(value)
    return text[:max_length] if max_length else text
