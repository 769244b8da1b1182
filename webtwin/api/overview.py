"""
Overview API
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from webtwin.config import get_settings
from webtwin.models.base import get_db
from webtwin.services.event_store import EventStore
from webtwin.services.overview_service import OverviewService
from webtwin.utils.logger import log

settings = get_settings()

router = APIRouter(prefix="/api", tags=["overview"])


def get_overview_service(db: Session = Depends(get_db)) -> OverviewService:
    return OverviewService(
        EventStore(db),
        event_limit=settings.overview_event_limit,
        recent_count=settings.overview_recent_events,
    )


@router.get("/overview")
async def get_overview(
    site: Optional[str] = Query(None),
    service: OverviewService = Depends(get_overview_service),
):
    """Pageview totals, vitals averages and the latest events"""
    try:
        return service.get_overview(site)
    except Exception as e:
        log.error(f"Overview error: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))
