"""
Site Health API

Lighthouse scores (stored runs or live PageSpeed) and a live uptime check.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from webtwin.models.base import get_db
from webtwin.services.event_store import EventStore
from webtwin.services.site_health_service import SiteHealthService
from webtwin.utils.logger import log

router = APIRouter(prefix="/api", tags=["site-health"])


def get_site_health_service(db: Session = Depends(get_db)) -> SiteHealthService:
    return SiteHealthService(EventStore(db))


@router.get("/site-health")
async def get_site_health(
    site: Optional[str] = Query(None, description="Site hostname or URL"),
    service: SiteHealthService = Depends(get_site_health_service),
):
    try:
        return await service.get_site_health(site)
    except Exception as e:
        log.error(f"Site-health error: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))
