"""
Twin Map API

Page-flow graph for the dashboard: top pages with load health, and the
transitions between them.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from webtwin.config import get_settings
from webtwin.models.base import get_db
from webtwin.services.event_store import EventStore
from webtwin.services.twin_map_service import TwinMapService, empty_twin_map
from webtwin.utils.logger import log

settings = get_settings()

router = APIRouter(prefix="/api", tags=["twin-map"])


def get_twin_map_service(db: Session = Depends(get_db)) -> TwinMapService:
    return TwinMapService(
        EventStore(db),
        event_limit=settings.twin_map_event_limit,
        max_nodes=settings.twin_map_max_nodes,
        max_edges=settings.twin_map_max_edges,
    )


@router.get("/twin-map")
async def get_twin_map(
    site: Optional[str] = Query(None, description="Site hostname; all sites when omitted"),
    service: TwinMapService = Depends(get_twin_map_service),
):
    """
    Twin Map over the 500 most recent events.

    Always 200: any failure yields the empty map.
    """
    try:
        return service.get_twin_map(site)
    except Exception as e:
        log.error(f"Twin map error: {str(e)}")
        return empty_twin_map()
