"""
Lighthouse API

- /ingest: results posted back by the GitHub Actions runner
- /dispatch: queue a new runner scan for a site
"""
import secrets
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError, field_validator
from sqlalchemy.orm import Session

from webtwin.config import get_settings
from webtwin.connectors.github import DispatchError
from webtwin.models.base import get_db
from webtwin.services.event_store import EventStore
from webtwin.services.scan_scheduler import (
    InvalidSiteError,
    ScanScheduler,
    SchedulerNotConfiguredError,
)
from webtwin.utils.logger import log

router = APIRouter(prefix="/api/lighthouse", tags=["lighthouse"])


# ── Request models ───────────────────────────────────────────────────

class LighthouseRecommendation(BaseModel):
    key: str
    title: str
    detail: str = ""
    impact: str = "low"

    @field_validator("impact")
    @classmethod
    def _valid_impact(cls, v):
        return v if v in {"high", "medium", "low"} else "low"


class IngestPayload(BaseModel):
    site: str
    strategy: str

    performance: Optional[int] = None
    accessibility: Optional[int] = None
    seo: Optional[int] = None
    bestPractices: Optional[int] = None
    homepageLoadSec: Optional[float] = None
    finalUrl: Optional[str] = None

    perfRecommendations: List[LighthouseRecommendation] = []
    seoRecommendations: List[LighthouseRecommendation] = []
    uiuxRecommendations: List[LighthouseRecommendation] = []

    checkedAt: Optional[str] = None

    @field_validator("site")
    @classmethod
    def _non_blank_site(cls, v):
        if not v.strip():
            raise ValueError("site is required")
        return v

    @field_validator("strategy")
    @classmethod
    def _valid_strategy(cls, v):
        if v not in {"mobile", "desktop"}:
            raise ValueError("strategy must be mobile or desktop")
        return v


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def get_scan_scheduler() -> ScanScheduler:
    return ScanScheduler()


# ── Endpoints ────────────────────────────────────────────────────────

@router.post("/ingest")
async def ingest_run(
    request: Request,
    x_ingest_token: Optional[str] = Header(None),
    db: Session = Depends(get_db),
):
    """Store a Lighthouse run. Requires the shared x-ingest-token header."""
    expected = get_settings().lighthouse_ingest_token
    if not expected or not secrets.compare_digest(x_ingest_token or "", expected):
        return _error(401, "unauthorized")

    try:
        body = await request.json()
        payload = IngestPayload.model_validate(body)
    except (ValueError, ValidationError):
        return _error(400, "invalid_payload")

    try:
        EventStore(db).insert_run(payload.model_dump())
    except Exception as e:
        db.rollback()
        log.error(f"Lighthouse ingest error: {str(e)}")
        return _error(500, str(e))

    log.info(f"Stored {payload.strategy} lighthouse run for {payload.site}")
    return {"status": "ok"}


@router.post("/dispatch")
async def dispatch_scan(request: Request, scheduler: ScanScheduler = Depends(get_scan_scheduler)):
    """Queue a Lighthouse scan (mobile, desktop or both) for a site"""
    try:
        body = await request.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}

    try:
        return await scheduler.queue_scan(body.get("site"), body.get("strategy"))
    except InvalidSiteError as e:
        return _error(400, str(e))
    except SchedulerNotConfiguredError as e:
        log.error(f"Lighthouse dispatch not configured: {str(e)}")
        return _error(500, str(e))
    except DispatchError as e:
        return _error(502, f"GitHub dispatch failed: {e.status_code} {e}")
