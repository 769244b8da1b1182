"""
Real User Monitoring ingestion API

Receives beacons from the rum.js snippet embedded on customer sites.
Cross-origin by nature, and never fails the client.
"""
from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from webtwin.models.base import get_db
from webtwin.services.event_store import EventStore
from webtwin.utils.logger import log

router = APIRouter(prefix="/api", tags=["rum"])

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


@router.options("/rum")
async def rum_preflight():
    return Response(status_code=204, headers=CORS_HEADERS)


@router.post("/rum")
async def ingest_rum_event(request: Request, db: Session = Depends(get_db)):
    """
    Store one page view beacon.

    The body is untrusted; unparseable JSON is stored as an empty event.
    """
    try:
        payload = await request.json()
    except ValueError:
        payload = {}
    if not isinstance(payload, dict):
        payload = {}

    try:
        EventStore(db).insert_event(payload)
    except Exception as e:
        db.rollback()
        log.error(f"RUM insert error: {str(e)}")

    return JSONResponse({"status": "ok"}, headers={"Access-Control-Allow-Origin": "*"})
