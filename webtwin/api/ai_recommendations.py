"""
AI Recommendations API

On-demand UI/UX + SEO audit of a single page, and the screenshot proxy
used to display its device snapshots.
"""
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse

from webtwin.connectors.screenshot import ScreenshotConnector, SnapshotURLError, validate_snapshot_url
from webtwin.services.site_auditor import SiteAuditor
from webtwin.utils.logger import log
from webtwin.utils.url_parsing import normalize_site_to_url

router = APIRouter(prefix="/api/ai-recommendations", tags=["ai-recommendations"])


def get_site_auditor() -> SiteAuditor:
    return SiteAuditor()


def get_screenshot_connector() -> ScreenshotConnector:
    return ScreenshotConnector()


@router.post("/scan")
async def scan_page(request: Request, auditor: SiteAuditor = Depends(get_site_auditor)):
    """
    Audit a page.

    Body: {"url": "example.com/pricing"}. Uses the LLM when configured,
    heuristic checks otherwise.
    """
    try:
        body = await request.json()
    except ValueError:
        body = {}
    url = body.get("url") if isinstance(body, dict) else None
    target_url = normalize_site_to_url(url if isinstance(url, str) else "")

    if not target_url:
        return JSONResponse({"error": "Invalid URL"}, status_code=400)

    try:
        return await auditor.scan(target_url)
    except Exception as e:
        log.error(f"AI recommendations scan error for {target_url}: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/snapshot")
async def get_snapshot(
    url: Optional[str] = Query(None),
    connector: ScreenshotConnector = Depends(get_screenshot_connector),
):
    """Proxy a screenshot image from the screenshot service"""
    try:
        validate_snapshot_url(url)
    except SnapshotURLError as e:
        return JSONResponse({"error": str(e)}, status_code=e.status_code)

    try:
        image = await connector.fetch(url)
    except httpx.HTTPError as e:
        log.error(f"Snapshot fetch failed: {str(e)}")
        raise HTTPException(status_code=502, detail="Snapshot unavailable")

    return Response(
        content=image["content"],
        status_code=image["status_code"],
        media_type=image["content_type"],
        headers={"Cache-Control": "no-store"},
    )
