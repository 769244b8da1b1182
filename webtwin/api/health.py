"""
Health check and status endpoints
"""
from fastapi import APIRouter
from webtwin.config import get_settings
from webtwin.utils.helpers import utcnow
from webtwin import __version__

settings = get_settings()

router = APIRouter()


@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": utcnow().isoformat(),
        "version": __version__
    }


@router.get("/status")
async def get_status():
    """Get system status"""
    return {
        "app_name": settings.app_name,
        "version": __version__,
        "environment": settings.environment,
        "features": {
            "llm_recommendations": bool(settings.enable_llm_insights and settings.anthropic_api_key),
            "pagespeed_api_key": bool(settings.pagespeed_api_key),
            "lighthouse_dispatch": bool(
                settings.github_actions_token and settings.github_repo_owner and settings.github_repo_name
            ),
            "lighthouse_ingest": bool(settings.lighthouse_ingest_token),
            "snapshots": bool(settings.screenshotone_access_key),
        },
        "timestamp": utcnow().isoformat()
    }
