"""
WebTwin AI
Main FastAPI application
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, PlainTextResponse
from contextlib import asynccontextmanager
import os

from webtwin.config import get_settings
from webtwin.utils.logger import log
from webtwin import __version__

# Import routers
from webtwin.api import health, rum, twin_map, overview, site_health, lighthouse, ai_recommendations

settings = get_settings()

static_dir = os.path.join(os.path.dirname(__file__), "static")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    # Startup
    log.info(f"Starting {settings.app_name} v{__version__}")
    log.info(f"Environment: {settings.environment}")

    # Initialize database
    try:
        from webtwin.models.base import init_db
        init_db()
        log.info("Database initialized")
    except Exception as e:
        log.error(f"Database initialization error: {str(e)}")

    yield

    # Shutdown
    log.info("Shutting down application")


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=__version__,
    description="""
    Website health monitoring and page-flow analytics

    - Real user monitoring ingestion (rum.js beacon)
    - Twin Map: page-flow graph with per-page load health
    - Lighthouse / PageSpeed scores and uptime
    - Heuristic + AI page audits with device snapshots
    """,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # rum.js beacons come from customer sites
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Gzip compression
from starlette.middleware.gzip import GZipMiddleware
app.add_middleware(GZipMiddleware, minimum_size=500)

# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(rum.router)
app.include_router(twin_map.router)
app.include_router(overview.router)
app.include_router(site_health.router)
app.include_router(lighthouse.router)
app.include_router(ai_recommendations.router)


@app.get("/robots.txt", response_class=PlainTextResponse)
async def robots_txt():
    """Keep the dashboard API out of search indexes"""
    return "User-agent: *\nDisallow: /api/\n"


@app.get("/rum.js")
async def rum_snippet():
    """Serve the RUM collection snippet embedded on customer sites"""
    return FileResponse(
        os.path.join(static_dir, "rum.js"),
        media_type="application/javascript",
        headers={"Cache-Control": "public, max-age=3600", "Access-Control-Allow-Origin": "*"},
    )


@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "app": settings.app_name,
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "status": "/status",
        "endpoints": {
            "rum_snippet": "GET /rum.js",
            "rum_ingest": "POST /api/rum",
            "twin_map": "GET /api/twin-map?site=",
            "overview": "GET /api/overview?site=",
            "site_health": "GET /api/site-health?site=",
            "lighthouse_ingest": "POST /api/lighthouse/ingest",
            "lighthouse_dispatch": "POST /api/lighthouse/dispatch",
            "ai_recommendations_scan": "POST /api/ai-recommendations/scan",
            "ai_recommendations_snapshot": "GET /api/ai-recommendations/snapshot?url=",
        }
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "webtwin.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        workers=settings.api_workers if not settings.debug else 1
    )
