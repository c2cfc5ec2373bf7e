"""
GeoIndex — FastAPI Application
==============================
Geohash encoding, bbox / polygon cell enumeration and GeoJSON
reprojection over HTTP.
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from geoindex.config import get_settings
from geoindex.routers import geohash, geojson, index

logger = logging.getLogger(__name__)
settings = get_settings()


# ── Lifespan (startup / shutdown) ─────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
        - Install a bounded default executor for polygon scans.
    Shutdown:
        - Shut the executor down without waiting for abandoned scans.
    """
    if settings.debug:
        logging.getLogger("geoindex").setLevel(logging.DEBUG)
    logger.info("GeoIndex starting up...")

    # Polygon scans go through run_in_executor(None, ...); bound them so
    # concurrent high-precision requests cannot exhaust the CPU.
    executor = ThreadPoolExecutor(
        max_workers=settings.scan_workers, thread_name_prefix="geoindex-scan"
    )
    asyncio.get_running_loop().set_default_executor(executor)
    logger.info("Scan pool ready (workers=%d)", settings.scan_workers)

    yield

    executor.shutdown(wait=False, cancel_futures=True)
    logger.info("GeoIndex shut down.")


# ── App factory ───────────────────────────────────────────────────
def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        description=(
            "Geohash encoding, bounding box / polygon cell enumeration "
            "and GeoJSON reprojection to WGS84."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routers
    app.include_router(geohash.router, prefix="/api")
    app.include_router(index.router, prefix="/api")
    app.include_router(geojson.router, prefix="/api")

    @app.get("/health")
    async def health():
        return {"status": "ok", "service": settings.app_name}

    return app


# ── Module-level app instance (for `uvicorn geoindex.main:app`) ──
app = create_app()  # pragma: no cover
