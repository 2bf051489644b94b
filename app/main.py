"""Usage Stats — FastAPI Application Entry Point.

Collector for opt-in usage statistics uploaded by ImageJ installations.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.config import settings
from app.database import init_db, test_connection, db_url
from app.api.stats_routes import router as stats_router
from app.core.exceptions import SchemaError
from app.core.logging import get_logger

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info("🚀 Usage stats collector starting up...")
    logger.info(f"🧬 Schema revision: {settings.schema_revision}")
    # Tables are re-checked on every upload, so a failure here is not fatal
    db_ok = test_connection()
    if db_ok:
        try:
            init_db()
        except SchemaError as e:
            logger.error(f"❌ Table creation failed: {e.detail}")
    else:
        logger.error("❌ Database NOT connected — uploads will fail")
    yield
    logger.info("Usage stats collector shut down")


app = FastAPI(
    title="Usage Stats",
    description="Collects opt-in usage statistics and normalizes them into dimension and fact tables.",
    version="1.0.0",
    lifespan=lifespan,
)

# Routers
app.include_router(stats_router)


@app.get("/health", tags=["System"])
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "usage-stats",
        "version": "1.0.0",
    }


@app.get("/debug/db", tags=["System"])
async def debug_db():
    """Debug endpoint — check database connectivity."""
    from app.database import _mask_url

    return {
        "connected": test_connection(),
        "backend": db_url.split(":", 1)[0],
        "url": _mask_url(db_url),
        "schema_revision": settings.schema_revision,
    }
