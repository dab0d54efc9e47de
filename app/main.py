"""
Workforce analytics service entry point with database pool lifecycle management.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.config import settings
from app.db.pool import db_pool
from app.features.workforce_analytics import analytics_router
from app.infrastructure.observability.logging import get_logger, setup_logging
from app.middleware import RequestContextMiddleware
from app.routes import health

# Setup logging before creating the app
setup_logging(log_level=settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown."""
    logger.info("Application starting", environment=settings.environment, debug=settings.debug)

    try:
        logger.info("Initializing database pool")
        await db_pool.initialize()
    except Exception as e:
        logger.error("Failed to initialize database pool", error=str(e))
        raise

    yield

    logger.info("Application shutting down")
    try:
        await db_pool.close()
        logger.info("Database pool closed")
    except Exception as e:
        logger.error("Error closing database pool", error=str(e))


app = FastAPI(
    title="Workforce Analytics",
    description="Staff performance analytics for multi-location salons",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(RequestContextMiddleware)

# Include routers
app.include_router(health.router)
app.include_router(analytics_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
