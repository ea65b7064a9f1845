"""FastAPI application factory and main entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from walletscreen.api.dependencies import cleanup_dependencies, get_db_pool
from walletscreen.api.routes import router
from walletscreen.config import get_settings
from walletscreen.db.schema import init_tables

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup and shutdown events."""
    settings = get_settings()
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Transaction source: {settings.transaction_source}")
    logger.info(f"Blacklist backend: {settings.blacklist_backend}")
    logger.info(f"Screening limits: {settings.screening_limits().model_dump()}")

    # Initialize database tables
    try:
        db_pool = await get_db_pool(settings)
        await init_tables(db_pool)
        logger.info("Database tables initialized")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")

    yield

    logger.info("Shutting down WalletScreen...")
    await cleanup_dependencies()
    logger.info("Cleanup complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description=(
            "Wallet onboarding screening: direct, 1-hop and 2-hop proximity "
            "to an internal blacklist plus behavioral heuristics."
        ),
        version=settings.app_version,
        lifespan=lifespan,
    )

    app.include_router(router)

    @app.get("/", tags=["root"])
    async def api_info() -> dict[str, str]:
        """API information endpoint."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "docs": "/docs",
            "health": f"{settings.api_prefix}/health",
        }

    return app


# Create application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "walletscreen.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level="info",
    )
