"""
Main FastAPI application for Forge Tycoon.
"""

import logging
import random
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from forge_tycoon.api import api_router
from forge_tycoon.api.deps import set_shop
from forge_tycoon.config import get_settings
from forge_tycoon.database import async_session_factory, close_db, init_db
from forge_tycoon.gameplay.shop import Shop
from forge_tycoon.persistence import SaveManager, set_save_manager
from forge_tycoon.tick_engine.engine import TickEngine, set_tick_engine

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    Initializes and cleans up resources.
    """
    settings = get_settings()

    # Initialize database
    logger.info("Initializing database...")
    await init_db()

    # Build the simulation
    logger.info("Building shop...")
    rng = random.Random(settings.random_seed)
    shop = Shop(time_multiplier=settings.time_multiplier, rng=rng)
    set_shop(shop)

    save_manager = SaveManager(shop, async_session_factory, settings)
    set_save_manager(save_manager)

    if settings.load_autosave_on_start:
        logger.info(f"Loading autosave slot '{settings.autosave_slot}'...")
        await save_manager.load_game(settings.autosave_slot)

    # Initialize tick engine
    logger.info(f"Starting tick engine (rate: {settings.tick_rate_ms}ms)...")
    tick_engine = TickEngine(
        tick_rate_ms=settings.tick_rate_ms,
        shop=shop,
        save_manager=save_manager,
    )
    set_tick_engine(tick_engine)
    await tick_engine.start()

    logger.info("Forge Tycoon started successfully!")

    yield

    # Shutdown
    logger.info("Shutting down...")

    # Stop tick engine
    await tick_engine.stop()
    set_tick_engine(None)

    # Final autosave
    if save_manager.autosave_enabled:
        await save_manager.save_game(settings.autosave_slot)
    set_save_manager(None)
    set_shop(None)

    # Close database connections
    await close_db()

    logger.info("Forge Tycoon stopped.")


# Create FastAPI application
app = FastAPI(
    title="Forge Tycoon",
    description="Tick-driven blacksmith shop simulation",
    version="0.1.0",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix="/api")


# Database error exception handlers
@app.exception_handler(OperationalError)
async def operational_error_handler(request: Request, exc: OperationalError):
    """Handle database connection/operational errors."""
    logger.error(f"Database operational error: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Database connection error. Please try again later."},
    )


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    """Handle database integrity constraint violations."""
    logger.error(f"Database integrity error: {exc}")
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": "Database integrity error. The operation conflicts with existing data."},
    )


@app.exception_handler(SQLAlchemyError)
async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError):
    """Handle general SQLAlchemy errors."""
    logger.error(f"Database error: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Database error. Please try again later."},
    )


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    from forge_tycoon.tick_engine import get_tick_engine

    engine = get_tick_engine()

    return {
        "status": "healthy",
        "tick_engine_running": engine is not None and engine.is_running,
        "tick_number": engine.tick_number if engine else 0,
    }


def main() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "forge_tycoon.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug_mode,
    )


if __name__ == "__main__":
    main()
