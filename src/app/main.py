"""CIRCLE-SURVIVAL - simulation control service.

Main FastAPI application.  The simulation runs on the server's event loop:
frames are driven by ``loop.call_later`` through AsyncioHost, and every
request handler runs on the same loop, so commands and frames never overlap.
"""

import asyncio
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from app.config import settings
from app.routers import game_router, ws_router
from app.routers.ws import pump_game_events
from survival import __version__
from survival.comms.event_bus import EventBus
from survival.progress import BestLevelStore
from survival.simulation import AsyncioHost, SimulationEngine


def _configure_logging() -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if settings.debug else settings.log_level.upper())


def _create_simulation_engine(loop: asyncio.AbstractEventLoop) -> SimulationEngine:
    """Create the engine on the running loop and start its frame callback."""
    engine = SimulationEngine(
        EventBus(),
        AsyncioHost(loop),
        width=settings.play_area_width,
        height=settings.play_area_height,
        seed=settings.random_seed,
        frame_rate=settings.frame_rate,
        max_frame_dt=settings.max_frame_dt,
    )
    engine.start()
    return engine


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    _configure_logging()
    logger.info("=" * 60)
    logger.info(f"  {settings.app_name} v{__version__} - INITIALIZING")
    logger.info("=" * 60)

    engine = _create_simulation_engine(asyncio.get_running_loop())
    progress = BestLevelStore(settings.best_level_path)
    if progress.path is None:
        logger.info("Best level: in-memory only (set BEST_LEVEL_PATH to persist)")

    app.state.simulation_engine = engine
    app.state.progress = progress
    app.state.progress_sub = engine.event_bus.subscribe("level_reached", "progress_reset")
    feed_sub = engine.event_bus.subscribe()

    pump = asyncio.create_task(
        pump_game_events(
            engine, feed_sub, progress, app.state.progress_sub,
            snapshot_rate=settings.snapshot_rate,
        ),
        name="game-feed",
    )
    logger.info(
        f"Simulation ready: {settings.play_area_width:.0f}x{settings.play_area_height:.0f} "
        f"at {settings.frame_rate:.0f} Hz"
    )

    yield

    logger.info("Shutting down...")
    pump.cancel()
    try:
        await pump
    except asyncio.CancelledError:
        pass
    engine.stop()
    engine.event_bus.unsubscribe(feed_sub)
    engine.event_bus.unsubscribe(app.state.progress_sub)
    app.state.simulation_engine = None


app = FastAPI(
    title=settings.app_name,
    description="Circle Survival - arcade survival simulation service",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(game_router)
app.include_router(ws_router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "operational",
        "version": __version__,
        "system": settings.app_name,
    }


def serve() -> None:
    """Run the service with uvicorn on the configured host/port."""
    import uvicorn

    uvicorn.run("app.main:app", host=settings.host, port=settings.port,
                log_level=settings.log_level.lower())
