"""Parley API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map ParleyError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup via lifespan context manager
    - The typing sweeper runs only when TYPING_SWEEP_INTERVAL_SECONDS > 0
"""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from parley import __version__
from parley.api.error_handlers import register_error_handlers
from parley.api.routes import conversations, health, messages, users
from parley.config import get_settings
from parley.core.clock import SystemClock
from parley.infrastructure.database import init_db
from parley.infrastructure.observability import setup_logging
from parley.services.typing_presence import run_sweeper

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(settings)

    sweeper: asyncio.Task | None = None
    if settings.typing_sweep_interval_seconds > 0:
        sweeper = asyncio.create_task(run_sweeper(
            manager.session, SystemClock(),
            settings.typing_sweep_interval_seconds,
            settings.typing_sweep_grace_ms,
        ))
    logger.info("Parley API started")
    yield
    logger.info("Parley API shutting down")
    if sweeper is not None:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper
    await manager.dispose()


app = FastAPI(title="Parley API", version=__version__, lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(users.router)
app.include_router(conversations.router)
app.include_router(messages.router)

register_error_handlers(app)
