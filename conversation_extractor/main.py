"""Hook ingress FastAPI application."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from conversation_extractor import config
from conversation_extractor.observability import initialize as initialize_observability, shutdown as shutdown_observability
from conversation_extractor.routers.hooks import hooks_router
from conversation_extractor.watcher import JournalWatcher

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("conversation_extractor")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    logger.info("Conversation extractor starting up (mode=%s output=%s)", config.EXTRACTOR_MODE, config.OUTPUT_DIR)
    initialize_observability(app)

    watcher = None
    if config.WATCH_ON_SERVE:
        watcher = JournalWatcher(mode="incremental")
        await watcher.start()
    app.state.watcher = watcher

    yield

    logger.info("Conversation extractor shutting down")
    if watcher is not None:
        await watcher.stop()
    shutdown_observability(app)


app = FastAPI(
    title="Conversation Extractor",
    description="Lifecycle hook ingress for session conversation extraction",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(hooks_router)


@app.get("/api/health")
def health():
    """Health check endpoint."""
    watcher = getattr(app.state, "watcher", None)
    return {
        "status": "ok",
        "mode": config.EXTRACTOR_MODE,
        "watcher": "running" if watcher is not None and watcher.is_running else "stopped",
    }
