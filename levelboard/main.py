"""
levelboard/main.py  — Levelboard API
Startup: creates the snapshot store, launches the refresh scheduler.
All endpoints are cache-read-only; the archive is only touched by the scheduler.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request

from levelboard.core.cache import SnapshotStore
from levelboard.core.config import (
    DISPLAY_TZ, FETCH_TIMEOUT_S, LOG_LEVEL, REFRESH_INTERVAL_S,
)
from levelboard.core.http_client import close_all
from levelboard.core.scheduler import RefreshScheduler
from levelboard.routers import levels
from levelboard.sources.archive import fetch_levels

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
log = logging.getLogger("main")

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info(f"Levelboard API v{VERSION} starting...")
    store = SnapshotStore()
    scheduler = RefreshScheduler(
        store, fetch_levels, REFRESH_INTERVAL_S, fetch_timeout=FETCH_TIMEOUT_S,
    )
    stop = asyncio.Event()
    app.state.store = store
    app.state.scheduler = scheduler
    task = asyncio.create_task(scheduler.run_forever(stop))
    yield
    log.info("Shutting down...")
    stop.set()
    try:
        # A refresh in flight gets up to 5s to finish, then the task is cancelled
        await asyncio.wait_for(task, timeout=5)
    except asyncio.TimeoutError:
        log.warning("Scheduler did not stop in time — cancelled")
    await close_all()


app = FastAPI(
    title="Levelboard API",
    description=(
        "Cache-first lookup of Minecraft Discord levels. "
        f"The level archive is re-downloaded every {REFRESH_INTERVAL_S:g}s; "
        "lookups are served from the last good snapshot."
    ),
    version=VERSION,
    lifespan=lifespan,
)

app.include_router(levels.router)


def _display_time(ts):
    if ts is None:
        return None
    return datetime.fromtimestamp(ts, tz=timezone.utc).astimezone(DISPLAY_TZ).strftime(
        "%Y-%m-%d %H:%M:%S %Z"
    )


@app.get("/", tags=["meta"])
async def root():
    return {
        "status":  "online",
        "version": VERSION,
        "endpoints": {
            "level":  "/levels/{user_id}",
            "health": "/health",
            "docs":   "/docs",
        },
    }


@app.get("/health", tags=["meta"])
async def health(request: Request):
    """Lightweight health check."""
    store: SnapshotStore = request.app.state.store
    scheduler: RefreshScheduler = request.app.state.scheduler
    summary = store.summary()
    sched = scheduler.status()
    return {
        "status":       "healthy" if summary["seq"] else "warming_up",
        "snapshot":     summary,
        "scheduler":    sched,
        "last_refresh": _display_time(store.snapshot().published_at),
    }
