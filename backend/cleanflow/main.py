"""Main FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cleanflow import __version__
from cleanflow.api.v1.api import api_router
from cleanflow.api.v1.endpoints import auth
from cleanflow.config import settings
from cleanflow.logging_config import configure_logging
from cleanflow.scheduler import SyncScheduler
from cleanflow.services.sync_service import SyncService

configure_logging()

log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    sync_scheduler = SyncScheduler(SyncService())
    app.state.sync_scheduler = sync_scheduler

    if settings.scheduler_enabled:
        sync_scheduler.start()
    else:
        log.info("Scheduler disabled by configuration; only forced syncs will run")

    yield

    sync_scheduler.stop()


app = FastAPI(
    title="Cleanflow Housekeeping Sync",
    description="Synchronizes location occupancy from an external system into housekeeping",
    version=__version__,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/api/health")
async def health_check():
    return {
        "status": "healthy",
        "version": __version__
    }


@app.get("/")
async def root():
    return {
        "message": "Cleanflow Housekeeping Sync API",
        "version": __version__,
        "docs": "/docs"
    }


app.include_router(auth.router, tags=["auth"])
app.include_router(api_router, prefix=settings.api_v1_str)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    log.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000, log_level="debug" if settings.log_level.upper() == "VERBOSE" else settings.log_level.lower())
