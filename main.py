"""
College Basketball Totals Data Platform API

FastAPI server for triggering the ingestion pipelines and serving
projections. Pipeline triggers use token-based authentication.

Usage:
    uvicorn main:app --host 0.0.0.0 --port 8001

Environment Variables:
    PIPELINE_API_TOKEN - Required secret token for pipeline triggers
    DATABASE_URL - PostgreSQL (or sqlite://) connection URL
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime

import pytz
from fastapi import FastAPI
from pydantic import BaseModel

from api.v1 import games, pipelines, projections, teams
from core.correlation_middleware import CorrelationMiddleware
from core.db_middleware import DatabaseMiddleware
from core.logging import setup_logging, get_logger
from core.middleware import setup_middleware
from core.settings import settings
from db.base import close_db, init_db
from services.bootstrap import run_bootstrap
from utils.constants import SEASON_TIMEZONE


class HealthResponse(BaseModel):
    status: str
    timestamp: str


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(
        log_level=settings.log_level,
        json_format=settings.log_format == "json",
        service_name=settings.service_name,
    )
    log = get_logger()
    log.info("api_starting", service=settings.service_name)

    init_db()

    bootstrap_task = None
    if settings.bootstrap_on_startup:
        bootstrap_task = asyncio.create_task(run_bootstrap())

    yield

    if bootstrap_task and not bootstrap_task.done():
        bootstrap_task.cancel()
    close_db()
    log.info("api_stopped")


app = FastAPI(
    title="College Basketball Totals Data Platform",
    description="Schedule ingestion, shooting rollups and scoring projections",
    version="1.0.0",
    lifespan=lifespan,
)

# Middlewares (order matters - last added = outermost)
app.add_middleware(DatabaseMiddleware)
app.add_middleware(CorrelationMiddleware)
setup_middleware(app)

app.include_router(pipelines.router, prefix="/api/v1")
app.include_router(projections.router, prefix="/api/v1")
app.include_router(teams.router, prefix="/api/v1")
app.include_router(games.router, prefix="/api/v1")


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint (no auth required)."""
    now = datetime.now(pytz.timezone(SEASON_TIMEZONE))
    return HealthResponse(status="healthy", timestamp=now.isoformat())


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8001)
