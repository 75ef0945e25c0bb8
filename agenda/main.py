import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from agenda.api.v1.router import api_router
from agenda.core.config import settings
from agenda.core.database import create_tables
from agenda.core.seed import seed_on_startup
from contextlib import asynccontextmanager

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup: create tables, seed the landing catalog
    await create_tables()
    if settings.SEED_CATALOG:
        await seed_on_startup()
    logger.info("Agenda API started (env: %s)", settings.APP_ENV)
    yield


app = FastAPI(
    title="Agenda API",
    description="Multi-tenant appointment booking: FastAPI + SQLAlchemy",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health():
    return {"status": "ok", "service": "agenda-api", "version": "0.1.0"}
