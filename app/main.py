import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import CORS_ALLOW_ORIGIN_REGEX, CORS_ORIGINS, DATABASE_URL, ENV
from app.core.database import Base, engine
from app.core.logging_setup import configure_logging
from app.core.startup_checks import (
    apply_migrations,
    ensure_migrations_applied,
    ensure_required_tables,
    validate_database_environment,
)
from app.middleware.observability import ObservabilityMiddleware
from app.middleware.tenant_context import TenantContextMiddleware
import app.models  # models must be registered before create_all
import app.services.event_handlers  # registers event bus handlers

from app.routers.admin_coupons import router as admin_coupons_router
from app.routers.admin_loyalty import router as admin_loyalty_router
from app.routers.bookings import router as bookings_router
from app.routers.internal_metrics import router as internal_metrics_router
from app.routers.loyalty import router as loyalty_router
from app.routers.pricing import router as pricing_router

configure_logging()

logger = logging.getLogger(__name__)
STARTUP_PREFIX = "[STARTUP]"
REPO_ROOT = Path(__file__).resolve().parents[1]
ALEMBIC_CONFIG_PATH = Path(os.getenv("ALEMBIC_CONFIG", str(REPO_ROOT / "alembic.ini")))


def _startup_tasks() -> None:
    try:
        validate_database_environment()
        if DATABASE_URL.startswith("sqlite"):
            # Local SQLite databases are created in place; other backends go through Alembic.
            Base.metadata.create_all(bind=engine)
        else:
            apply_migrations(alembic_config_path=ALEMBIC_CONFIG_PATH)
            ensure_migrations_applied(engine=engine, alembic_config_path=ALEMBIC_CONFIG_PATH)
        ensure_required_tables(engine)
        logger.info("%s ready env=%s", STARTUP_PREFIX, ENV)
    except Exception:
        logger.exception("%s ERROR startup failed", STARTUP_PREFIX)
        raise


@asynccontextmanager
async def lifespan(_: FastAPI):
    _startup_tasks()
    yield


app = FastAPI(
    title="Villa Booking API",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_origin_regex=CORS_ALLOW_ORIGIN_REGEX,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(ObservabilityMiddleware)
app.add_middleware(TenantContextMiddleware)

# Routers
app.include_router(pricing_router)
app.include_router(bookings_router)
app.include_router(loyalty_router)
app.include_router(admin_coupons_router)
app.include_router(admin_loyalty_router)
app.include_router(internal_metrics_router)


@app.get("/")
def root():
    return {"status": "ok"}


@app.get("/health")
def health():
    return {"status": "healthy"}
