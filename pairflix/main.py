"""PairFlix FastAPI application."""

import json
import logging
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pairflix.api import audit_logs, settings as settings_api
from pairflix.config import settings as app_settings
from pairflix.db import db_session, init_db
from pairflix.repositories import SettingsStore
from pairflix.services.audit_logger import AuditLogService
from pairflix.services.settings_resolver import SettingsResolver

# Configure logging
logging.basicConfig(
    level=getattr(logging, app_settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


def build_services() -> tuple[AuditLogService, SettingsResolver]:
    """Create the audit sink and the process-wide settings resolver."""
    audit = AuditLogService(db_session, environment=app_settings.environment)
    resolver = SettingsResolver(
        SettingsStore(db_session),
        audit,
        ttl_seconds=app_settings.settings_cache_ttl_seconds,
    )
    return audit, resolver


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info("Starting PairFlix...")
    await init_db()
    logger.info("Database initialized")

    audit, resolver = build_services()
    app.state.audit_logger = audit
    app.state.settings_resolver = resolver

    # Warm the cache; seeds default settings on an empty database
    await resolver.get_settings()
    logger.info("Application settings loaded")

    yield

    # Shutdown
    logger.info("Shutting down PairFlix...")
    resolver.clear_cache()


# Read version from installed package metadata
try:
    _APP_VERSION = pkg_version("pairflix")
except Exception:
    _APP_VERSION = "0.0.0"

app = FastAPI(
    title="PairFlix",
    description="PairFlix admin backend: application settings and audit log",
    version=_APP_VERSION,
    lifespan=lifespan,
)

cors_origins_default = ["http://localhost:5173", "http://localhost:5174"]
try:
    cors_origins = json.loads(app_settings.cors_origins)
except json.JSONDecodeError:
    cors_origins = cors_origins_default

logger.info(f"CORS allowed origins: {cors_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["*"],
    max_age=600,
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "PairFlix"}


# Include routers
app.include_router(settings_api.router, prefix="/api/v1/admin", tags=["Settings"])
app.include_router(audit_logs.router, prefix="/api/v1/admin/audit-logs", tags=["Audit Logs"])
