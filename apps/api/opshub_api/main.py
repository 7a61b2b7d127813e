"""Ops Hub API - Main FastAPI application."""

import logging
import os
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
from sqlalchemy import text

from opshub_api.attestation.service import AttestationService
from opshub_api.auth.gate import AccessControlGate
from opshub_api.auth.identity import get_identity_verifier
from opshub_api.errors import OpsError
from opshub_api.middleware.auth import AuthMiddleware
from opshub_api.middleware.correlation import CorrelationIDMiddleware
from opshub_api.routes import activity, attest, ops
from opshub_api.settings import Settings, get_settings
from opshub_api.workflow.policy import WorkflowPolicy

# Configure logging
logging.basicConfig(
    level=get_settings().log_level,
    format='{"time": "%(asctime)s", "level": "%(levelname)s", "message": "%(message)s", "module": "%(name)s"}',
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting Ops Hub API...")
    try:
        app.state.settings.validate_production_settings()
    except ValueError as e:
        logger.error(f"Configuration validation failed: {e}")
        raise

    if not app.state.attestation.enabled:
        logger.warning("Attestation anchoring is disabled; mutations will not be anchored")

    yield
    logger.info("Shutting down Ops Hub API...")


async def ops_error_handler(request: Request, exc: OpsError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = [
        {"loc": ".".join(str(p) for p in item["loc"]), "msg": item["msg"]}
        for item in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"error": "validation_error", "detail": "Invalid request", "details": details},
    )


def create_app(
    settings: Optional[Settings] = None,
    attestation: Optional[AttestationService] = None,
    gate: Optional[AccessControlGate] = None,
    policy: Optional[WorkflowPolicy] = None,
) -> FastAPI:
    """Build the application with explicit collaborators."""
    settings = settings or get_settings()

    app = FastAPI(
        title="Ops Hub API",
        description="Attested travel, check-in and payout operations",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.attestation = attestation or AttestationService.from_settings(settings)
    app.state.gate = gate or AccessControlGate(get_identity_verifier(settings))
    app.state.policy = policy or WorkflowPolicy.from_settings(settings)

    app.add_exception_handler(OpsError, ops_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    # Custom middleware (order matters - last added is first executed)
    app.add_middleware(AuthMiddleware)
    app.add_middleware(CorrelationIDMiddleware)

    # Prometheus metrics
    app.mount("/metrics", make_asgi_app())

    app.include_router(ops.router)
    app.include_router(attest.router)
    app.include_router(activity.router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint (basic liveness)."""
        return {
            "status": "healthy",
            "service": "opshub-api",
            "version": VERSION,
            "attestation_enabled": app.state.attestation.enabled,
        }

    @app.get("/ready")
    async def readiness_check():
        """Readiness check endpoint (verifies database and migrations)."""
        checks = {"database": _check_database(), "migrations": False}
        if checks["database"]:
            checks["migrations"] = _check_migrations()

        ready = all(checks.values())
        return JSONResponse(
            content={"status": "ready" if ready else "not_ready", "checks": checks},
            status_code=200 if ready else 503,
        )

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "service": "Ops Hub API",
            "version": VERSION,
            "docs": "/docs",
            "health": "/health",
            "actions": "/v1/ops",
        }

    return app


def _check_database() -> bool:
    from opshub_api.db.session import SessionLocal

    db = None
    try:
        db = SessionLocal()
        db.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database check failed: {e}")
        return False
    finally:
        if db is not None:
            db.close()


def _check_migrations() -> bool:
    """Compare the database revision with the migration head."""
    from alembic.config import Config
    from alembic.runtime.migration import MigrationContext
    from alembic.script import ScriptDirectory

    from opshub_api.db.session import SessionLocal

    db = SessionLocal()
    try:
        current_rev = MigrationContext.configure(db.connection()).get_current_revision()
        alembic_ini_path = os.path.join(os.path.dirname(__file__), "..", "alembic.ini")
        head_rev = ScriptDirectory.from_config(Config(alembic_ini_path)).get_current_head()
        if current_rev != head_rev:
            logger.warning(f"Migrations not at head: current={current_rev}, head={head_rev}")
            return False
        return True
    except Exception as e:
        logger.error(f"Migration check failed: {e}")
        return False
    finally:
        db.close()


app = create_app()
