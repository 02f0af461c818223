"""
portfolio_api.api.app

FastAPI app factory for the portfolio admin service.

Responsibilities:
- Build the FastAPI application and register routers/middleware.
- Construct the immutable route policy table and the audit sink once.
- Own the lifespan of shared infrastructure (DB engine, audit drain task).
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from portfolio_api.api.exception_handlers import install_exception_handlers
from portfolio_api.api.routers.admin_projects import router as admin_projects_router
from portfolio_api.api.routers.dashboard import router as dashboard_router
from portfolio_api.api.routers.dev_auth import router as dev_auth_router
from portfolio_api.api.routers.health import router as health_router
from portfolio_api.api.routers.me import router as me_router
from portfolio_api.api.routers.public_projects import router as public_projects_router
from portfolio_api.auth.middleware import AuthenticationMiddleware, AuthorizationMiddleware
from portfolio_api.auth.policy import PolicyTable, default_policy_table
from portfolio_api.db.documents import PartitionedDocumentStore
from portfolio_api.db.init_db import init_db
from portfolio_api.db.session import create_engine, create_sessionmaker
from portfolio_api.observability.audit import (
    AuditSink,
    DatabaseAuditDelivery,
    LogAuditDelivery,
    QueuedAuditSink,
)
from portfolio_api.observability.logging import configure_logging, get_logger
from portfolio_api.observability.middleware import RequestContextMiddleware
from portfolio_api.settings import Settings

log = get_logger(__name__)


def build_policy_table(settings: Settings) -> PolicyTable:
    return default_policy_table(
        admin_prefixes=settings.admin_route_prefixes,
        public_prefixes=settings.public_route_prefixes,
        admin_role=settings.admin_role,
    )


def create_app(
    *,
    settings: Settings,
    policies: PolicyTable | None = None,
    audit_sink: AuditSink | None = None,
) -> FastAPI:
    configure_logging(
        service_name=settings.service_name,
        level=settings.log_level,
        sensitive_keys=[settings.principal_header],
    )

    # Engine creation does not connect; tables are created in the lifespan below.
    engine = create_engine(settings)
    sessionmaker = create_sessionmaker(engine)

    if policies is None:
        policies = build_policy_table(settings)
    if audit_sink is None:
        delivery = (
            DatabaseAuditDelivery(sessionmaker)
            if settings.audit_backend == "database"
            else LogAuditDelivery()
        )
        audit_sink = QueuedAuditSink(delivery, maxsize=settings.audit_queue_size)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env, audit_backend=settings.audit_backend)
        if settings.env in ("dev", "test"):
            # Dev/test convenience: create tables automatically.
            await init_db(engine)
        start = getattr(audit_sink, "start", None)
        if start is not None:
            await start()
        try:
            yield
        finally:
            stop = getattr(audit_sink, "stop", None)
            if stop is not None:
                await stop()
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="Portfolio Admin API",
        version="0.1.0",
        docs_url="/docs" if settings.env != "prod" else None,
        openapi_url="/openapi.json" if settings.env != "prod" else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.sessionmaker = sessionmaker
    app.state.document_store = PartitionedDocumentStore(sessionmaker)
    app.state.policies = policies
    app.state.audit_sink = audit_sink

    # Last added runs first: request context -> authentication -> authorization -> routes.
    app.add_middleware(AuthorizationMiddleware, policies=policies, audit_sink=audit_sink)
    app.add_middleware(AuthenticationMiddleware, header_name=settings.principal_header)
    app.add_middleware(RequestContextMiddleware)

    install_exception_handlers(app)

    app.include_router(health_router, tags=["health"])
    app.include_router(public_projects_router)
    app.include_router(admin_projects_router)
    app.include_router(dashboard_router)
    app.include_router(me_router)
    app.include_router(dev_auth_router)

    return app


# --- Module Notes -----------------------------------------------------------
# Tests pass their own `policies` / `audit_sink` to exercise the gatekeeping
# stages in isolation; production always builds them from settings.
