"""
portfolio_api.api.routers.health

Liveness and readiness probes. Both are public routes.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_api.api.deps import db_session

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(
    request: Request,
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    # The document store's database must answer; the audit backlog is informational.
    await session.execute(text("SELECT 1"))
    body: dict[str, Any] = {"status": "ready"}
    sink = request.app.state.audit_sink
    if hasattr(sink, "pending"):
        body["auditPending"] = sink.pending
        body["auditDropped"] = sink.dropped
    return body
