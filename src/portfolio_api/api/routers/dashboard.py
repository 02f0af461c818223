"""
portfolio_api.api.routers.dashboard

Admin dashboard endpoints.

Responsibilities:
- Project counts per status plus the most recently updated projects.
- Recent authorization denials (when audit events are persisted to the database).
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_api.api.deps import db_session, project_service
from portfolio_api.db.repositories.audit import AuditRepo
from portfolio_api.schemas import CamelModel, Project
from portfolio_api.services.projects import ProjectService

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


class DashboardStats(BaseModel):
    total: int
    draft: int
    published: int
    archived: int


class DashboardResponse(CamelModel):
    stats: DashboardStats
    recent_projects: list[Project]


@router.get("", response_model=DashboardResponse)
async def get_dashboard(svc: ProjectService = Depends(project_service)) -> DashboardResponse:
    return DashboardResponse.model_validate(await svc.dashboard())


@router.get("/audit")
async def list_authorization_failures(
    limit: int = Query(default=100, ge=1, le=1000),
    session: AsyncSession = Depends(db_session),
) -> list[dict[str, Any]]:
    rows = await AuditRepo(session).list_recent(limit=limit)
    return [
        {
            "actorId": r.actor_id,
            "route": r.route,
            "method": r.method,
            "reason": r.reason,
            "timestamp": r.occurred_at.isoformat(),
        }
        for r in rows
    ]
