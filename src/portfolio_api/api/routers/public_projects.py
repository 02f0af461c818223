"""
portfolio_api.api.routers.public_projects

Public, anonymous read endpoints for the portfolio site.

Only the `published` partition is ever read here.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from portfolio_api.api.deps import project_repo
from portfolio_api.db.repositories.projects import ProjectNotFoundError, ProjectRepository
from portfolio_api.schemas import Project, ProjectStatus

router = APIRouter(prefix="/api/projects", tags=["projects"])


@router.get("", response_model=list[Project])
async def list_published_projects(
    repo: ProjectRepository = Depends(project_repo),
) -> list[Project]:
    projects = [p async for p in repo.list_by_status(ProjectStatus.published)]
    projects.sort(key=lambda p: p.updated_at, reverse=True)
    return projects


@router.get("/{slug}", response_model=Project)
async def get_published_project(
    slug: str,
    repo: ProjectRepository = Depends(project_repo),
) -> Project:
    project = await repo.get_published_by_slug(slug)
    if project is None:
        raise ProjectNotFoundError(slug)
    return project
