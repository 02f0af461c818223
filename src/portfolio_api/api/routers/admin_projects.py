"""
portfolio_api.api.routers.admin_projects

Administrative project endpoints under `/api/manage`.

Responsibilities:
- List/read projects in any status.
- Create, update (including status moves) and delete projects.

Every route here is covered by the admin policy; handlers assume an admin caller.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response
from pydantic import Field
from starlette.status import HTTP_201_CREATED, HTTP_204_NO_CONTENT

from portfolio_api.api.deps import project_repo, project_service
from portfolio_api.db.repositories.projects import ProjectNotFoundError, ProjectRepository
from portfolio_api.schemas import CamelModel, Project
from portfolio_api.services.projects import ProjectService

router = APIRouter(prefix="/api/manage/projects", tags=["manage"])


class ProjectCreateRequest(CamelModel):
    title: str = Field(min_length=1, max_length=200)
    status: str = "draft"
    location: str = ""
    short_description: str = ""
    full_description: str = ""
    scope_of_work: str = ""
    challenges: str = ""
    outcomes: str = ""
    purchase_date: str = ""
    completion_date: str = ""
    budget: float = Field(default=0, ge=0)
    final_cost: float = Field(default=0, ge=0)
    square_footage: int = Field(default=0, ge=0)


class ProjectUpdateRequest(CamelModel):
    # Partial update: only fields present in the request body are applied.
    title: str | None = Field(default=None, min_length=1, max_length=200)
    status: str | None = None
    location: str | None = None
    short_description: str | None = None
    full_description: str | None = None
    scope_of_work: str | None = None
    challenges: str | None = None
    outcomes: str | None = None
    purchase_date: str | None = None
    completion_date: str | None = None
    budget: float | None = Field(default=None, ge=0)
    final_cost: float | None = Field(default=None, ge=0)
    square_footage: int | None = Field(default=None, ge=0)
    primary_before_image: str | None = None
    primary_after_image: str | None = None


@router.get("", response_model=list[Project])
async def list_projects(
    status: str | None = Query(default=None),
    repo: ProjectRepository = Depends(project_repo),
) -> list[Project]:
    if status is None:
        projects = await repo.list_all()
    else:
        projects = [p async for p in repo.list_by_status(status)]
    projects.sort(key=lambda p: p.updated_at, reverse=True)
    return projects


@router.get("/{project_id}", response_model=Project)
async def get_project(
    project_id: str,
    repo: ProjectRepository = Depends(project_repo),
) -> Project:
    project = await repo.get(project_id)
    if project is None:
        raise ProjectNotFoundError(project_id)
    return project


@router.post("", response_model=Project, status_code=HTTP_201_CREATED)
async def create_project(
    body: ProjectCreateRequest,
    svc: ProjectService = Depends(project_service),
) -> Project:
    return await svc.create(body.model_dump())


@router.put("/{project_id}", response_model=Project)
async def update_project(
    project_id: str,
    body: ProjectUpdateRequest,
    svc: ProjectService = Depends(project_service),
) -> Project:
    changes = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}
    return await svc.update(project_id, changes)


@router.delete("/{project_id}", status_code=HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: str,
    repo: ProjectRepository = Depends(project_repo),
) -> Response:
    await repo.delete(project_id)
    return Response(status_code=HTTP_204_NO_CONTENT)
