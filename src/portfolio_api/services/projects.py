"""
portfolio_api.services.projects

Project editing rules on top of `ProjectRepository`.

Responsibilities:
- Derive a unique slug from the title.
- Enforce required fields only when a project is (or becomes) published.
- Assemble dashboard statistics.
"""

from __future__ import annotations

import re
import uuid
from typing import Any

from portfolio_api.db.repositories.projects import (
    InvalidProjectError,
    ProjectConflictError,
    ProjectNotFoundError,
    ProjectRepository,
)
from portfolio_api.schemas import Project, ProjectStatus

# Fields that must be non-blank before a project can be published.
PUBLISH_REQUIRED_FIELDS = ("title", "location", "short_description")


def generate_slug(title: str) -> str:
    if not title or not title.strip():
        # Untitled drafts still need a unique slug.
        return f"draft-{uuid.uuid4().hex[:8]}"
    slug = title.lower()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-") or f"draft-{uuid.uuid4().hex[:8]}"


def _check_publishable(values: dict[str, Any]) -> None:
    if ProjectStatus(values["status"]) is not ProjectStatus.published:
        return
    for field in PUBLISH_REQUIRED_FIELDS:
        if not str(values.get(field) or "").strip():
            raise InvalidProjectError(f"{field} is required when publishing", field=field)


class ProjectService:
    def __init__(self, repo: ProjectRepository) -> None:
        self._repo = repo

    async def create(self, fields: dict[str, Any]) -> Project:
        values = {"status": ProjectStatus.draft, **fields}
        values["status"] = ProjectStatus(ProjectRepository.partition_for(values["status"]))
        _check_publishable(values)

        slug = generate_slug(values.get("title", ""))
        if await self._repo.slug_exists(slug):
            raise ProjectConflictError(
                f"a project titled {values.get('title')!r} already exists", field="title"
            )
        return await self._repo.create(Project.model_validate({**values, "slug": slug}))

    async def update(self, project_id: str, changes: dict[str, Any]) -> Project:
        existing = await self._repo.get(project_id)
        if existing is None:
            raise ProjectNotFoundError(project_id)

        changes = dict(changes)
        if changes.get("status") is None:
            changes.pop("status", None)
        else:
            changes["status"] = ProjectStatus(ProjectRepository.partition_for(changes["status"]))
        _check_publishable({**existing.model_dump(), **changes})

        if "title" in changes:
            slug = generate_slug(changes["title"] or "")
            if slug != existing.slug:
                if await self._repo.slug_exists(slug, exclude_id=project_id):
                    raise ProjectConflictError(
                        f"a project titled {changes['title']!r} already exists", field="title"
                    )
                changes["slug"] = slug
        return await self._repo.update(project_id, changes)

    async def dashboard(self, *, recent: int = 5) -> dict[str, Any]:
        return {
            "stats": await self._repo.stats(),
            "recent_projects": await self._repo.list_recent(limit=recent),
        }
