"""
portfolio_api.schemas

Project document model shared by the repository and the API layer.
"""

from __future__ import annotations

import enum
import uuid
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class ProjectStatus(enum.StrEnum):
    # The value doubles as the storage partition key.
    draft = "draft"
    published = "published"
    archived = "archived"


class CamelModel(BaseModel):
    # Wire and stored documents use camelCase; Python code uses field names.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProjectImage(CamelModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    url: str = ""
    thumbnail: str = ""
    alt: str = ""
    order: int = 0


class Project(CamelModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), min_length=1, max_length=64)
    status: ProjectStatus = ProjectStatus.draft

    title: str = ""
    slug: str = ""
    location: str = ""
    short_description: str = ""
    full_description: str = ""
    scope_of_work: str = ""
    challenges: str = ""
    outcomes: str = ""
    purchase_date: str = ""
    completion_date: str = ""
    budget: float = 0
    final_cost: float = 0
    square_footage: int = 0

    before_images: list[ProjectImage] = Field(default_factory=list)
    after_images: list[ProjectImage] = Field(default_factory=list)
    primary_before_image: str = ""
    primary_after_image: str = ""

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


# Fields the repository owns; callers cannot set them through a patch.
SERVER_MANAGED_FIELDS = frozenset({"id", "created_at", "updated_at"})
