"""
portfolio_api.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings, DB sessions, and the project repository/service.
- Encapsulate app.state access patterns.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from portfolio_api.db.documents import PartitionedDocumentStore
from portfolio_api.db.repositories.projects import ProjectRepository
from portfolio_api.services.projects import ProjectService
from portfolio_api.settings import Settings


def settings_dep(request: Request) -> Settings:
    # The settings the app was built with, not whatever the environment says now.
    return request.app.state.settings  # type: ignore[attr-defined]


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


def document_store(request: Request) -> PartitionedDocumentStore:
    return request.app.state.document_store  # type: ignore[attr-defined]


def project_repo(
    store: PartitionedDocumentStore = Depends(document_store),
    settings: Settings = Depends(settings_dep),
) -> ProjectRepository:
    return ProjectRepository(store, page_size=settings.list_page_size)


def project_service(repo: ProjectRepository = Depends(project_repo)) -> ProjectService:
    return ProjectService(repo)
