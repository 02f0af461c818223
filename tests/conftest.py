"""
tests.conftest

Shared fixtures: per-test sqlite database, a recording audit sink, the app and an
httpx client bound to it, plus helpers to build gateway identity headers.
"""

from __future__ import annotations

import base64
import json
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from portfolio_api.api.app import create_app
from portfolio_api.db.documents import PartitionedDocumentStore
from portfolio_api.db.init_db import init_db
from portfolio_api.db.session import create_engine, create_sessionmaker
from portfolio_api.observability.audit import AuthorizationFailureEvent
from portfolio_api.settings import Settings

PRINCIPAL_HEADER = "x-ms-client-principal"


class RecordingAuditSink:
    def __init__(self) -> None:
        self.events: list[AuthorizationFailureEvent] = []

    def record(self, event: AuthorizationFailureEvent) -> None:
        self.events.append(event)


def encode_header(payload: dict[str, Any]) -> str:
    return base64.b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")


def identity_headers(user_id: str = "user-1", roles: list[str] | None = None) -> dict[str, str]:
    payload = {
        "identityProvider": "aad",
        "userId": user_id,
        "userDetails": f"{user_id}@example.com",
        "userRoles": roles if roles is not None else ["anonymous", "authenticated"],
    }
    return {PRINCIPAL_HEADER: encode_header(payload)}


def admin_headers(user_id: str = "admin-1") -> dict[str, str]:
    return identity_headers(user_id, ["anonymous", "authenticated", "admin"])


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(env="test", database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")


@pytest.fixture
def audit_sink() -> RecordingAuditSink:
    return RecordingAuditSink()


@pytest_asyncio.fixture
async def app(settings: Settings, audit_sink: RecordingAuditSink) -> AsyncIterator[FastAPI]:
    app = create_app(settings=settings, audit_sink=audit_sink)
    # httpx's ASGITransport does not run lifespan; enter it explicitly.
    async with app.router.lifespan_context(app):
        yield app


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest_asyncio.fixture
async def sessionmaker(settings: Settings) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = create_engine(settings)
    await init_db(engine)
    try:
        yield create_sessionmaker(engine)
    finally:
        await engine.dispose()


@pytest.fixture
def store(sessionmaker: async_sessionmaker[AsyncSession]) -> PartitionedDocumentStore:
    return PartitionedDocumentStore(sessionmaker)


# --- Module Notes -----------------------------------------------------------
# Each test gets its own sqlite file; the app fixture enters the real lifespan so
# tables and the audit drain task exist exactly as they do in production.
