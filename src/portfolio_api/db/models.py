"""
portfolio_api.db.models

Persistence schema.

Responsibilities:
- `DocumentRow`: one document copy in one partition of the document store.
- `AuthorizationAuditRow`: append-only record of a denied request.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Index, String, Uuid as SAUuid
from sqlalchemy.orm import Mapped, mapped_column

from portfolio_api.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class DocumentRow(Base):
    __tablename__ = "project_documents"

    # Ids are unique per partition only, the way a partitioned document store keys items.
    partition_key: Mapped[str] = mapped_column(String(64), primary_key=True)
    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    body: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    written_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    # Cross-partition point lookups go through this index.
    __table_args__ = (Index("ix_project_documents_id", "id"),)


class AuthorizationAuditRow(Base):
    __tablename__ = "authorization_audit_events"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    actor_id: Mapped[str] = mapped_column(String(256), nullable=False, index=True)
    route: Mapped[str] = mapped_column(String(1024), nullable=False)
    method: Mapped[str] = mapped_column(String(16), nullable=False)
    reason: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, index=True
    )


# --- Module Notes -----------------------------------------------------------
# Business fields of a project live in `DocumentRow.body`; the schema only knows the
# partition key and id.
