"""
portfolio_api.db.repositories.audit

Repository for persisted authorization failures.

Responsibilities:
- Append audit rows (one per denied request).
- Query the most recent denials for the admin dashboard.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_api.db.models import AuthorizationAuditRow


class AuditRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(
        self,
        *,
        actor_id: str,
        route: str,
        method: str,
        reason: str,
        occurred_at: datetime,
    ) -> AuthorizationAuditRow:
        # Append-only: no update/delete in normal operation.
        row = AuthorizationAuditRow(
            actor_id=actor_id,
            route=route,
            method=method,
            reason=reason,
            occurred_at=occurred_at,
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def list_recent(self, *, limit: int = 100) -> list[AuthorizationAuditRow]:
        stmt = (
            select(AuthorizationAuditRow)
            .order_by(desc(AuthorizationAuditRow.occurred_at))
            .limit(limit)
        )
        return list((await self._session.execute(stmt)).scalars().all())
