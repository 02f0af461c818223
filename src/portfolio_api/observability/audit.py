"""
portfolio_api.observability.audit

Authorization-failure audit sink.

Responsibilities:
- Define the audit event emitted for every denied request.
- Accept events without blocking the request path (bounded queue, drop-newest).
- Drain events to a delivery backend on a background task, swallowing delivery errors.

Audit events are distinct from application logs: one event per denial, nothing else.
"""

from __future__ import annotations

import asyncio
import enum
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from portfolio_api.db.repositories.audit import AuditRepo
from portfolio_api.observability.logging import get_logger

log = get_logger(__name__)


class DenialReason(enum.StrEnum):
    not_authenticated = "NotAuthenticated"
    insufficient_role = "InsufficientRole"


@dataclass(frozen=True, slots=True)
class AuthorizationFailureEvent:
    actor_id: str
    route: str
    method: str
    reason: DenialReason
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    def as_dict(self) -> dict[str, Any]:
        return {
            "actorId": self.actor_id,
            "route": self.route,
            "method": self.method,
            "reason": self.reason.value,
            "timestamp": self.timestamp.isoformat(),
        }


class AuditSink(Protocol):
    def record(self, event: AuthorizationFailureEvent) -> None: ...


AuditDelivery = Callable[[AuthorizationFailureEvent], Awaitable[None]]


class QueuedAuditSink:
    """
    Fire-and-forget sink backed by a bounded asyncio queue.

    `record` never awaits: when the queue is full the new event is dropped and
    counted. A single drain task forwards queued events to `delivery`.
    """

    def __init__(self, delivery: AuditDelivery, *, maxsize: int = 1000) -> None:
        self._delivery = delivery
        self._queue: asyncio.Queue[AuthorizationFailureEvent] = asyncio.Queue(maxsize=maxsize)
        self._task: asyncio.Task[None] | None = None
        self.dropped = 0

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def record(self, event: AuthorizationFailureEvent) -> None:
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self.dropped += 1
            log.warning("audit_event_dropped", reason=event.reason.value, dropped=self.dropped)

    async def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._drain(), name="audit-sink-drain")

    async def stop(self, *, timeout: float = 5.0) -> None:
        # Flush what is already queued (bounded by `timeout`), then stop the drain task.
        if self._task is None:
            return
        try:
            await asyncio.wait_for(self._queue.join(), timeout=timeout)
        except TimeoutError:
            log.warning("audit_flush_timeout", pending=self.pending, timeout_s=timeout)
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _drain(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self._delivery(event)
            except Exception:
                # A monitoring outage must not surface on the request path.
                log.warning("audit_delivery_failed", exc_info=True, **event.as_dict())
            finally:
                self._queue.task_done()


class LogAuditDelivery:
    """Delivers audit events as structured log lines."""

    def __init__(self, logger_name: str = "portfolio_api.audit") -> None:
        self._log = get_logger(logger_name)

    async def __call__(self, event: AuthorizationFailureEvent) -> None:
        self._log.warning("authorization_failure", **event.as_dict())


class DatabaseAuditDelivery:
    """Delivers audit events to the `authorization_audit_events` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def __call__(self, event: AuthorizationFailureEvent) -> None:
        async with self._session_factory() as session:
            await AuditRepo(session).add(
                actor_id=event.actor_id,
                route=event.route,
                method=event.method,
                reason=event.reason.value,
                occurred_at=event.timestamp,
            )
            await session.commit()


# --- Module Notes -----------------------------------------------------------
# The authorization middleware is the only producer. The concrete delivery is chosen
# in the app factory from `Settings.audit_backend`.
