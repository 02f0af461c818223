"""
tests.test_audit_sink

Queued audit sink: non-blocking record, drop-newest overflow, error isolation,
and the database delivery.
"""

from __future__ import annotations

import asyncio

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from portfolio_api.db.repositories.audit import AuditRepo
from portfolio_api.observability.audit import (
    AuthorizationFailureEvent,
    DatabaseAuditDelivery,
    DenialReason,
    QueuedAuditSink,
)


def _event(actor: str = "anonymous", route: str = "/api/manage/projects") -> AuthorizationFailureEvent:
    return AuthorizationFailureEvent(
        actor_id=actor,
        route=route,
        method="GET",
        reason=DenialReason.not_authenticated,
    )


def test_event_wire_shape() -> None:
    data = _event("u-1").as_dict()
    assert set(data) == {"actorId", "route", "method", "reason", "timestamp"}
    assert data["reason"] == "NotAuthenticated"


@pytest.mark.asyncio
async def test_full_queue_drops_newest() -> None:
    delivered: list[AuthorizationFailureEvent] = []

    async def deliver(event: AuthorizationFailureEvent) -> None:
        delivered.append(event)

    sink = QueuedAuditSink(deliver, maxsize=2)
    first, second, third = _event("a"), _event("b"), _event("c")
    sink.record(first)
    sink.record(second)
    sink.record(third)

    assert sink.dropped == 1
    assert sink.pending == 2

    await sink.start()
    await sink.stop()
    assert delivered == [first, second]


@pytest.mark.asyncio
async def test_delivery_errors_are_swallowed() -> None:
    delivered: list[str] = []

    async def flaky(event: AuthorizationFailureEvent) -> None:
        if event.actor_id == "bad":
            raise ConnectionError("collector down")
        delivered.append(event.actor_id)

    sink = QueuedAuditSink(flaky)
    await sink.start()
    sink.record(_event("bad"))
    sink.record(_event("good"))
    await sink.stop()

    assert delivered == ["good"]
    assert sink.pending == 0


@pytest.mark.asyncio
async def test_record_does_not_wait_for_delivery() -> None:
    release = asyncio.Event()

    async def slow(event: AuthorizationFailureEvent) -> None:
        await release.wait()

    sink = QueuedAuditSink(slow, maxsize=10)
    await sink.start()
    for _ in range(5):
        sink.record(_event())
    assert sink.dropped == 0

    release.set()
    await sink.stop()
    assert sink.pending == 0


@pytest.mark.asyncio
async def test_stop_gives_up_on_a_hung_delivery() -> None:
    async def hang(event: AuthorizationFailureEvent) -> None:
        await asyncio.Event().wait()

    sink = QueuedAuditSink(hang)
    await sink.start()
    sink.record(_event("a"))
    sink.record(_event("b"))

    await asyncio.wait_for(sink.stop(timeout=0.05), timeout=5)
    # The second event was never picked up by the drain task.
    assert sink.pending == 1


@pytest.mark.asyncio
async def test_database_delivery_persists_events(
    sessionmaker: async_sessionmaker[AsyncSession],
) -> None:
    sink = QueuedAuditSink(DatabaseAuditDelivery(sessionmaker))
    await sink.start()
    sink.record(_event("anonymous"))
    sink.record(_event("u-2", route="/api/dashboard"))
    await sink.stop()

    async with sessionmaker() as session:
        rows = await AuditRepo(session).list_recent()

    assert sorted(r.actor_id for r in rows) == ["anonymous", "u-2"]
    assert {r.reason for r in rows} == {"NotAuthenticated"}


# --- Module Notes -----------------------------------------------------------
# The queue is exercised with plain coroutines as deliveries; only the database
# delivery needs the sqlite fixture.
