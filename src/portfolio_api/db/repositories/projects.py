"""
portfolio_api.db.repositories.projects

Partition-aware repository for project documents.

Responsibilities:
- CRUD over the document store, with the partition key derived from `status`.
- Status changes as an explicit two-phase move: insert into the new partition,
  then delete from the old one.
- Read paths that stay correct while a move is in flight or after one was interrupted.

Move protocol
-------------
A status change writes the new copy first and removes the old copy second. A
failure between the two steps leaves the document in both partitions (never in
neither). Until the delete lands, readers of either partition may see it; `get`
always returns the most recently updated copy. Re-issuing the same update
finishes the move: the insert step becomes an upsert of the existing target copy
and the delete step removes whatever is left behind. `reconcile` does the same
cleanup without changing any field.

Concurrent status changes to the same id are not serialized here.
"""

from __future__ import annotations

import heapq
from collections.abc import AsyncIterator, Mapping
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from portfolio_api.db.documents import (
    DocumentConflictError,
    DocumentNotFoundError,
    PartitionedDocumentStore,
    StoredDocument,
)
from portfolio_api.observability.logging import get_logger
from portfolio_api.schemas import SERVER_MANAGED_FIELDS, Project, ProjectStatus

log = get_logger(__name__)


class ProjectNotFoundError(LookupError):
    def __init__(self, project_id: str) -> None:
        super().__init__(f"project {project_id!r} not found")
        self.project_id = project_id


class InvalidProjectError(ValueError):
    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class ProjectConflictError(Exception):
    def __init__(self, message: str, *, field: str) -> None:
        super().__init__(message)
        self.field = field


def _status(value: Any) -> ProjectStatus:
    try:
        return ProjectStatus(value.lower() if isinstance(value, str) else value)
    except ValueError:
        raise InvalidProjectError(f"unknown project status {value!r}", field="status") from None


def _body(project: Project) -> dict[str, Any]:
    return project.model_dump(mode="json", by_alias=True)


def _load(doc: StoredDocument) -> Project:
    return Project.model_validate(doc.body)


def _newest_first(docs: list[StoredDocument]) -> list[tuple[str, Project]]:
    copies = [(d.partition, _load(d)) for d in docs]
    return sorted(copies, key=lambda c: c[1].updated_at, reverse=True)


class ProjectScan:
    """
    Lazy scan of one partition. Each `async for` starts over from the beginning.
    """

    def __init__(self, store: PartitionedDocumentStore, partition: str, page_size: int) -> None:
        self._store = store
        self._partition = partition
        self._page_size = page_size

    async def __aiter__(self) -> AsyncIterator[Project]:
        async for doc in self._store.query_partition(self._partition, page_size=self._page_size):
            yield _load(doc)


class ProjectRepository:
    def __init__(self, store: PartitionedDocumentStore, *, page_size: int = 100) -> None:
        self._store = store
        self._page_size = page_size

    @staticmethod
    def partition_for(status: Any) -> str:
        return _status(status).value

    async def _copies(self, project_id: str) -> list[tuple[str, Project]]:
        return _newest_first(await self._store.locate(project_id))

    async def get(self, project_id: str) -> Project | None:
        copies = await self._copies(project_id)
        return copies[0][1] if copies else None

    async def create(self, project: Project) -> Project:
        partition = self.partition_for(project.status)
        if await self._store.locate(project.id):
            raise ProjectConflictError(f"project {project.id!r} already exists", field="id")

        now = datetime.now(tz=UTC)
        stored = project.model_copy(update={"created_at": now, "updated_at": now})
        try:
            await self._store.create_item(partition, stored.id, _body(stored))
        except DocumentConflictError as e:
            raise ProjectConflictError(f"project {project.id!r} already exists", field="id") from e
        log.info("project_created", project_id=stored.id, partition=partition)
        return stored

    async def update(self, project_id: str, patch: Mapping[str, Any]) -> Project:
        copies = await self._copies(project_id)
        if not copies:
            raise ProjectNotFoundError(project_id)
        current = copies[0][1]

        changes = dict(patch)
        unknown = set(changes) - set(Project.model_fields)
        if unknown:
            raise InvalidProjectError(f"unknown fields: {sorted(unknown)}", field=sorted(unknown)[0])
        if changes.get("id", project_id) != project_id:
            raise InvalidProjectError("id is immutable", field="id")
        for key in SERVER_MANAGED_FIELDS:
            changes.pop(key, None)

        target = current.status if changes.get("status") is None else _status(changes["status"])
        changes["status"] = target
        updated = self._merge(current, changes)

        stale = sorted({partition for partition, _ in copies} - {target.value})
        if not stale:
            try:
                await self._store.replace_item(target.value, project_id, _body(updated))
            except DocumentNotFoundError as e:
                raise ProjectNotFoundError(project_id) from e
            log.info("project_updated", project_id=project_id, partition=target.value)
            return updated

        await self.relocate(updated, sources=stale)
        return updated

    async def relocate(self, project: Project, *, sources: list[str]) -> None:
        """
        Two-phase partition move: insert/upsert into the partition for
        `project.status`, then delete from each partition in `sources`.

        Safe to re-run after a failure at any point.
        """

        target = self.partition_for(project.status)
        await self._store.upsert_item(target, project.id, _body(project))

        for source in sources:
            if source == target:
                continue
            try:
                await self._store.delete_item(source, project.id)
            except DocumentNotFoundError:
                # An earlier attempt already removed this copy.
                continue
            except Exception:
                log.error(
                    "project_move_incomplete",
                    project_id=project.id,
                    source=source,
                    target=target,
                    exc_info=True,
                )
                raise
        log.info("project_moved", project_id=project.id, sources=sources, target=target)

    async def reconcile(self, project_id: str) -> Project | None:
        """Collapse leftover copies from an interrupted move onto the newest one."""

        copies = await self._copies(project_id)
        if not copies:
            return None
        _, newest = copies[0]
        target = self.partition_for(newest.status)
        stale = [partition for partition, _ in copies if partition != target]
        if stale:
            await self.relocate(newest, sources=stale)
        return newest

    async def delete(self, project_id: str) -> None:
        docs = await self._store.locate(project_id)
        removed = 0
        for doc in docs:
            try:
                await self._store.delete_item(doc.partition, project_id)
            except DocumentNotFoundError:
                continue
            removed += 1
        if removed == 0:
            raise ProjectNotFoundError(project_id)
        log.info("project_deleted", project_id=project_id)

    def list_by_status(self, status: Any) -> ProjectScan:
        return ProjectScan(self._store, self.partition_for(status), self._page_size)

    async def get_published_by_slug(self, slug: str) -> Project | None:
        async for project in self.list_by_status(ProjectStatus.published):
            if project.slug == slug:
                return project
        return None

    async def slug_exists(self, slug: str, *, exclude_id: str | None = None) -> bool:
        for status in ProjectStatus:
            async for project in self.list_by_status(status):
                if project.slug == slug and project.id != exclude_id:
                    return True
        return False

    async def list_all(self) -> list[Project]:
        # De-duplicates copies left by an in-flight move.
        latest: dict[str, Project] = {}
        for status in ProjectStatus:
            async for project in self.list_by_status(status):
                seen = latest.get(project.id)
                if seen is None or project.updated_at > seen.updated_at:
                    latest[project.id] = project
        return list(latest.values())

    async def list_recent(self, *, limit: int = 5) -> list[Project]:
        return heapq.nlargest(limit, await self.list_all(), key=lambda p: p.updated_at)

    async def stats(self) -> dict[str, int]:
        # One count per project, by its newest copy, so an interrupted move is not
        # counted twice.
        counts = {s.value: 0 for s in ProjectStatus}
        for project in await self.list_all():
            counts[project.status.value] += 1
        return {"total": sum(counts.values()), **counts}

    @staticmethod
    def _merge(current: Project, changes: dict[str, Any]) -> Project:
        data = current.model_dump()
        data.update(changes)
        data["updated_at"] = datetime.now(tz=UTC)
        try:
            return Project.model_validate(data)
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(p) for p in first["loc"]) or None
            raise InvalidProjectError(first["msg"], field=field) from None


# --- Module Notes -----------------------------------------------------------
# Store-level failures other than not-found/conflict propagate unchanged; the API
# layer turns them into SERVER_ERROR responses.
