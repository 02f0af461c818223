"""
portfolio_api.db.documents

Partitioned document store on top of SQLAlchemy.

Responsibilities:
- Point reads and writes addressed by (partition, id).
- Cross-partition lookup of every copy of an id.
- Lazy, restartable enumeration of a single partition.

Every operation commits on its own. There is no transaction spanning two calls,
so callers that touch two partitions must order their writes deliberately.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from portfolio_api.db.models import DocumentRow


class DocumentNotFoundError(LookupError):
    def __init__(self, partition: str, doc_id: str) -> None:
        super().__init__(f"document {doc_id!r} not found in partition {partition!r}")
        self.partition = partition
        self.doc_id = doc_id


class DocumentConflictError(Exception):
    def __init__(self, partition: str, doc_id: str) -> None:
        super().__init__(f"document {doc_id!r} already exists in partition {partition!r}")
        self.partition = partition
        self.doc_id = doc_id


@dataclass(frozen=True, slots=True)
class StoredDocument:
    partition: str
    id: str
    body: dict[str, Any]


def _stored(row: DocumentRow) -> StoredDocument:
    return StoredDocument(partition=row.partition_key, id=row.id, body=dict(row.body))


class PartitionedDocumentStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def read_item(self, partition: str, doc_id: str) -> StoredDocument | None:
        async with self._session_factory() as session:
            row = await session.get(DocumentRow, (partition, doc_id))
            return _stored(row) if row is not None else None

    async def locate(self, doc_id: str) -> list[StoredDocument]:
        """
        Cross-partition lookup. Normally returns zero or one copy; more than one
        means a partition move is in flight or was interrupted.
        """

        async with self._session_factory() as session:
            stmt = select(DocumentRow).where(DocumentRow.id == doc_id)
            rows = (await session.execute(stmt)).scalars().all()
            return [_stored(r) for r in rows]

    async def create_item(self, partition: str, doc_id: str, body: dict[str, Any]) -> StoredDocument:
        async with self._session_factory() as session:
            row = DocumentRow(partition_key=partition, id=doc_id, body=body)
            session.add(row)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise DocumentConflictError(partition, doc_id) from e
            return StoredDocument(partition=partition, id=doc_id, body=dict(body))

    async def upsert_item(self, partition: str, doc_id: str, body: dict[str, Any]) -> StoredDocument:
        async with self._session_factory() as session:
            row = await session.get(DocumentRow, (partition, doc_id), with_for_update=True)
            if row is None:
                session.add(DocumentRow(partition_key=partition, id=doc_id, body=body))
            else:
                row.body = body
            await session.commit()
            return StoredDocument(partition=partition, id=doc_id, body=dict(body))

    async def replace_item(
        self, partition: str, doc_id: str, body: dict[str, Any]
    ) -> StoredDocument:
        async with self._session_factory() as session:
            row = await session.get(DocumentRow, (partition, doc_id), with_for_update=True)
            if row is None:
                raise DocumentNotFoundError(partition, doc_id)
            row.body = body
            await session.commit()
            return StoredDocument(partition=partition, id=doc_id, body=dict(body))

    async def delete_item(self, partition: str, doc_id: str) -> None:
        async with self._session_factory() as session:
            row = await session.get(DocumentRow, (partition, doc_id), with_for_update=True)
            if row is None:
                raise DocumentNotFoundError(partition, doc_id)
            await session.delete(row)
            await session.commit()

    async def query_partition(
        self, partition: str, *, page_size: int = 100
    ) -> AsyncIterator[StoredDocument]:
        """
        Enumerate one partition lazily, one short-lived session per page.

        Pages are keyed on id, so a fresh call always starts from the beginning.
        """

        after: str | None = None
        while True:
            async with self._session_factory() as session:
                stmt = (
                    select(DocumentRow)
                    .where(DocumentRow.partition_key == partition)
                    .order_by(DocumentRow.id)
                    .limit(page_size)
                )
                if after is not None:
                    stmt = stmt.where(DocumentRow.id > after)
                rows = (await session.execute(stmt)).scalars().all()
                page = [_stored(r) for r in rows]
            for doc in page:
                yield doc
            if len(page) < page_size:
                return
            after = page[-1].id

    async def count_partition(self, partition: str) -> int:
        async with self._session_factory() as session:
            stmt = (
                select(func.count())
                .select_from(DocumentRow)
                .where(DocumentRow.partition_key == partition)
            )
            return int((await session.execute(stmt)).scalar_one())


# --- Module Notes -----------------------------------------------------------
# The store knows nothing about projects; the partition key is whatever the caller
# derives it from (see `repositories.projects`).
