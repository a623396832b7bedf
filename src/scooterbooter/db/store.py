"""Typed access to the partitioned item table.

:class:`GraphStore` exposes the key-value contract the services are written
against: ``get``/``put``/``update``/``add``/``delete`` on a single key,
``query`` and ``count`` over one partition of the base table or a secondary
index, ``batch_get`` across keys, and ``scan`` as a last resort.

Every call opens its own session, runs under a per-call timeout, and is
retried a bounded number of times on transient failures. Exhausting the
budget raises :class:`StoreUnavailable`; rejected conditional writes raise
:class:`ConditionFailed` and are never retried.

Unconditional writes are upserts (``INSERT ... ON CONFLICT``), so callers
racing on the same key all succeed instead of tripping the primary key.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from typing import Any, TypeVar

from sqlalchemy import Select, and_, delete, func, or_, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from scooterbooter.core.errors import ConditionFailed, StoreUnavailable
from scooterbooter.db.keys import Key
from scooterbooter.db.models import GraphItem

__all__ = ["GraphStore", "Item"]

logger = logging.getLogger(__name__)

Item = dict[str, Any]
T = TypeVar("T")

KEY_FIELDS = ("pk", "sk")
INDEX_FIELDS = ("gsi1pk", "gsi1sk", "gsi2pk", "gsi2sk")
INDEXES = {
    None: (GraphItem.pk, GraphItem.sk),
    "gsi1": (GraphItem.gsi1pk, GraphItem.gsi1sk),
    "gsi2": (GraphItem.gsi2pk, GraphItem.gsi2sk),
}
TRANSIENT_ERRORS = (OperationalError, InterfaceError, asyncio.TimeoutError)


def row_to_item(row: GraphItem) -> Item:
    """Flatten a stored row into a plain item dictionary."""
    item: Item = dict(row.data or {})
    item["pk"] = row.pk
    item["sk"] = row.sk
    for field in INDEX_FIELDS:
        value = getattr(row, field)
        if value is not None:
            item[field] = value
    return item


def split_item(item: Item) -> tuple[dict[str, Any], dict[str, Any]]:
    """Separate key and index columns from the free-form payload."""
    columns = {field: item.get(field) for field in KEY_FIELDS + INDEX_FIELDS}
    data = {k: v for k, v in item.items() if k not in columns}
    return columns, data


class GraphStore:
    """Async adapter over the ``graph_item`` table."""

    def __init__(
        self,
        sessionmaker: async_sessionmaker,
        *,
        timeout: float = 3.0,
        max_attempts: int = 2,
        batch_size: int = 100,
    ) -> None:
        self.sessionmaker = sessionmaker
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)
        self.batch_size = batch_size

    async def _run(self, label: str, op: Callable[[AsyncSession], Awaitable[T]]) -> T:
        last_error: BaseException | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await asyncio.wait_for(self._in_session(op), timeout=self.timeout)
            except IntegrityError as exc:
                raise ConditionFailed() from exc
            except TRANSIENT_ERRORS as exc:
                last_error = exc
                logger.warning(
                    "Store %s failed (attempt %d/%d): %s",
                    label,
                    attempt,
                    self.max_attempts,
                    exc.__class__.__name__,
                )
        raise StoreUnavailable(f"Store {label} failed") from last_error

    async def _in_session(self, op: Callable[[AsyncSession], Awaitable[T]]) -> T:
        async with self.sessionmaker() as session:
            result = await op(session)
            await session.commit()
            return result

    @staticmethod
    async def _load(session: AsyncSession, key: Key, *, lock: bool = False) -> GraphItem | None:
        return await session.get(
            GraphItem, (key.pk, key.sk), with_for_update=lock, populate_existing=lock
        )

    @staticmethod
    def _insert(session: AsyncSession) -> Any:
        if session.get_bind().dialect.name == "postgresql":
            return postgresql_insert(GraphItem)
        return sqlite_insert(GraphItem)

    async def _insert_missing(self, session: AsyncSession, columns: dict[str, Any], data: Item) -> bool:
        """Insert the row unless its key exists; returns whether it was inserted."""
        stmt = self._insert(session).values(**columns, data=data)
        result = await session.execute(stmt.on_conflict_do_nothing(index_elements=list(KEY_FIELDS)))
        return bool(result.rowcount)

    # Single-key operations

    async def get(self, key: Key) -> Item | None:
        """Return the item stored under ``key`` or ``None``."""

        async def op(session: AsyncSession) -> Item | None:
            row = await self._load(session, key)
            return row_to_item(row) if row is not None else None

        return await self._run("get", op)

    async def put(self, item: Item, *, if_not_exists: bool = False, if_exists: bool = False) -> Item:
        """Write ``item`` in full, optionally conditioned on prior (non-)existence."""
        columns, data = split_item(item)
        if not columns["pk"] or not columns["sk"]:
            raise ValueError("item requires pk and sk")

        async def op(session: AsyncSession) -> Item:
            if if_not_exists:
                session.add(GraphItem(**columns, data=data))
                await session.flush()
                return dict(item)
            if not if_exists:
                stmt = self._insert(session).values(**columns, data=data)
                stmt = stmt.on_conflict_do_update(
                    index_elements=list(KEY_FIELDS),
                    set_={name: getattr(stmt.excluded, name) for name in INDEX_FIELDS + ("data",)},
                )
                await session.execute(stmt)
                return dict(item)
            row = await self._load(session, Key(columns["pk"], columns["sk"]), lock=True)
            if row is None:
                raise ConditionFailed()
            for field in INDEX_FIELDS:
                setattr(row, field, columns[field])
            row.data = data
            await session.flush()
            return dict(item)

        return await self._run("put", op)

    async def update(
        self,
        key: Key,
        changes: dict[str, Any],
        *,
        remove: Iterable[str] = (),
        condition: Callable[[Item], bool] | None = None,
        create: bool = False,
    ) -> Item:
        """Apply attribute changes to an existing item and return the result.

        A missing item raises :class:`ConditionFailed` unless ``create`` is set.
        ``condition`` is evaluated against the current item before writing.
        """
        removed = tuple(remove)

        async def op(session: AsyncSession) -> Item:
            created = False
            if create:
                created = await self._insert_missing(session, {"pk": key.pk, "sk": key.sk}, {})
            row = await self._load(session, key, lock=True)
            if row is None:
                raise ConditionFailed()
            if not created and condition is not None and not condition(row_to_item(row)):
                raise ConditionFailed()
            data = dict(row.data or {})
            for name, value in changes.items():
                if name in KEY_FIELDS:
                    continue
                if name in INDEX_FIELDS:
                    setattr(row, name, value)
                else:
                    data[name] = value
            for name in removed:
                if name in INDEX_FIELDS:
                    setattr(row, name, None)
                else:
                    data.pop(name, None)
            row.data = data
            await session.flush()
            return row_to_item(row)

        return await self._run("update", op)

    async def add(
        self,
        key: Key,
        attribute: str,
        delta: int,
        *,
        defaults: dict[str, Any] | None = None,
    ) -> int:
        """Add ``delta`` to a numeric attribute, creating the item if needed."""

        async def op(session: AsyncSession) -> int:
            columns, data = split_item({**(defaults or {}), "pk": key.pk, "sk": key.sk})
            data[attribute] = 0
            await self._insert_missing(session, columns, data)
            row = await self._load(session, key, lock=True)
            if row is None:
                raise ConditionFailed()
            data = dict(row.data or {})
            value = int(data.get(attribute, 0) or 0) + delta
            data[attribute] = value
            row.data = data
            await session.flush()
            return value

        return await self._run("add", op)

    async def delete(self, key: Key, *, if_exists: bool = False) -> bool:
        """Delete ``key``; returns whether a row was removed."""

        async def op(session: AsyncSession) -> bool:
            result = await session.execute(
                delete(GraphItem).where(GraphItem.pk == key.pk, GraphItem.sk == key.sk)
            )
            if if_exists and not result.rowcount:
                raise ConditionFailed()
            return bool(result.rowcount)

        return await self._run("delete", op)

    # Multi-item reads

    def _select(
        self,
        partition: str,
        *,
        index: str | None,
        sort_prefix: str | None,
        sort_gt: str | None,
        sort_lt: str | None,
    ) -> tuple[Select, Any]:
        try:
            pk_col, sk_col = INDEXES[index]
        except KeyError as exc:
            raise ValueError(f"unknown index {index!r}") from exc
        stmt = select(GraphItem).where(pk_col == partition)
        if sort_prefix:
            stmt = stmt.where(sk_col.startswith(sort_prefix, autoescape=True))
        if sort_gt is not None:
            stmt = stmt.where(sk_col > sort_gt)
        if sort_lt is not None:
            stmt = stmt.where(sk_col < sort_lt)
        return stmt, sk_col

    async def query(
        self,
        partition: str,
        *,
        sort_prefix: str | None = None,
        sort_gt: str | None = None,
        sort_lt: str | None = None,
        limit: int | None = None,
        descending: bool = False,
        index: str | None = None,
    ) -> list[Item]:
        """Return items in one partition ordered by sort key.

        Items sharing a sort key (possible on secondary indexes) are ordered
        by primary key so repeated queries agree.
        """
        stmt, sk_col = self._select(
            partition, index=index, sort_prefix=sort_prefix, sort_gt=sort_gt, sort_lt=sort_lt
        )
        if descending:
            stmt = stmt.order_by(sk_col.desc(), GraphItem.pk.desc(), GraphItem.sk.desc())
        else:
            stmt = stmt.order_by(sk_col.asc(), GraphItem.pk.asc(), GraphItem.sk.asc())
        if limit is not None:
            stmt = stmt.limit(limit)

        async def op(session: AsyncSession) -> list[Item]:
            result = await session.execute(stmt)
            return [row_to_item(row) for row in result.scalars()]

        return await self._run("query", op)

    async def count(self, partition: str, *, sort_prefix: str | None = None, index: str | None = None) -> int:
        """Count the items a matching :meth:`query` would return."""
        stmt, _ = self._select(
            partition, index=index, sort_prefix=sort_prefix, sort_gt=None, sort_lt=None
        )
        count_stmt = select(func.count()).select_from(stmt.subquery())

        async def op(session: AsyncSession) -> int:
            result = await session.execute(count_stmt)
            return int(result.scalar_one())

        return await self._run("count", op)

    async def batch_get(self, keys: Sequence[Key]) -> list[Item]:
        """Fetch many keys at once; a failing chunk is logged and skipped."""
        unique = list(dict.fromkeys(Key(*key) for key in keys))
        items: list[Item] = []
        for start in range(0, len(unique), self.batch_size):
            chunk = unique[start : start + self.batch_size]
            stmt = select(GraphItem).where(
                or_(*(and_(GraphItem.pk == key.pk, GraphItem.sk == key.sk) for key in chunk))
            )

            async def op(session: AsyncSession, stmt: Select = stmt) -> list[Item]:
                result = await session.execute(stmt)
                return [row_to_item(row) for row in result.scalars()]

            try:
                items.extend(await self._run("batch_get", op))
            except StoreUnavailable as exc:
                logger.warning("batch_get chunk of %d keys skipped: %s", len(chunk), exc)
        return items

    async def scan(
        self,
        predicate: Callable[[Item], bool] | None = None,
        *,
        partition_prefix: str | None = None,
        limit: int | None = None,
    ) -> list[Item]:
        """Walk the table filtering in memory. Only for lookups with no index."""
        stmt = select(GraphItem).order_by(GraphItem.pk, GraphItem.sk)
        if partition_prefix:
            stmt = stmt.where(GraphItem.pk.startswith(partition_prefix, autoescape=True))

        async def op(session: AsyncSession) -> list[Item]:
            matched: list[Item] = []
            result = await session.execute(stmt)
            for row in result.scalars():
                item = row_to_item(row)
                if predicate is None or predicate(item):
                    matched.append(item)
                    if limit is not None and len(matched) >= limit:
                        break
            return matched

        return await self._run("scan", op)
