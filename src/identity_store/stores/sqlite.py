"""SQLite backend — generic entity store on a single aiosqlite connection."""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import AsyncIterator, Iterable, Mapping, Sequence
from contextlib import asynccontextmanager
from contextvars import ContextVar
from dataclasses import replace
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

import aiosqlite

from identity_store._internal.clock import Clock, SystemClock
from identity_store.exceptions import (
    ConflictError,
    InvalidArgumentError,
    InvalidIdentifiersError,
    NotFoundError,
)
from identity_store.fieldmask import FieldMask, resolve_columns, writable_columns
from identity_store.kinds import EntityKind
from identity_store.model import DELETED_AT_COLUMN, clean_time, to_millis
from identity_store.stores.base import E, EntityStore, FindResult

if TYPE_CHECKING:
    from identity_store.context import RequestContext

logger = logging.getLogger(__name__)


def _q(name: str) -> str:
    return f'"{name}"'


class Database:
    """One SQLite database shared by the stores of every kind.

    Transactions are explicit (the connection runs in autocommit mode) and
    serialised in-process.  Write transactions start with ``BEGIN IMMEDIATE``
    so a read-check-write sequence holds the database write lock from its
    first statement, also against other processes.

    Parameters:
        path:    Path to the SQLite database file.  Use ``":memory:"``
                 for an in-memory database (useful for testing).
        timeout: Seconds to wait for a lock held by another connection.
    """

    def __init__(self, path: str = ":memory:", *, timeout: float = 5.0) -> None:
        self._path = path
        self._timeout = timeout
        self._db: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()
        self._active: ContextVar[aiosqlite.Connection | None] = ContextVar(
            f"identity_store_tx_{id(self)}", default=None
        )

    @property
    def path(self) -> str:
        return self._path

    async def _connect(self) -> aiosqlite.Connection:
        if self._db is None:
            logger.info("Opening SQLite database %s", self._path)
            self._db = await aiosqlite.connect(
                self._path, timeout=self._timeout, isolation_level=None
            )
            self._db.row_factory = aiosqlite.Row
        return self._db

    async def close(self) -> None:
        async with self._lock:
            if self._db:
                await self._db.close()
                self._db = None
                logger.info("Closed SQLite database %s", self._path)

    @asynccontextmanager
    async def transaction(self, *, write: bool = False) -> AsyncIterator[aiosqlite.Connection]:
        """Run the block in one transaction; nested calls join the outer one.

        The transaction commits when the block exits normally and rolls back
        on any exception, which is then re-raised unchanged.
        """
        active = self._active.get()
        if active is not None:
            yield active
            return

        async with self._lock:
            db = await self._connect()
            await db.execute("BEGIN IMMEDIATE" if write else "BEGIN")
            token = self._active.set(db)
            try:
                yield db
            except BaseException:
                if db.in_transaction:
                    await db.execute("ROLLBACK")
                raise
            else:
                await db.execute("COMMIT")
            finally:
                self._active.reset(token)

    async def create_schema(self, kinds: Iterable[EntityKind[Any]]) -> None:
        async with self.transaction(write=True) as db:
            for kind in kinds:
                await db.execute(kind.create_table_sql())
                if kind.soft_delete:
                    await db.execute(
                        f'CREATE INDEX IF NOT EXISTS "idx_{kind.table}_deleted_at" '
                        f"ON {_q(kind.table)} ({_q(DELETED_AT_COLUMN)})"
                    )
                logger.info("Ensured table %s for %s entities", kind.table, kind.name)


class SQLEntityStore(EntityStore[E]):
    """Generic store for one entity kind.

    Holds no state of its own beyond the database handle: every call runs
    in its own transaction, or joins the caller's when one is open.

    Parameters:
        db:    Database the kind's table lives in.
        kind:  Descriptor of the entity kind.
        clock: Source of ``created_at``/``updated_at``.  Injectable for tests.
    """

    def __init__(self, db: Database, kind: EntityKind[E], *, clock: Clock | None = None) -> None:
        self._db = db
        self.kind = kind
        self._clock = clock or SystemClock()

    # ── helpers ──────────────────────────────────────────────

    def _lookup(self, ids: Any) -> dict[str, Any]:
        try:
            filters = self.kind.lookup(ids)
        except ValueError as exc:
            raise InvalidIdentifiersError(self.kind.name, str(exc)) from exc
        if not filters:
            raise InvalidIdentifiersError(self.kind.name)
        return filters

    def _encode(self, entity: E, columns: tuple[str, ...] | None = None) -> dict[str, Any]:
        try:
            return self.kind.to_row(entity, columns)
        except ValueError as exc:
            raise InvalidArgumentError(f"Invalid {self.kind.name}: {exc}") from exc

    def _where(
        self, filters: Mapping[str, Any], *, include_deleted: bool = False
    ) -> tuple[str, list[Any]]:
        conditions = [f"{_q(column)} = ?" for column in filters]
        params = list(filters.values())
        if self.kind.soft_delete and not include_deleted:
            conditions.append(f"{_q(DELETED_AT_COLUMN)} IS NULL")
        if not conditions:
            return "", params
        return " WHERE " + " AND ".join(conditions), params

    def _select(self, columns: Sequence[str]) -> str:
        names = columns or self.kind.column_names
        return f"SELECT {', '.join(_q(c) for c in names)} FROM {_q(self.kind.table)}"

    async def _fetch_one(
        self,
        db: aiosqlite.Connection,
        filters: Mapping[str, Any],
        columns: Sequence[str] = (),
        *,
        include_deleted: bool = False,
    ) -> dict[str, Any] | None:
        where, params = self._where(filters, include_deleted=include_deleted)
        cursor = await db.execute(self._select(columns) + where + " LIMIT 1", params)
        row = await cursor.fetchone()
        return None if row is None else dict(row)

    def _next_timestamp(self, previous: datetime | None = None) -> datetime:
        now = clean_time(self._clock.now())
        if previous is not None and now <= previous:
            now = previous + timedelta(milliseconds=1)
        return now

    # ── EntityStore ──────────────────────────────────────────

    async def create(self, ctx: RequestContext, entity: E) -> E:
        entity = replace(entity)
        entity.set_context(ctx)
        entity.before_create()

        id_attr = self.kind.column(self.kind.id_column).attribute
        if not getattr(entity, id_attr):
            raise InvalidIdentifiersError(self.kind.name, f"{id_attr} is required")
        if not entity.id:
            entity.id = str(uuid.uuid4())
        entity.created_at = entity.updated_at = self._next_timestamp()
        if self.kind.soft_delete:
            entity.deleted_at = None

        row = self._encode(entity)
        sql = (
            f"INSERT INTO {_q(self.kind.table)} ({', '.join(_q(c) for c in row)}) "
            f"VALUES ({', '.join('?' for _ in row)})"
        )
        async with self._db.transaction(write=True) as db:
            ctx.raise_for_cancel()
            await db.execute(sql, list(row.values()))
        logger.debug("Created %s %s (%s)", self.kind.name, getattr(entity, id_attr), entity.id)
        return self.kind.from_row(row)

    async def get(self, ctx: RequestContext, ids: Any, mask: FieldMask | None = None) -> E:
        filters = self._lookup(ids)
        columns = resolve_columns(mask, self.kind)
        ctx.raise_for_cancel()
        async with self._db.transaction() as db:
            row = await self._fetch_one(db, filters, columns, include_deleted=ctx.include_deleted)
        if row is None:
            raise NotFoundError(self.kind.name, ids)
        return self.kind.from_row(row)

    async def find(
        self,
        ctx: RequestContext,
        ids: Sequence[Any] | None = None,
        mask: FieldMask | None = None,
    ) -> FindResult[E]:
        columns = resolve_columns(mask, self.kind)
        where, params = self._where({}, include_deleted=ctx.include_deleted)
        if ids:
            id_column = self.kind.column(self.kind.id_column)
            values = [getattr(i, id_column.attribute, None) for i in ids]
            values = [v for v in values if v]
            if not values:
                raise InvalidIdentifiersError(self.kind.name, f"no {id_column.attribute} given")
            condition = f"{_q(id_column.name)} IN ({', '.join('?' for _ in values)})"
            where = f"{where} AND {condition}" if where else f" WHERE {condition}"
            params += values

        page = ctx.pagination
        ctx.raise_for_cancel()
        query = self._select(columns) + where + f" ORDER BY {_q(self.kind.id_column)}"
        async with self._db.transaction() as db:
            total: int | None = None
            if page.limit:
                cursor = await db.execute(
                    f"SELECT COUNT(*) FROM {_q(self.kind.table)}{where}", params
                )
                (total,) = await cursor.fetchone()
                ctx.set_total(total)
                query += " LIMIT ? OFFSET ?"
                params = [*params, page.limit, page.offset]
            cursor = await db.execute(query, params)
            rows = await cursor.fetchall()

        items = [self.kind.from_row(dict(row)) for row in rows]
        logger.debug(
            "Found %d %s entities (limit=%d offset=%d total=%s)",
            len(items), self.kind.name, page.limit, page.offset, total,
        )
        return FindResult(items=items, total_count=len(items) if total is None else total)

    async def update(self, ctx: RequestContext, entity: E, mask: FieldMask | None = None) -> E:
        id_column = self.kind.column(self.kind.id_column)
        identifier = getattr(entity, id_column.attribute)
        if not identifier:
            raise InvalidIdentifiersError(self.kind.name, f"{id_column.attribute} is required")
        filters = {id_column.name: identifier}
        columns = writable_columns(mask, self.kind)
        values = self._encode(entity, columns)

        async with self._db.transaction(write=True) as db:
            row = await self._fetch_one(db, filters)
            if row is None:
                raise NotFoundError(self.kind.name, self.kind.identifiers_of(entity))
            current = self.kind.from_row(row)
            if entity.updated_at is not None and clean_time(entity.updated_at) != current.updated_at:
                logger.warning(
                    "Rejected stale write on %s %s: updated_at %s, stored %s",
                    self.kind.name, identifier, entity.updated_at, current.updated_at,
                )
                raise ConflictError(
                    self.kind.name,
                    self.kind.identifiers_of(current),
                    entity.updated_at,
                    current.updated_at,
                )
            ctx.raise_for_cancel()
            if not columns:
                logger.debug("Update of %s %s touches no columns", self.kind.name, identifier)
                return current

            values["updated_at"] = to_millis(self._next_timestamp(current.updated_at))
            assignments = ", ".join(f"{_q(c)} = ?" for c in values)
            await db.execute(
                f"UPDATE {_q(self.kind.table)} SET {assignments} WHERE {_q('id')} = ?",
                [*values.values(), current.id],
            )

        row.update(values)
        logger.debug("Updated %s %s columns %s", self.kind.name, identifier, list(columns))
        return self.kind.from_row(row)

    async def delete(self, ctx: RequestContext, ids: Any) -> None:
        filters = self._lookup(ids)
        where, params = self._where(filters)
        table = _q(self.kind.table)
        async with self._db.transaction(write=True) as db:
            ctx.raise_for_cancel()
            if self.kind.soft_delete:
                deleted_at = to_millis(self._next_timestamp())
                cursor = await db.execute(
                    f"UPDATE {table} SET {_q(DELETED_AT_COLUMN)} = ?{where}",
                    [deleted_at, *params],
                )
            else:
                cursor = await db.execute(f"DELETE FROM {table}{where}", params)
            if cursor.rowcount == 0:
                raise NotFoundError(self.kind.name, ids)
        logger.debug(
            "%s %s %s",
            "Tombstoned" if self.kind.soft_delete else "Deleted", self.kind.name, ids,
        )
