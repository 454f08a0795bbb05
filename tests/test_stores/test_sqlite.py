"""Tests for the SQLite Database: transactions and persistence."""

import pytest

from identity_store import (
    CLIENT_KIND,
    Client,
    ClientIdentifiers,
    NotFoundError,
    RequestContext,
    open_identity_store,
)
from identity_store.stores import ClientStore, Database


@pytest.fixture
async def db():
    database = Database(":memory:")
    await database.create_schema([CLIENT_KIND])
    yield database
    await database.close()


async def test_commit(db):
    async with db.transaction(write=True) as conn:
        await conn.execute("INSERT INTO clients (id, client_id) VALUES ('1', 'a')")

    async with db.transaction() as conn:
        cursor = await conn.execute("SELECT client_id FROM clients")
        rows = await cursor.fetchall()
    assert [r["client_id"] for r in rows] == ["a"]


async def test_rollback_on_error(db):
    with pytest.raises(RuntimeError):
        async with db.transaction(write=True) as conn:
            await conn.execute("INSERT INTO clients (id, client_id) VALUES ('1', 'a')")
            raise RuntimeError("boom")

    async with db.transaction() as conn:
        cursor = await conn.execute("SELECT COUNT(*) FROM clients")
        (count,) = await cursor.fetchone()
    assert count == 0


async def test_nested_transactions_join(db):
    async with db.transaction(write=True) as outer:
        async with db.transaction() as inner:
            assert inner is outer


async def test_store_calls_join_outer_transaction(db):
    store = ClientStore(db)
    ctx = RequestContext()

    with pytest.raises(RuntimeError):
        async with db.transaction(write=True):
            await store.create_client(ctx, Client(client_id="a"))
            assert (await store.get_client(ctx, ClientIdentifiers("a"))).client_id == "a"
            raise RuntimeError("abort")

    with pytest.raises(NotFoundError):
        await store.get_client(ctx, ClientIdentifiers("a"))


async def test_create_schema_idempotent(db):
    await db.create_schema([CLIENT_KIND])


async def test_file_database_persists(tmp_path, clock):
    path = str(tmp_path / "identity.db")
    ctx = RequestContext()

    async with await open_identity_store({"path": path}, clock=clock) as identity:
        created = await identity.clients.create_client(ctx, Client(client_id="kept", name="K"))

    async with await open_identity_store({"path": path}, clock=clock) as identity:
        fetched = await identity.clients.get_client(ctx, ClientIdentifiers("kept"))
    assert fetched == created


async def test_close_is_idempotent(db):
    await db.close()
    await db.close()
