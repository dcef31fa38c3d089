"""
Tests for foreign key management.

SQLite answers listing with an empty list and rejects every change before
touching the database. The PostgreSQL tests run only when TEST_POSTGRES_URL
points at a disposable database.
"""

import os
import uuid

import pytest
import pytest_asyncio
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from modules.tables import TableEngine
from shared.database.exceptions import (
    ConstraintNotFoundError,
    DuplicateError,
    InvalidArgumentError,
    UnsupportedOperationError,
)
from shared.database.types import FieldSpec
from src.database.connection import create_engine, create_tables

postgres_url = os.getenv("TEST_POSTGRES_URL")

requires_postgres = pytest.mark.skipif(not postgres_url, reason="TEST_POSTGRES_URL not set")


@pytest_asyncio.fixture
async def orders(table_engine, books):
    await table_engine.create_table("orders")
    await table_engine.add_column("orders", FieldSpec("book_id", "int64"))
    return "orders"


@pytest.mark.asyncio
async def test_sqlite_lists_no_foreign_keys(table_engine, orders):
    assert await table_engine.list_foreign_keys(orders) == []
    assert (await table_engine.get_table_structure(orders)).foreign_keys == []


@pytest.mark.asyncio
async def test_sqlite_rejects_foreign_key_changes(table_engine, books, orders):
    with pytest.raises(UnsupportedOperationError) as exc_info:
        await table_engine.create_foreign_key(orders, "book_id", books, "id")
    assert exc_info.value.operation == "create_foreign_key"

    with pytest.raises(UnsupportedOperationError):
        await table_engine.delete_foreign_key("fk_orders_book_id_books_id")

    columns = [c.name for c in await table_engine.list_columns(orders)]
    assert columns == ["id", "created_at", "updated_at", "book_id"]


# ----------------------------------------------------------------------
# PostgreSQL
# ----------------------------------------------------------------------

@pytest_asyncio.fixture
async def pg_engine():
    engine = create_engine(postgres_url)
    await create_tables(engine)
    table_engine = TableEngine(engine)
    suffix = uuid.uuid4().hex[:8]
    names = {"customers": f"customers_{suffix}", "invoices": f"invoices_{suffix}", "archive": f"archive_{suffix}"}

    yield table_engine, names

    async with engine.begin() as conn:
        for physical in names.values():
            await conn.execute(text(f'DROP TABLE IF EXISTS "public"."{physical}" CASCADE'))
        await conn.execute(text(f'DROP SCHEMA IF EXISTS "{names["archive"]}" CASCADE'))
        await conn.execute(
            text("DELETE FROM table_configurations WHERE name LIKE :pattern"),
            {"pattern": f"%{suffix}%"},
        )
    await engine.dispose()


@requires_postgres
@pytest.mark.asyncio
async def test_postgres_foreign_key_lifecycle(pg_engine):
    engine, names = pg_engine
    customers, invoices = names["customers"], names["invoices"]
    await engine.create_table(customers)
    await engine.create_table(invoices)
    await engine.add_column(invoices, FieldSpec("customer_id", "int64"))

    fk = await engine.create_foreign_key(invoices, "customer_id", customers, "id", on_delete="cascade")
    assert fk.constraint_name == f"fk_{invoices}_customer_id_{customers}_id"
    assert fk.on_delete == "CASCADE"

    # Visible from both sides
    outgoing = await engine.list_foreign_keys(invoices)
    incoming = await engine.list_foreign_keys(customers)
    assert [f.constraint_name for f in outgoing] == [fk.constraint_name]
    assert [f.constraint_name for f in incoming] == [fk.constraint_name]
    assert incoming[0].referenced_column == "id"

    with pytest.raises(DuplicateError):
        await engine.create_foreign_key(invoices, "customer_id", customers, "id")

    await engine.delete_foreign_key(fk.constraint_name)
    assert await engine.list_foreign_keys(invoices) == []
    with pytest.raises(ConstraintNotFoundError):
        await engine.delete_foreign_key(fk.constraint_name)


@requires_postgres
@pytest.mark.asyncio
async def test_postgres_referential_action_is_enforced(pg_engine):
    engine, names = pg_engine
    customers, invoices = names["customers"], names["invoices"]
    await engine.create_table(customers)
    await engine.create_table(invoices)
    await engine.add_column(invoices, FieldSpec("customer_id", "int64"))
    await engine.create_foreign_key(invoices, "customer_id", customers, "id", on_delete="CASCADE")

    customer = await engine.create_item(customers, {})
    await engine.create_item(invoices, {"customer_id": customer.id})
    assert await engine.count_items(invoices) == 1

    await engine.delete_item(customers, customer.id)
    assert await engine.count_items(invoices) == 0


@requires_postgres
@pytest.mark.asyncio
async def test_postgres_structure_reports_logical_names(pg_engine):
    engine, names = pg_engine
    customers, invoices = names["customers"], names["invoices"]
    await engine.create_table(customers)
    await engine.register_table(f"{invoices}_alias", table=invoices)
    await engine.schema.create_table("public", invoices)
    await engine.add_column(f"{invoices}_alias", FieldSpec("customer_id", "int64"))
    await engine.create_foreign_key(f"{invoices}_alias", "customer_id", customers, "id")

    structure = await engine.get_table_structure(customers)
    assert structure.foreign_keys[0].table_name == f"{invoices}_alias"
    assert structure.foreign_keys[0].referenced_table == customers


@requires_postgres
@pytest.mark.asyncio
async def test_postgres_column_alterations(pg_engine):
    engine, names = pg_engine
    customers = names["customers"]
    await engine.create_table(customers)
    await engine.add_column(customers, FieldSpec("visits", "string"))
    item = await engine.create_item(customers, {"visits": "5"})

    await engine.change_column_type(customers, "visits", "integer")
    assert (await engine.get_item(customers, item.id)).fields["visits"] == 5

    # String input is converted for the now-integer column
    edited = await engine.edit_item(customers, item.id, {"visits": "6"})
    assert edited.fields["visits"] == 6
    with pytest.raises(InvalidArgumentError):
        await engine.edit_item(customers, item.id, {"visits": "many"})

    await engine.rename_column(customers, "visits", "visit_count")
    await engine.drop_column(customers, "visit_count")
    assert [c.name for c in await engine.list_columns(customers)] == ["id", "created_at", "updated_at"]


@requires_postgres
@pytest.mark.asyncio
async def test_postgres_foreign_key_across_databases(pg_engine):
    engine, names = pg_engine
    customers, invoices, archive = names["customers"], names["invoices"], names["archive"]
    async with engine.engine.begin() as conn:
        await conn.execute(text(f'CREATE SCHEMA "{archive}"'))
    await engine.create_table(customers, database=archive)
    await engine.create_table(invoices)
    await engine.add_column(invoices, FieldSpec("customer_id", "int64"))

    fk = await engine.create_foreign_key(invoices, "customer_id", customers, "id")
    assert fk.table_schema == "public"
    assert fk.referenced_schema == archive
    assert fk.referenced_table == customers

    customer = await engine.create_item(customers, {})
    await engine.create_item(invoices, {"customer_id": customer.id})
    with pytest.raises(IntegrityError):
        await engine.create_item(invoices, {"customer_id": "999"})
