"""
Tests for column introspection and mutation on SQLite.
"""

import pytest

from shared.database.exceptions import (
    DatabaseOperationError,
    DuplicateError,
    ProtectedColumnError,
    TableNotFoundError,
    UnsupportedOperationError,
)
from shared.database.schema_manager import SchemaManager
from shared.database.types import FieldSpec


@pytest.fixture
def schema(async_engine) -> SchemaManager:
    return SchemaManager(async_engine)


async def column_names(schema: SchemaManager, table: str = "books"):
    return [spec.name for spec in await schema.list_columns("main", table)]


@pytest.mark.asyncio
async def test_create_table_has_convention_columns(schema):
    await schema.create_table("main", "books")

    columns = await schema.list_columns("main", "books")
    assert [c.name for c in columns] == ["id", "created_at", "updated_at"]
    assert columns[0].type == "INTEGER"


@pytest.mark.asyncio
async def test_create_existing_table_is_duplicate(schema):
    await schema.create_table("main", "books")
    with pytest.raises(DuplicateError):
        await schema.create_table("main", "books")


@pytest.mark.asyncio
async def test_table_exists_and_listing(schema):
    assert not await schema.table_exists("main", "books")
    await schema.create_table(None, "books")
    assert await schema.table_exists(None, "books")

    tables = await schema.list_tables("main")
    assert "books" in tables
    assert "table_configurations" in tables


@pytest.mark.asyncio
async def test_missing_table_has_no_columns(schema):
    with pytest.raises(TableNotFoundError):
        await schema.list_columns("main", "nope")


@pytest.mark.asyncio
async def test_add_column_maps_logical_types(schema):
    await schema.create_table("main", "books")
    await schema.add_column("main", "books", FieldSpec("title", "string"))
    await schema.add_column("main", "books", FieldSpec("pages", "int64"))
    await schema.add_column("main", "books", FieldSpec("read_at", "datetime", default_to_current_timestamp=True))

    types = {c.name: c.type for c in await schema.list_columns("main", "books")}
    assert types["title"] == "TEXT"
    assert types["pages"] == "BIGINT"
    assert types["read_at"] == "TEXT"


@pytest.mark.asyncio
async def test_add_column_sanitizes_name(schema):
    await schema.create_table("main", "books")
    await schema.add_column("main", "books", FieldSpec("page-count;", "int64"))
    assert "pagecount" in await column_names(schema)


@pytest.mark.asyncio
async def test_driver_failure_is_wrapped_with_context(schema):
    await schema.create_table("main", "books")
    await schema.add_column("main", "books", FieldSpec("isbn", "string"))
    with pytest.raises(DatabaseOperationError) as exc_info:
        await schema.add_column("main", "books", FieldSpec("isbn", "string"))

    assert exc_info.value.operation == "add_column"
    assert exc_info.value.table == "books"
    assert exc_info.value.__cause__ is not None


@pytest.mark.asyncio
@pytest.mark.parametrize("call", [
    lambda s: s.change_column_type("main", "books", "title", "integer"),
    lambda s: s.drop_column("main", "books", "title"),
    lambda s: s.rename_column("main", "books", "title", "name"),
])
async def test_alterations_unsupported_on_sqlite(schema, call):
    await schema.create_table("main", "books")
    await schema.add_column("main", "books", FieldSpec("title", "string"))

    with pytest.raises(UnsupportedOperationError):
        await call(schema)

    assert await column_names(schema) == ["id", "created_at", "updated_at", "title"]


@pytest.mark.asyncio
@pytest.mark.parametrize("call", [
    lambda s: s.drop_column("main", "books", "id"),
    lambda s: s.drop_column("main", "books", "created_at"),
    lambda s: s.rename_column("main", "books", "id", "key"),
    lambda s: s.rename_column("main", "books", "title", "created_at"),
])
async def test_system_columns_are_protected(schema, call):
    await schema.create_table("main", "books")
    with pytest.raises(ProtectedColumnError):
        await call(schema)


@pytest.mark.asyncio
async def test_updated_at_is_not_protected(schema):
    await schema.create_table("main", "books")
    # Not guarded, so the dialect answers
    with pytest.raises(UnsupportedOperationError):
        await schema.drop_column("main", "books", "updated_at")
