"""
Tests for generic row CRUD over registered tables.
"""

import pytest
from sqlalchemy.exc import IntegrityError

from shared.database.exceptions import (
    DatabaseOperationError,
    InvalidArgumentError,
    ItemNotFoundError,
    UnknownColumnError,
)
from shared.database.types import FieldSpec


@pytest.mark.asyncio
async def test_create_then_get_round_trip(table_engine, books):
    created = await table_engine.create_item(books, {"title": "a", "qty": "3"})

    assert created.id == "1"
    assert created.fields == {"title": "a", "qty": "3"}
    assert created.created_at is not None
    assert created.updated_at is not None

    fetched = await table_engine.get_item(books, created.id)
    assert fetched == created


@pytest.mark.asyncio
async def test_fields_exclude_system_columns(table_engine, books):
    item = await table_engine.create_item(books, {"title": "a"})
    assert set(item.fields) == {"title", "qty"}
    assert item.fields["qty"] is None
    assert item.to_dict()["id"] == item.id


@pytest.mark.asyncio
async def test_delete_missing_id_reports_false(table_engine, books):
    assert await table_engine.delete_item(books, "999") is False
    assert await table_engine.delete_item(books, "999") is False
    assert await table_engine.delete_item(books, "not-a-number") is False


@pytest.mark.asyncio
async def test_delete_existing_row(table_engine, books):
    item = await table_engine.create_item(books, {"title": "a"})

    assert await table_engine.delete_item(books, item.id) is True
    with pytest.raises(ItemNotFoundError):
        await table_engine.get_item(books, item.id)
    assert await table_engine.delete_item(books, item.id) is False


@pytest.mark.asyncio
async def test_list_orders_by_created_at_descending(table_engine, books):
    for title, created in [
        ("first", "2024-01-01 00:00:00"),
        ("third", "2024-01-03 00:00:00"),
        ("second", "2024-01-02 00:00:00"),
    ]:
        await table_engine.create_item(books, {"title": title, "created_at": created})

    items = await table_engine.list_items(books)
    assert [i.fields["title"] for i in items] == ["third", "second", "first"]


@pytest.mark.asyncio
async def test_list_ties_on_created_at_break_by_id(table_engine, books):
    for title in ("a", "b", "c"):
        await table_engine.create_item(books, {"title": title, "created_at": "2024-01-01 00:00:00"})

    items = await table_engine.list_items(books)
    assert [i.fields["title"] for i in items] == ["c", "b", "a"]


@pytest.mark.asyncio
async def test_list_orders_by_id_without_timestamp_column(table_engine, run_sql):
    await run_sql("CREATE TABLE plain (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT)")
    await table_engine.register_table("plain")

    for name in ("a", "b", "c"):
        item = await table_engine.create_item("plain", {"name": name})
        assert item.created_at is None

    items = await table_engine.list_items("plain")
    assert [i.fields["name"] for i in items] == ["c", "b", "a"]
    assert [i.id for i in items] == ["3", "2", "1"]


@pytest.mark.asyncio
async def test_filters(table_engine, books):
    await table_engine.add_column(books, FieldSpec("status", "string"))
    for title, status in [("a", "ok"), ("b", "not ok"), ("c", "fail"), ("d", None)]:
        await table_engine.create_item(books, {"title": title, "status": status})

    async def titles(where):
        return sorted(i.fields["title"] for i in await table_engine.list_items(books, where))

    assert await titles({"status": {"contains": "ok"}}) == ["a", "b"]
    assert await titles({"status": "ok"}) == ["a"]
    assert await titles({"status": {"eq": "fail"}}) == ["c"]
    assert await titles({"status": "%ai%"}) == ["c"]
    assert await titles({"status": None}) == ["d"]
    assert await titles({"status": {"contains": "ok"}, "title": "b"}) == ["b"]
    assert await table_engine.count_items(books, {"status": {"contains": "ok"}}) == 2
    assert await table_engine.count_items(books) == 4


@pytest.mark.asyncio
async def test_contains_treats_wildcards_literally(table_engine, books):
    await table_engine.create_item(books, {"title": "100%"})
    await table_engine.create_item(books, {"title": "1000"})

    items = await table_engine.list_items(books, {"title": {"contains": "0%"}})
    assert [i.fields["title"] for i in items] == ["100%"]


@pytest.mark.asyncio
async def test_limit(table_engine, books):
    for title in ("a", "b", "c"):
        await table_engine.create_item(books, {"title": title})
    assert len(await table_engine.list_items(books, limit=2)) == 2


@pytest.mark.asyncio
async def test_unknown_columns_and_operators(table_engine, books):
    with pytest.raises(UnknownColumnError):
        await table_engine.create_item(books, {"author": "x"})
    with pytest.raises(UnknownColumnError):
        await table_engine.list_items(books, {"author": "x"})
    with pytest.raises(InvalidArgumentError):
        await table_engine.list_items(books, {"title": {"startswith": "x"}})


@pytest.mark.asyncio
async def test_edit_updates_only_supplied_fields(table_engine, books):
    item = await table_engine.create_item(books, {"title": "a", "qty": "1"})

    edited = await table_engine.edit_item(books, item.id, {"qty": "2"})
    assert edited.fields == {"title": "a", "qty": "2"}
    assert edited.created_at == item.created_at


@pytest.mark.asyncio
async def test_edit_rejections(table_engine, books):
    item = await table_engine.create_item(books, {"title": "a"})

    with pytest.raises(InvalidArgumentError, match="no fields to update"):
        await table_engine.edit_item(books, item.id, {})
    with pytest.raises(InvalidArgumentError):
        await table_engine.edit_item(books, item.id, {"id": "5"})
    with pytest.raises(ItemNotFoundError):
        await table_engine.edit_item(books, "999", {"title": "b"})


@pytest.mark.asyncio
async def test_get_last(table_engine, books):
    with pytest.raises(ItemNotFoundError):
        await table_engine.get_last_item(books)

    await table_engine.create_item(books, {"title": "a"})
    await table_engine.create_item(books, {"title": "b"})
    assert (await table_engine.get_last_item(books)).fields["title"] == "b"


@pytest.mark.asyncio
async def test_binary_values_are_decoded(table_engine, books):
    item = await table_engine.create_item(books, {"title": b"hello"})
    assert item.fields["title"] == "hello"


@pytest.mark.asyncio
async def test_not_null_violation_propagates(table_engine, run_sql):
    await run_sql(
        "CREATE TABLE strict_items (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT NOT NULL)"
    )
    await table_engine.register_table("strict_items")

    with pytest.raises(IntegrityError):
        await table_engine.create_item("strict_items", {"name": None})
    assert await table_engine.count_items("strict_items") == 0


@pytest.mark.asyncio
async def test_columns_added_later_are_visible(table_engine, books):
    await table_engine.create_item(books, {"title": "a"})
    await table_engine.add_column(books, FieldSpec("pages", "int64"))

    item = await table_engine.create_item(books, {"title": "b", "pages": 12})
    assert item.fields["pages"] == 12
    assert (await table_engine.get_item(books, "1")).fields["pages"] is None


@pytest.mark.asyncio
@pytest.mark.parametrize("operation, call", [
    ("list_items", lambda engine: engine.list_items("books")),
    ("count_items", lambda engine: engine.count_items("books")),
    ("create_item", lambda engine: engine.create_item("books", {"title": "a"})),
    ("get_item", lambda engine: engine.get_item("books", "1")),
    ("delete_item", lambda engine: engine.delete_item("books", "1")),
])
async def test_driver_failures_carry_operation_and_table(table_engine, books, run_sql, operation, call):
    await run_sql("DROP TABLE table_configurations")

    with pytest.raises(DatabaseOperationError) as exc_info:
        await call(table_engine)
    assert exc_info.value.operation == operation
    assert exc_info.value.table == "books"
    assert exc_info.value.__cause__ is not None
