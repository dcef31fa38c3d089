"""
Tests for saved table views and their column presets.
"""

import pytest
from sqlalchemy.exc import IntegrityError

from shared.database.exceptions import InvalidArgumentError, TableNotFoundError, ViewNotFoundError
from shared.database.types import TableViewColumn


def columns(*names, hidden=()):
    cols = [TableViewColumn(name, column_order=i) for i, name in enumerate(names)]
    cols += [TableViewColumn(name, is_visible=False) for name in hidden]
    return cols


@pytest.mark.asyncio
async def test_only_visible_columns_are_stored(table_engine, books):
    view = await table_engine.create_view(
        books,
        "Main",
        [
            TableViewColumn("title", column_order=1, sort_order="ASC", column_width=200),
            TableViewColumn("qty", column_order=0),
            TableViewColumn("created_at", is_visible=False),
        ],
    )

    assert [c.column_name for c in view.columns] == ["qty", "title"]
    assert view.columns[1].sort_order == "asc"
    assert view.columns[1].column_width == 200
    assert all(c.is_visible for c in view.columns)
    assert view.view_type == "table"


@pytest.mark.asyncio
async def test_view_without_columns(table_engine, books):
    view = await table_engine.create_view(books, "Everything", [])
    assert view.columns == []
    assert (await table_engine.get_view(view.id)).columns == []


@pytest.mark.asyncio
async def test_list_views_by_name(table_engine, books):
    await table_engine.create_view(books, "Zeta", columns("title"))
    await table_engine.create_view(books, "Alpha", columns("qty", "title"))

    views = await table_engine.list_views(books)
    assert [v.view_name for v in views] == ["Alpha", "Zeta"]
    assert [c.column_name for c in views[0].columns] == ["qty", "title"]


@pytest.mark.asyncio
async def test_views_require_a_registered_table(table_engine):
    with pytest.raises(TableNotFoundError):
        await table_engine.create_view("nope", "Main", [])


@pytest.mark.asyncio
async def test_create_with_same_name_replaces(table_engine, books):
    first = await table_engine.create_view(books, "Main", columns("title"))
    second = await table_engine.create_view(books, "Main", columns("qty"), view_type="calendar")

    assert second.id == first.id
    assert second.view_type == "calendar"
    assert [c.column_name for c in second.columns] == ["qty"]
    assert len(await table_engine.list_views(books)) == 1


@pytest.mark.asyncio
async def test_update_renames_and_replaces_columns(table_engine, books):
    view = await table_engine.create_view(books, "Main", columns("title", "qty"))

    updated = await table_engine.update_view(view.id, books, "Renamed", columns("qty"))
    assert updated.view_name == "Renamed"
    assert [c.column_name for c in updated.columns] == ["qty"]


@pytest.mark.asyncio
async def test_failed_update_leaves_view_unchanged(table_engine, books):
    view = await table_engine.create_view(books, "Main", columns("title", "qty"))

    with pytest.raises(IntegrityError):
        await table_engine.update_view(view.id, books, "Broken", columns("qty", "qty"))

    stored = await table_engine.get_view(view.id)
    assert stored.view_name == "Main"
    assert [c.column_name for c in stored.columns] == ["title", "qty"]


@pytest.mark.asyncio
async def test_update_missing_or_foreign_view(table_engine, books):
    await table_engine.create_table("authors")
    view = await table_engine.create_view("authors", "Main", [])

    with pytest.raises(ViewNotFoundError):
        await table_engine.update_view(999, books, "Main", [])
    with pytest.raises(ViewNotFoundError):
        await table_engine.update_view(view.id, books, "Main", [])


@pytest.mark.asyncio
async def test_delete_view(table_engine, books):
    view = await table_engine.create_view(books, "Main", columns("title"))

    await table_engine.delete_view(view.id)
    with pytest.raises(ViewNotFoundError):
        await table_engine.get_view(view.id)
    with pytest.raises(ViewNotFoundError):
        await table_engine.delete_view(view.id)


@pytest.mark.asyncio
async def test_single_default_view(table_engine, books):
    first = await table_engine.create_view(books, "First", [], is_default=True)
    second = await table_engine.create_view(books, "Second", [], is_default=True)

    defaults = {v.id: v.is_default for v in await table_engine.list_views(books)}
    assert defaults == {first.id: False, second.id: True}


@pytest.mark.asyncio
async def test_invalid_sort_order(table_engine, books):
    with pytest.raises(InvalidArgumentError):
        await table_engine.create_view(books, "Main", [TableViewColumn("title", sort_order="sideways")])
    assert await table_engine.list_views(books) == []


@pytest.mark.asyncio
async def test_structure_view_type(table_engine, books):
    structure = await table_engine.get_table_structure(books)
    assert structure.view_type == "table"
    assert structure.create_button_text == "Insert Row"
    assert [f.name for f in structure.fields] == ["id", "created_at", "updated_at", "title", "qty"]

    await table_engine.create_view(books, "Grid", [])
    await table_engine.create_view(books, "Calendar", [], view_type="calendar", is_default=True)
    assert (await table_engine.get_table_structure(books)).view_type == "calendar"
