"""
Tests for YAML table definitions.
"""

import textwrap

import pytest

from modules.tables.definitions import (
    apply_table_definitions,
    load_table_definitions,
    parse_table_definitions,
)
from shared.database.exceptions import InvalidArgumentError

DEFINITION = textwrap.dedent("""
    tables:
      - name: books
        title: Books
        icon: book
        ordinal: 1
        create_button_text: Add book
        columns:
          - {name: title, type: string}
          - {name: pages, type: int64}
        views:
          - name: Default
            default: true
            columns:
              - {column_name: title, column_order: 0, sort_order: asc}
              - {column_name: pages, column_order: 1, is_visible: false}
      - name: authors
        columns:
          - {name: name}
""")


@pytest.fixture
def definition_file(tmp_path):
    path = tmp_path / "tables.yaml"
    path.write_text(DEFINITION)
    return path


def test_parse_definitions(definition_file):
    definitions = load_table_definitions(definition_file)

    books, authors = definitions
    assert books.attributes == {
        "title": "Books", "icon": "book", "ordinal": 1, "create_button_text": "Add book",
    }
    assert [(c.name, c.type) for c in books.columns] == [("title", "string"), ("pages", "int64")]
    assert books.views[0].is_default
    assert authors.columns[0].type == "string"
    assert authors.views == []


@pytest.mark.parametrize("document", [
    None,
    {},
    ["books"],
    {"tables": "books"},
    {"tables": [{"title": "x"}]},
    {"tables": [{"name": "books", "columns": [{"type": "int64"}]}]},
    {"tables": [{"name": "books", "columns": ["title"]}]},
    {"tables": [{"name": "books", "columns": {"name": "title"}}]},
    {"tables": [{"name": "books", "views": [{"default": True}]}]},
    {"tables": [{"name": "books", "views": [{"name": "Default", "columns": [{"is_visible": True}]}]}]},
    {"tables": [{"name": "books", "views": [{"name": "Default", "columns": [{"column_name": "title", "width": 3}]}]}]},
])
def test_malformed_documents(document):
    with pytest.raises(InvalidArgumentError):
        parse_table_definitions(document)


def test_invalid_yaml(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("tables:\n  - name: books\n    columns: [\n")

    with pytest.raises(InvalidArgumentError) as exc_info:
        load_table_definitions(path)
    assert "Invalid YAML" in str(exc_info.value)


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_table_definitions(tmp_path / "missing.yaml")


@pytest.mark.asyncio
async def test_apply_is_repeatable(table_engine, definition_file):
    definitions = load_table_definitions(definition_file)

    first = await apply_table_definitions(table_engine, definitions)
    assert first["books"] == {"created": True, "columns_added": ["title", "pages"], "views": ["Default"]}
    assert first["authors"]["created"] is True

    second = await apply_table_definitions(table_engine, definitions)
    assert second["books"]["created"] is False
    assert second["books"]["columns_added"] == []

    config = await table_engine.resolve_table("books")
    assert config.title == "Books"
    assert config.create_button_text == "Add book"
    assert [c.name for c in await table_engine.list_columns("books")] == [
        "id", "created_at", "updated_at", "title", "pages",
    ]

    views = await table_engine.list_views("books")
    assert len(views) == 1
    assert [c.column_name for c in views[0].columns] == ["title"]
    assert [c.name for c in await table_engine.list_tables()] == ["authors", "books"]
