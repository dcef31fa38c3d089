"""
Shared fixtures: a fresh SQLite file database per test with the metadata
tables created, and a TableEngine over it.
"""

import pytest
import pytest_asyncio
from sqlalchemy import text

from modules.tables import TableEngine
from shared.database.types import FieldSpec
from shared.utils.config import Settings
from src.database.connection import create_engine, create_tables


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(DB_HOST=None, SQLITE_PATH=str(tmp_path / "tables.db"))


@pytest_asyncio.fixture
async def async_engine(settings):
    engine = create_engine(settings.DATABASE_URL, settings)
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def table_engine(async_engine) -> TableEngine:
    return TableEngine(async_engine)


@pytest_asyncio.fixture
async def books(table_engine: TableEngine) -> str:
    """A registered 'books' table with title and qty text columns."""
    await table_engine.create_table("books")
    await table_engine.add_column("books", FieldSpec("title", "string"))
    await table_engine.add_column("books", FieldSpec("qty", "string"))
    return "books"


@pytest.fixture
def run_sql(async_engine):
    """Execute raw DDL/DML against the test database."""
    async def run(sql: str) -> None:
        async with async_engine.begin() as conn:
            await conn.execute(text(sql))
    return run
