"""
SQLite dialect.

Pragma-driven introspection over an embedded file. SQLite cannot alter or
drop columns in place without rebuilding the table, and has no catalog of
named constraints, so those operations are reported as unsupported.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.sql import Insert, TableClause

from shared.database.dialects.base import Executor, TableDialect
from shared.database.dialects.registry import register_dialect
from shared.database.types import FieldSpec


@register_dialect("sqlite")
class SQLiteDialect(TableDialect):
    """SQLite via aiosqlite."""

    default_database = "main"

    async def list_columns(
        self,
        executor: Executor,
        database: Optional[str],
        table: str
    ) -> List[FieldSpec]:
        # PRAGMA arguments cannot be bound; both names are sanitized by quote()
        result = await executor.execute(
            text(f"PRAGMA {self.quote(database or self.default_database)}.table_info({self.quote(table)})")
        )
        return [
            FieldSpec(name=row.name, type=row.type, required=bool(row.notnull))
            for row in result
        ]

    async def list_tables(self, executor: Executor, database: Optional[str]) -> List[str]:
        result = await executor.execute(text(
            f"SELECT name FROM {self.quote(database or self.default_database)}.sqlite_master "
            "WHERE type = 'table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
        ))
        return [row.name for row in result]

    def create_table_sql(self, database: Optional[str], table: str) -> str:
        return (
            f"CREATE TABLE {self.qualify(database, table)} ("
            "id INTEGER PRIMARY KEY AUTOINCREMENT, "
            "created_at TEXT NOT NULL DEFAULT (datetime('now')), "
            "updated_at TEXT NOT NULL DEFAULT (datetime('now')))"
        )

    def column_type(self, spec: FieldSpec) -> str:
        if spec.type == "int64":
            return "BIGINT"
        # ALTER TABLE ADD COLUMN cannot take a non-constant default here;
        # the item repository fills timestamp columns on insert instead.
        return "TEXT"

    def insert_ignore(self, table: TableClause, values: Dict[str, Any], conflict_column: str) -> Insert:
        return sqlite_insert(table).values(**values).on_conflict_do_nothing(
            index_elements=[conflict_column]
        )

    async def insert_returning_id(self, executor: Executor, stmt: Insert) -> Any:
        result = await executor.execute(stmt)
        return result.lastrowid
