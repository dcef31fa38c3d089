"""
PostgreSQL dialect.

Catalog-driven: columns, tables and constraints are read from
``information_schema``. A table's physical database is its schema. asyncpg
binds parameters with strict types, so caller strings are converted from
the introspected column type before binding.
"""

from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.sql import Insert, TableClause

from shared.database.dialects.base import Executor, TableDialect
from shared.database.dialects.registry import register_dialect
from shared.database.exceptions import InvalidArgumentError
from shared.database.types import FieldSpec, ForeignKey, ID_COLUMN

_INTEGER_TYPES = {"smallint", "integer", "bigint"}
_FLOAT_TYPES = {"real", "double precision"}
_TEXT_TYPES = {"text", "character varying", "character", "citext"}
_TRUE = {"true", "t", "1", "yes", "y", "on"}
_FALSE = {"false", "f", "0", "no", "n", "off"}

_COLUMNS_QUERY = text("""
    SELECT column_name, data_type, is_nullable
    FROM information_schema.columns
    WHERE table_schema = :schema AND table_name = :table
    ORDER BY ordinal_position
""")

_TABLES_QUERY = text("""
    SELECT table_name
    FROM information_schema.tables
    WHERE table_schema = :schema AND table_type = 'BASE TABLE'
    ORDER BY table_name
""")

# Both directions: the table owns the constraint or is referenced by it
_FOREIGN_KEYS_QUERY = text("""
    SELECT
        tc.constraint_name,
        kcu.table_schema,
        kcu.table_name,
        kcu.column_name,
        ccu.table_schema AS referenced_schema,
        ccu.table_name AS referenced_table,
        ccu.column_name AS referenced_column,
        rc.delete_rule,
        rc.update_rule
    FROM information_schema.table_constraints tc
    JOIN information_schema.key_column_usage kcu
        ON kcu.constraint_name = tc.constraint_name
        AND kcu.constraint_schema = tc.constraint_schema
    JOIN information_schema.referential_constraints rc
        ON rc.constraint_name = tc.constraint_name
        AND rc.constraint_schema = tc.constraint_schema
    JOIN information_schema.key_column_usage ccu
        ON ccu.constraint_name = rc.unique_constraint_name
        AND ccu.constraint_schema = rc.unique_constraint_schema
        AND ccu.ordinal_position = kcu.position_in_unique_constraint
    WHERE tc.constraint_type = 'FOREIGN KEY'
        AND (
            (kcu.table_schema = :schema AND kcu.table_name = :table)
            OR (ccu.table_schema = :schema AND ccu.table_name = :table)
        )
    ORDER BY tc.constraint_name
""")

_CONSTRAINT_OWNER_QUERY = text("""
    SELECT table_name
    FROM information_schema.table_constraints
    WHERE constraint_schema = :schema
        AND constraint_name = :name
        AND constraint_type = 'FOREIGN KEY'
""")


@register_dialect("postgresql")
class PostgreSQLDialect(TableDialect):
    """PostgreSQL via asyncpg."""

    default_database = "public"
    max_identifier_length = 63
    supports_foreign_keys = True

    async def list_columns(
        self,
        executor: Executor,
        database: Optional[str],
        table: str
    ) -> List[FieldSpec]:
        result = await executor.execute(
            _COLUMNS_QUERY,
            {"schema": database or self.default_database, "table": table}
        )
        return [
            FieldSpec(name=row.column_name, type=row.data_type, required=row.is_nullable == "NO")
            for row in result
        ]

    async def list_tables(self, executor: Executor, database: Optional[str]) -> List[str]:
        result = await executor.execute(
            _TABLES_QUERY, {"schema": database or self.default_database}
        )
        return [row.table_name for row in result]

    def create_table_sql(self, database: Optional[str], table: str) -> str:
        return (
            f"CREATE TABLE {self.qualify(database, table)} ("
            "id BIGSERIAL PRIMARY KEY, "
            "created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP, "
            "updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP)"
        )

    def column_type(self, spec: FieldSpec) -> str:
        if spec.type == "int64":
            return "BIGINT"
        if spec.type == "datetime":
            if spec.default_to_current_timestamp:
                return "TIMESTAMP DEFAULT CURRENT_TIMESTAMP"
            return "TIMESTAMP"
        return "TEXT"

    def change_column_type_sql(
        self,
        database: Optional[str],
        table: str,
        column: str,
        new_type: str
    ) -> str:
        type_name = self.validate_type_name(new_type)
        quoted = self.quote(column)
        return (
            f"ALTER TABLE {self.qualify(database, table)} "
            f"ALTER COLUMN {quoted} TYPE {type_name} USING {quoted}::{type_name}"
        )

    def drop_column_sql(self, database: Optional[str], table: str, column: str) -> str:
        return f"ALTER TABLE {self.qualify(database, table)} DROP COLUMN {self.quote(column)}"

    def rename_column_sql(
        self,
        database: Optional[str],
        table: str,
        old_name: str,
        new_name: str
    ) -> str:
        return (
            f"ALTER TABLE {self.qualify(database, table)} "
            f"RENAME COLUMN {self.quote(old_name)} TO {self.quote(new_name)}"
        )

    async def list_foreign_keys(
        self,
        executor: Executor,
        database: Optional[str],
        table: str
    ) -> List[ForeignKey]:
        result = await executor.execute(
            _FOREIGN_KEYS_QUERY,
            {"schema": database or self.default_database, "table": table}
        )
        return [
            ForeignKey(
                constraint_name=row.constraint_name,
                table_schema=row.table_schema,
                table_name=row.table_name,
                column_name=row.column_name,
                referenced_schema=row.referenced_schema,
                referenced_table=row.referenced_table,
                referenced_column=row.referenced_column,
                on_delete=row.delete_rule,
                on_update=row.update_rule,
            )
            for row in result
        ]

    def add_foreign_key_sql(
        self,
        database: Optional[str],
        constraint_name: str,
        table: str,
        column: str,
        referenced_table: str,
        referenced_column: str,
        on_delete: str,
        on_update: str,
        referenced_database: Optional[str] = None
    ) -> str:
        return (
            f"ALTER TABLE {self.qualify(database, table)} "
            f"ADD CONSTRAINT {self.quote(constraint_name)} "
            f"FOREIGN KEY ({self.quote(column)}) "
            f"REFERENCES {self.qualify(referenced_database or database, referenced_table)} ({self.quote(referenced_column)}) "
            f"ON DELETE {self.normalize_action(on_delete)} "
            f"ON UPDATE {self.normalize_action(on_update)}"
        )

    def drop_foreign_key_sql(self, database: Optional[str], table: str, constraint_name: str) -> str:
        return (
            f"ALTER TABLE {self.qualify(database, table)} "
            f"DROP CONSTRAINT {self.quote(constraint_name)}"
        )

    async def find_constraint_table(
        self,
        executor: Executor,
        database: Optional[str],
        constraint_name: str
    ) -> Optional[str]:
        result = await executor.execute(
            _CONSTRAINT_OWNER_QUERY,
            {"schema": database or self.default_database, "name": constraint_name}
        )
        return result.scalar_one_or_none()

    def insert_ignore(self, table: TableClause, values: Dict[str, Any], conflict_column: str) -> Insert:
        return pg_insert(table).values(**values).on_conflict_do_nothing(
            index_elements=[conflict_column]
        )

    async def insert_returning_id(self, executor: Executor, stmt: Insert) -> Any:
        result = await executor.execute(stmt.returning(stmt.table.c[ID_COLUMN]))
        return result.scalar_one()

    def coerce_value(self, spec: FieldSpec, value: Any) -> Any:
        """
        Convert a caller value to the Python type asyncpg expects for the column.

        Raises:
            InvalidArgumentError: If a string cannot be parsed as the column type
        """
        if value is None:
            return None

        native = spec.type.lower()
        if native in _TEXT_TYPES:
            return value if isinstance(value, str) else str(value)
        if not isinstance(value, str):
            return value

        raw = value.strip()
        try:
            if native in _INTEGER_TYPES:
                return int(raw)
            if native in ("numeric", "decimal"):
                return Decimal(raw)
            if native in _FLOAT_TYPES:
                return float(raw)
            if native == "boolean":
                lowered = raw.lower()
                if lowered in _TRUE:
                    return True
                if lowered in _FALSE:
                    return False
                raise ValueError(raw)
            if native == "date":
                return date.fromisoformat(raw)
            if native.startswith("timestamp"):
                return datetime.fromisoformat(raw)
            if native.startswith("time"):
                return time.fromisoformat(raw)
        except (ValueError, InvalidOperation) as e:
            raise InvalidArgumentError(
                f"Value '{value}' is not valid for column '{spec.name}' ({spec.type})"
            ) from e
        return value
