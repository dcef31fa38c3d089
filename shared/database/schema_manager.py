"""
Dynamic Schema Manager.

Introspects and mutates live physical tables. Column names and types are
read from the database on every call; nothing is cached between calls.
"""

from typing import List, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from shared.database.dialects import TableDialect, dialect_for_engine
from shared.database.exceptions import (
    DuplicateError,
    ProtectedColumnError,
    TableNotFoundError,
    wrap_database_errors,
)
from shared.database.identifiers import sanitize_identifier
from shared.database.types import FieldSpec, PROTECTED_COLUMNS
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


class SchemaManager:
    """
    Schema manager for caller-named physical tables.

    Features:
    - Column introspection (native type strings, nullability)
    - Add, retype, rename and drop columns
    - Physical table creation with the convention columns
    - Fails fast on operations the dialect cannot perform

    Example:
        >>> manager = SchemaManager(engine)
        >>> columns = await manager.list_columns("public", "books")
        >>> await manager.add_column("public", "books", FieldSpec("pages", "int64"))
    """

    def __init__(self, engine: AsyncEngine, dialect: Optional[TableDialect] = None):
        """
        Initialize schema manager.

        Args:
            engine: Async SQLAlchemy engine
            dialect: Dialect strategy (derived from the engine if not provided)
        """
        self.engine = engine
        self.dialect = dialect or dialect_for_engine(engine)

    async def list_columns(self, database: Optional[str], table: str) -> List[FieldSpec]:
        """
        List the current columns of a physical table.

        Args:
            database: Physical database (schema on PostgreSQL)
            table: Physical table name

        Returns:
            Columns in physical order with native type strings

        Raises:
            TableNotFoundError: If the table has no columns (does not exist)
        """
        table = sanitize_identifier(table)
        with wrap_database_errors("list_columns", table):
            async with self.engine.connect() as conn:
                columns = await self.dialect.list_columns(conn, database, table)

        if not columns:
            raise TableNotFoundError(table)
        return columns

    async def table_exists(self, database: Optional[str], table: str) -> bool:
        """Check whether a physical table exists."""
        table = sanitize_identifier(table)
        with wrap_database_errors("table_exists", table):
            async with self.engine.connect() as conn:
                columns = await self.dialect.list_columns(conn, database, table)
        return bool(columns)

    async def list_tables(self, database: Optional[str]) -> List[str]:
        """List base tables in a physical database."""
        with wrap_database_errors("list_tables", database):
            async with self.engine.connect() as conn:
                return await self.dialect.list_tables(conn, database)

    async def create_table(self, database: Optional[str], table: str) -> None:
        """
        Create a physical table with ``id``, ``created_at`` and ``updated_at``.

        Raises:
            DuplicateError: If the table already exists
        """
        table = sanitize_identifier(table)
        if await self.table_exists(database, table):
            raise DuplicateError(f"Table '{table}' already exists")

        await self._execute("create_table", table, self.dialect.create_table_sql(database, table))

    async def add_column(self, database: Optional[str], table: str, spec: FieldSpec) -> None:
        """
        Add a column mapped from a logical type.

        ``int64`` becomes a big integer, ``datetime`` a timestamp (with a
        current-timestamp default where the dialect allows one), anything
        else a text column.

        Args:
            database: Physical database
            table: Physical table name
            spec: Column name, logical type and flags
        """
        table = sanitize_identifier(table)
        spec = FieldSpec(
            name=sanitize_identifier(spec.name),
            type=spec.type,
            required=spec.required,
            default_to_current_timestamp=spec.default_to_current_timestamp,
        )
        sql = self.dialect.add_column_sql(database, table, spec)
        await self._execute("add_column", table, sql)

    async def change_column_type(
        self,
        database: Optional[str],
        table: str,
        column: str,
        new_type: str
    ) -> None:
        """
        Change a column to a native type.

        Raises:
            UnsupportedOperationError: On dialects without in-place ALTER COLUMN
            InvalidArgumentError: If ``new_type`` is not a valid type name
        """
        table = sanitize_identifier(table)
        sql = self.dialect.change_column_type_sql(database, table, column, new_type)
        await self._execute("change_column_type", table, sql)

    async def drop_column(self, database: Optional[str], table: str, column: str) -> None:
        """
        Drop a column.

        Raises:
            ProtectedColumnError: For ``id`` and the creation timestamp
            UnsupportedOperationError: On dialects without DROP COLUMN
        """
        table = sanitize_identifier(table)
        self._guard_system_column(column)
        sql = self.dialect.drop_column_sql(database, table, column)
        await self._execute("drop_column", table, sql)

    async def rename_column(
        self,
        database: Optional[str],
        table: str,
        old_name: str,
        new_name: str
    ) -> None:
        """
        Rename a column.

        Raises:
            ProtectedColumnError: For ``id`` and the creation timestamp
            UnsupportedOperationError: On dialects without RENAME COLUMN
        """
        table = sanitize_identifier(table)
        self._guard_system_column(old_name)
        self._guard_system_column(new_name)
        sql = self.dialect.rename_column_sql(database, table, old_name, new_name)
        await self._execute("rename_column", table, sql)

    def _guard_system_column(self, column: str) -> None:
        if sanitize_identifier(column) in PROTECTED_COLUMNS:
            raise ProtectedColumnError(sanitize_identifier(column))

    async def _execute(self, operation: str, table: str, sql: str) -> None:
        logger.info(f"{operation} on '{table}' ({self.dialect.name})")
        with wrap_database_errors(operation, table):
            async with self.engine.begin() as conn:
                await conn.execute(text(sql))
