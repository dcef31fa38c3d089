"""
Dialect capability interface.

Each supported database engine implements ``TableDialect`` once. The
schema manager, item repository and foreign key manager call into it for
everything that differs between engines: column introspection, DDL text,
constraint catalogs and value binding. Operations an engine cannot perform
raise ``UnsupportedOperationError`` while building the statement, so nothing
reaches the database.
"""

import hashlib
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Union

from sqlalchemy.ext.asyncio import AsyncConnection, AsyncSession
from sqlalchemy.sql import Insert, TableClause

from shared.database.exceptions import InvalidArgumentError, UnsupportedOperationError
from shared.database.identifiers import sanitize_identifier
from shared.database.types import FieldSpec, ForeignKey

# Anything with an async ``execute`` (connection or session)
Executor = Union[AsyncConnection, AsyncSession]

FOREIGN_KEY_ACTIONS = ("CASCADE", "SET NULL", "SET DEFAULT", "RESTRICT", "NO ACTION")

_TYPE_NAME = re.compile(
    r"^[A-Za-z][A-Za-z0-9_ ]*(\(\s*\d+\s*(,\s*\d+\s*)?\))?(\[\])?$"
)


class TableDialect(ABC):
    """
    Abstract base class for database dialects.

    Example:
        @register_dialect("mydb")
        class MyDialect(TableDialect):
            async def list_columns(self, executor, database, table):
                ...
    """

    name: str = ""
    default_database: str = ""
    max_identifier_length: int = 128
    supports_foreign_keys: bool = False

    def __init__(self, default_database: Optional[str] = None):
        """
        Initialize dialect.

        Args:
            default_database: Physical database used when a table has none
        """
        if default_database:
            self.default_database = sanitize_identifier(default_database)

    # ------------------------------------------------------------------
    # Identifiers
    # ------------------------------------------------------------------

    def quote(self, identifier: str) -> str:
        """Sanitize and double-quote an identifier."""
        return f'"{sanitize_identifier(identifier)}"'

    def qualify(self, database: Optional[str], table: str) -> str:
        """Render ``"database"."table"`` for use in SQL text."""
        return f"{self.quote(database or self.default_database)}.{self.quote(table)}"

    def constraint_name(
        self,
        table: str,
        column: str,
        referenced_table: str,
        referenced_column: str
    ) -> str:
        """
        Build the deterministic foreign key name for a relationship.

        Names longer than the engine allows are shortened with a stable hash
        suffix so the same relationship always yields the same name.
        """
        parts = [sanitize_identifier(p) for p in (table, column, referenced_table, referenced_column)]
        name = "fk_" + "_".join(parts)
        if len(name) <= self.max_identifier_length:
            return name
        digest = hashlib.sha1(name.encode("utf-8")).hexdigest()[:8]
        return f"{name[:self.max_identifier_length - 9]}_{digest}"

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @abstractmethod
    async def list_columns(
        self,
        executor: Executor,
        database: Optional[str],
        table: str
    ) -> List[FieldSpec]:
        """
        List columns of a physical table with native type strings.

        Returns:
            Columns in physical order (empty if the table does not exist)
        """
        pass

    @abstractmethod
    async def list_tables(self, executor: Executor, database: Optional[str]) -> List[str]:
        """List base tables in a physical database."""
        pass

    # ------------------------------------------------------------------
    # DDL
    # ------------------------------------------------------------------

    @abstractmethod
    def create_table_sql(self, database: Optional[str], table: str) -> str:
        """CREATE TABLE statement carrying the convention columns."""
        pass

    @abstractmethod
    def column_type(self, spec: FieldSpec) -> str:
        """Map a logical column type to a native column definition (without NOT NULL)."""
        pass

    def add_column_sql(self, database: Optional[str], table: str, spec: FieldSpec) -> str:
        definition = self.column_type(spec)
        if spec.required:
            definition += " NOT NULL"
        return (
            f"ALTER TABLE {self.qualify(database, table)} "
            f"ADD COLUMN {self.quote(spec.name)} {definition}"
        )

    def change_column_type_sql(
        self,
        database: Optional[str],
        table: str,
        column: str,
        new_type: str
    ) -> str:
        raise UnsupportedOperationError(
            self.name, "change_column_type", "recreate the table to change a column type"
        )

    def drop_column_sql(self, database: Optional[str], table: str, column: str) -> str:
        raise UnsupportedOperationError(
            self.name, "drop_column", "recreate the table to drop a column"
        )

    def rename_column_sql(
        self,
        database: Optional[str],
        table: str,
        old_name: str,
        new_name: str
    ) -> str:
        raise UnsupportedOperationError(
            self.name, "rename_column", "recreate the table to rename a column"
        )

    @staticmethod
    def validate_type_name(type_name: str) -> str:
        """
        Check a native type name before it is interpolated into DDL.

        Raises:
            InvalidArgumentError: If the name does not look like a type
        """
        candidate = (type_name or "").strip()
        if not _TYPE_NAME.match(candidate):
            raise InvalidArgumentError(f"Invalid column type: '{type_name}'")
        return candidate

    # ------------------------------------------------------------------
    # Foreign keys
    # ------------------------------------------------------------------

    @staticmethod
    def normalize_action(action: Optional[str]) -> str:
        """
        Validate an ON DELETE / ON UPDATE action.

        Raises:
            InvalidArgumentError: If the action is not a referential action
        """
        normalized = " ".join((action or "").upper().split())
        if not normalized:
            return "NO ACTION"
        if normalized not in FOREIGN_KEY_ACTIONS:
            raise InvalidArgumentError(f"Invalid referential action: '{action}'")
        return normalized

    def ensure_foreign_keys(self, operation: str) -> None:
        """
        Fail before touching the database when constraints cannot be changed.

        Raises:
            UnsupportedOperationError: If the dialect cannot alter foreign keys
        """
        if not self.supports_foreign_keys:
            raise UnsupportedOperationError(
                self.name, operation, "foreign keys cannot be changed on an existing table"
            )

    async def list_foreign_keys(
        self,
        executor: Executor,
        database: Optional[str],
        table: str
    ) -> List[ForeignKey]:
        """Constraints where the table is the referencing or the referenced side."""
        return []

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
        raise UnsupportedOperationError(
            self.name, "create_foreign_key", "foreign keys must be declared when the table is created"
        )

    def drop_foreign_key_sql(self, database: Optional[str], table: str, constraint_name: str) -> str:
        raise UnsupportedOperationError(
            self.name, "delete_foreign_key", "foreign keys cannot be dropped from an existing table"
        )

    async def find_constraint_table(
        self,
        executor: Executor,
        database: Optional[str],
        constraint_name: str
    ) -> Optional[str]:
        """Return the table owning a foreign key constraint, or None."""
        raise UnsupportedOperationError(
            self.name, "delete_foreign_key", "foreign key catalog is not available"
        )

    # ------------------------------------------------------------------
    # DML helpers
    # ------------------------------------------------------------------

    @abstractmethod
    def insert_ignore(self, table: TableClause, values: Dict[str, Any], conflict_column: str) -> Insert:
        """INSERT that does nothing when ``conflict_column`` already holds the value."""
        pass

    @abstractmethod
    async def insert_returning_id(self, executor: Executor, stmt: Insert) -> Any:
        """Execute an INSERT and return the engine-assigned id."""
        pass

    def coerce_value(self, spec: FieldSpec, value: Any) -> Any:
        """Convert a caller value into what the driver expects for this column."""
        return value
