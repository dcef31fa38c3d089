"""
Foreign key management for physical tables.

Constraint names are derived from the four identifiers involved, so the
same relationship always maps to the same name and a second creation
attempt is detected before any DDL runs.
"""

from typing import List, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from shared.database.dialects import TableDialect, dialect_for_engine
from shared.database.exceptions import (
    ConstraintNotFoundError,
    DuplicateError,
    wrap_database_errors,
)
from shared.database.identifiers import sanitize_identifier
from shared.database.types import ForeignKey
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


class ForeignKeyManager:
    """
    Create, list and delete referential constraints.

    The referenced column's type is not checked against the referencing
    column; the database decides whether the constraint is acceptable.

    Example:
        >>> fks = ForeignKeyManager(engine)
        >>> fk = await fks.create("public", "orders", "customer_id", "customers", "id")
        >>> await fks.list("public", "customers")  # includes fk
    """

    def __init__(self, engine: AsyncEngine, dialect: Optional[TableDialect] = None):
        """
        Initialize foreign key manager.

        Args:
            engine: Async SQLAlchemy engine
            dialect: Dialect strategy (derived from the engine if not provided)
        """
        self.engine = engine
        self.dialect = dialect or dialect_for_engine(engine)

    async def list(self, database: Optional[str], table: str) -> List[ForeignKey]:
        """
        List constraints where the table is either side of the relationship.

        Args:
            database: Physical database
            table: Physical table name

        Returns:
            Outgoing and incoming foreign keys (empty on dialects without a catalog)
        """
        table = sanitize_identifier(table)
        with wrap_database_errors("list_foreign_keys", table):
            async with self.engine.connect() as conn:
                return await self.dialect.list_foreign_keys(conn, database, table)

    async def create(
        self,
        database: Optional[str],
        table: str,
        column: str,
        referenced_table: str,
        referenced_column: str,
        on_delete: Optional[str] = None,
        on_update: Optional[str] = None,
        referenced_database: Optional[str] = None
    ) -> ForeignKey:
        """
        Add a foreign key from ``table.column`` to ``referenced_table.referenced_column``.

        Args:
            database: Physical database of the referencing table
            table: Referencing table
            column: Referencing column
            referenced_table: Referenced table
            referenced_column: Referenced column
            on_delete: Referential action (defaults to NO ACTION)
            on_update: Referential action (defaults to NO ACTION)
            referenced_database: Physical database of the referenced table (``database`` if omitted)

        Returns:
            The created constraint

        Raises:
            UnsupportedOperationError: On dialects that cannot add constraints
            InvalidArgumentError: If an action is not a referential action
            DuplicateError: If the relationship already exists
        """
        table = sanitize_identifier(table)
        column = sanitize_identifier(column)
        referenced_table = sanitize_identifier(referenced_table)
        referenced_column = sanitize_identifier(referenced_column)

        constraint_name = self.dialect.constraint_name(table, column, referenced_table, referenced_column)
        on_delete = self.dialect.normalize_action(on_delete)
        on_update = self.dialect.normalize_action(on_update)
        sql = self.dialect.add_foreign_key_sql(
            database, constraint_name, table, column,
            referenced_table, referenced_column, on_delete, on_update, referenced_database
        )

        existing = await self.list(database, table)
        if any(fk.constraint_name == constraint_name for fk in existing):
            raise DuplicateError(f"Foreign key '{constraint_name}' already exists")

        logger.info(f"create_foreign_key {constraint_name} on '{table}'")
        with wrap_database_errors("create_foreign_key", table):
            async with self.engine.begin() as conn:
                await conn.execute(text(sql))

        schema = sanitize_identifier(database or self.dialect.default_database)
        referenced_schema = sanitize_identifier(referenced_database or schema)
        return ForeignKey(
            constraint_name=constraint_name,
            table_schema=schema,
            table_name=table,
            column_name=column,
            referenced_schema=referenced_schema,
            referenced_table=referenced_table,
            referenced_column=referenced_column,
            on_delete=on_delete,
            on_update=on_update,
        )

    async def delete(self, database: Optional[str], constraint_name: str) -> None:
        """
        Drop a foreign key by name.

        Raises:
            UnsupportedOperationError: On dialects without a constraint catalog
            ConstraintNotFoundError: If no table owns the constraint
        """
        constraint_name = sanitize_identifier(constraint_name)
        self.dialect.ensure_foreign_keys("delete_foreign_key")

        with wrap_database_errors("delete_foreign_key", None):
            async with self.engine.begin() as conn:
                table = await self.dialect.find_constraint_table(conn, database, constraint_name)
                if table is None:
                    raise ConstraintNotFoundError(constraint_name)

                logger.info(f"delete_foreign_key {constraint_name} on '{table}'")
                await conn.execute(text(
                    self.dialect.drop_foreign_key_sql(database, table, constraint_name)
                ))
