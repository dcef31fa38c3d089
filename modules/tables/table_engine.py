"""
TableEngine - entry point for dynamic table operations.

Resolves logical table names through the registry, then hands the physical
location to the schema manager, item repository, foreign key manager or
view repository. Every call opens its own session; nothing is cached
between calls.
"""

from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncEngine

from shared.database.dialects import TableDialect, dialect_for_engine
from shared.database.exceptions import DuplicateError, wrap_database_errors
from shared.database.identifiers import sanitize_identifier
from shared.database.foreign_key_manager import ForeignKeyManager
from shared.database.schema_manager import SchemaManager
from shared.database.types import (
    DEFAULT_CREATE_BUTTON_TEXT,
    DEFAULT_VIEW_TYPE,
    DatabaseTable,
    FieldSpec,
    ForeignKey,
    Item,
    TableConfig,
    TableStructure,
    TableView,
    TableViewColumn,
)
from shared.database.universal_repository import UniversalRepository
from shared.utils.config import Settings
from shared.utils.logger import setup_logger
from src.database.connection import create_engine, create_session_maker, get_database_url, session_scope
from src.database.repositories import TableConfigRepository, TableViewRepository

logger = setup_logger(__name__)


class TableEngine:
    """
    Dynamic table engine.

    Usage:
        engine = TableEngine(async_engine)
        await engine.create_table("books")
        await engine.add_column("books", FieldSpec("title", "string"))
        item = await engine.create_item("books", {"title": "Dune"})
        items = await engine.list_items("books", {"title": {"contains": "un"}})
    """

    def __init__(self, engine: AsyncEngine, default_database: Optional[str] = None):
        """
        Initialize table engine.

        Args:
            engine: Async SQLAlchemy engine (PostgreSQL or SQLite)
            default_database: Physical database for tables registered without one
        """
        self.engine = engine
        self.dialect: TableDialect = dialect_for_engine(engine, default_database)
        self.session_maker = create_session_maker(engine)
        self.schema = SchemaManager(engine, self.dialect)
        self.foreign_keys = ForeignKeyManager(engine, self.dialect)

        logger.info(
            f"TableEngine initialized ({self.dialect.name}, "
            f"default database '{self.dialect.default_database}')"
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "TableEngine":
        """Build an engine for the database selected by the settings."""
        engine = create_engine(get_database_url(settings), settings)
        return cls(engine, settings.DEFAULT_DATABASE)

    async def close(self) -> None:
        """Dispose of the underlying connection pool."""
        await self.engine.dispose()

    def _session(self):
        return session_scope(self.session_maker)

    # ------------------------------------------------------------------
    # Table registry
    # ------------------------------------------------------------------

    async def register_table(
        self,
        name: str,
        database: Optional[str] = None,
        table: Optional[str] = None,
        title: Optional[str] = None
    ) -> TableConfig:
        """Register a logical table (no-op if the name is already registered)."""
        with wrap_database_errors("register_table", name):
            async with self._session() as session:
                return await TableConfigRepository(session, self.dialect).register(name, database, table, title)

    async def create_table(self, name: str, database: Optional[str] = None) -> TableConfig:
        """
        Create a physical table with the convention columns and register it.

        Raises:
            DuplicateError: If the physical table already exists
        """
        database = database or self.dialect.default_database
        if await self.schema.table_exists(database, name):
            raise DuplicateError(f"Table '{sanitize_identifier(name)}' already exists")

        async with self._session() as session:
            config = await TableConfigRepository(session, self.dialect).register(name, database)

        await self.schema.create_table(config.database, config.table)
        return config

    async def resolve_table(self, name: str) -> TableConfig:
        """
        Resolve a logical table to its registry entry.

        Raises:
            TableNotFoundError: If the name is not registered
            InvalidConfigurationError: If the entry has no physical binding
        """
        async with self._session() as session:
            return await TableConfigRepository(session, self.dialect).resolve(name)

    async def list_tables(self) -> List[TableConfig]:
        """All registry entries ordered for navigation."""
        async with self._session() as session:
            return await TableConfigRepository(session, self.dialect).list_with_details()

    async def list_table_names(self) -> List[str]:
        async with self._session() as session:
            return await TableConfigRepository(session, self.dialect).list_names()

    async def update_table(self, name: str, **attributes: Any) -> TableConfig:
        """Change title, icon, ordinal or create-button text of a registry entry."""
        with wrap_database_errors("update_table", name):
            async with self._session() as session:
                return await TableConfigRepository(session, self.dialect).update(name, **attributes)

    async def list_database_tables(self, database: Optional[str] = None) -> List[DatabaseTable]:
        """Physical tables of a database, flagged when a registry entry points at them."""
        database = database or self.dialect.default_database
        physical = await self.schema.list_tables(database)

        async with self._session() as session:
            configs = await TableConfigRepository(session, self.dialect).list_with_details()
        by_table = {c.table: c.name for c in configs if c.database == database}

        return [
            DatabaseTable(
                table_name=name,
                has_configuration=name in by_table,
                configuration_name=by_table.get(name),
            )
            for name in physical
        ]

    async def get_table_structure(self, name: str) -> TableStructure:
        """
        Columns, foreign keys, create-button text and view type of a table.

        Foreign key endpoints are reported by logical name where the
        physical table is registered.
        """
        async with self._session() as session:
            registry = TableConfigRepository(session, self.dialect)
            config = await registry.resolve(name)
            columns = await UniversalRepository(session, self.dialect).get_columns(
                config.database, config.table
            )
            views = await TableViewRepository(session).list(config.name)

        foreign_keys = await self.foreign_keys.list(config.database, config.table)
        if foreign_keys:
            async with self._session() as session:
                registry = TableConfigRepository(session, self.dialect)
                foreign_keys = [await self._logical_foreign_key(registry, fk) for fk in foreign_keys]

        default_view = next((v for v in views if v.is_default), views[0] if views else None)
        return TableStructure(
            name=config.name,
            fields=columns,
            create_button_text=config.create_button_text or DEFAULT_CREATE_BUTTON_TEXT,
            foreign_keys=foreign_keys,
            view_type=default_view.view_type if default_view else DEFAULT_VIEW_TYPE,
        )

    @staticmethod
    async def _logical_foreign_key(registry: TableConfigRepository, fk: ForeignKey) -> ForeignKey:
        source = await registry.find_by_physical(fk.table_schema, fk.table_name)
        target = await registry.find_by_physical(fk.referenced_schema, fk.referenced_table)
        return replace(
            fk,
            table_name=source.name if source else fk.table_name,
            referenced_table=target.name if target else fk.referenced_table,
        )

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    async def list_items(
        self,
        name: str,
        where: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None
    ) -> List[Item]:
        """List rows of a logical table, newest first, with optional filters."""
        with wrap_database_errors("list_items", name):
            async with self._session() as session:
                config = await TableConfigRepository(session, self.dialect).resolve(name)
                return await UniversalRepository(session, self.dialect).list(
                    config.database, config.table, where, limit
                )

    async def count_items(self, name: str, where: Optional[Dict[str, Any]] = None) -> int:
        with wrap_database_errors("count_items", name):
            async with self._session() as session:
                config = await TableConfigRepository(session, self.dialect).resolve(name)
                return await UniversalRepository(session, self.dialect).count(config.database, config.table, where)

    async def create_item(self, name: str, fields: Dict[str, Any]) -> Item:
        """Insert a row and return it as stored."""
        with wrap_database_errors("create_item", name):
            async with self._session() as session:
                config = await TableConfigRepository(session, self.dialect).resolve(name)
                return await UniversalRepository(session, self.dialect).create(config.database, config.table, fields)

    async def get_item(self, name: str, item_id: str) -> Item:
        with wrap_database_errors("get_item", name):
            async with self._session() as session:
                config = await TableConfigRepository(session, self.dialect).resolve(name)
                return await UniversalRepository(session, self.dialect).get(config.database, config.table, item_id)

    async def get_last_item(self, name: str) -> Item:
        with wrap_database_errors("get_last_item", name):
            async with self._session() as session:
                config = await TableConfigRepository(session, self.dialect).resolve(name)
                return await UniversalRepository(session, self.dialect).get_last(config.database, config.table)

    async def edit_item(self, name: str, item_id: str, fields: Dict[str, Any]) -> Item:
        """Update the supplied fields of a row and return it re-read."""
        with wrap_database_errors("edit_item", name):
            async with self._session() as session:
                config = await TableConfigRepository(session, self.dialect).resolve(name)
                return await UniversalRepository(session, self.dialect).edit(
                    config.database, config.table, item_id, fields
                )

    async def delete_item(self, name: str, item_id: str) -> bool:
        """Delete a row; False if no row had the id."""
        with wrap_database_errors("delete_item", name):
            async with self._session() as session:
                config = await TableConfigRepository(session, self.dialect).resolve(name)
                return await UniversalRepository(session, self.dialect).delete(config.database, config.table, item_id)

    # ------------------------------------------------------------------
    # Columns
    # ------------------------------------------------------------------

    async def list_columns(self, name: str) -> List[FieldSpec]:
        config = await self.resolve_table(name)
        return await self.schema.list_columns(config.database, config.table)

    async def add_column(self, name: str, spec: FieldSpec) -> None:
        config = await self.resolve_table(name)
        await self.schema.add_column(config.database, config.table, spec)

    async def change_column_type(self, name: str, column: str, new_type: str) -> None:
        config = await self.resolve_table(name)
        await self.schema.change_column_type(config.database, config.table, column, new_type)

    async def drop_column(self, name: str, column: str) -> None:
        config = await self.resolve_table(name)
        await self.schema.drop_column(config.database, config.table, column)

    async def rename_column(self, name: str, old_name: str, new_name: str) -> None:
        config = await self.resolve_table(name)
        await self.schema.rename_column(config.database, config.table, old_name, new_name)

    # ------------------------------------------------------------------
    # Foreign keys
    # ------------------------------------------------------------------

    async def list_foreign_keys(self, name: str) -> List[ForeignKey]:
        """Outgoing and incoming foreign keys of a logical table."""
        config = await self.resolve_table(name)
        return await self.foreign_keys.list(config.database, config.table)

    async def create_foreign_key(
        self,
        name: str,
        column: str,
        referenced_name: str,
        referenced_column: str,
        on_delete: Optional[str] = None,
        on_update: Optional[str] = None
    ) -> ForeignKey:
        """
        Reference ``referenced_name.referenced_column`` from ``name.column``.

        The referenced table may live in another database of the same server.
        """
        self.dialect.ensure_foreign_keys("create_foreign_key")
        config = await self.resolve_table(name)
        referenced = await self.resolve_table(referenced_name)
        return await self.foreign_keys.create(
            config.database, config.table, column,
            referenced.table, referenced_column, on_delete, on_update, referenced.database
        )

    async def delete_foreign_key(self, constraint_name: str, database: Optional[str] = None) -> None:
        await self.foreign_keys.delete(database, constraint_name)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    async def list_views(self, name: str) -> List[TableView]:
        async with self._session() as session:
            config = await TableConfigRepository(session, self.dialect).resolve(name)
            return await TableViewRepository(session).list(config.name)

    async def get_view(self, view_id: int) -> TableView:
        async with self._session() as session:
            return await TableViewRepository(session).get(view_id)

    async def create_view(
        self,
        name: str,
        view_name: str,
        columns: Sequence[TableViewColumn],
        view_type: Optional[str] = None,
        is_default: bool = False
    ) -> TableView:
        """Save a view and its visible columns in one transaction."""
        with wrap_database_errors("create_view", name):
            async with self._session() as session:
                config = await TableConfigRepository(session, self.dialect).resolve(name)
                return await TableViewRepository(session).create(
                    config.name, view_name, columns, view_type, is_default
                )

    async def update_view(
        self,
        view_id: int,
        name: str,
        view_name: str,
        columns: Sequence[TableViewColumn],
        view_type: Optional[str] = None,
        is_default: Optional[bool] = None
    ) -> TableView:
        """Rename a view and replace its columns in one transaction."""
        with wrap_database_errors("update_view", name):
            async with self._session() as session:
                config = await TableConfigRepository(session, self.dialect).resolve(name)
                return await TableViewRepository(session).update(
                    view_id, config.name, view_name, columns, view_type, is_default
                )

    async def delete_view(self, view_id: int) -> None:
        """Delete a view and its columns in one transaction."""
        with wrap_database_errors("delete_view", None):
            async with self._session() as session:
                await TableViewRepository(session).delete(view_id)
