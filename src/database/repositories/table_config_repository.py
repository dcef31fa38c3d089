"""
Table registry repository.

Maps logical table names to their physical database/table binding and
display attributes.
"""

from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from shared.database.dialects import TableDialect
from shared.database.exceptions import (
    DuplicateError,
    InvalidArgumentError,
    InvalidConfigurationError,
    TableNotFoundError,
)
from shared.database.identifiers import sanitize_identifier
from shared.database.types import TableConfig
from src.database.models import TableConfiguration
from src.database.repositories.base import BaseRepository
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)

_UPDATABLE = ("title", "icon", "ordinal", "create_button_text")


class TableConfigRepository(BaseRepository[TableConfiguration]):
    """Repository for table registry entries."""

    def __init__(self, session: AsyncSession, dialect: TableDialect):
        super().__init__(TableConfiguration, session)
        self.dialect = dialect

    async def register(
        self,
        name: str,
        database: Optional[str] = None,
        table: Optional[str] = None,
        title: Optional[str] = None
    ) -> TableConfig:
        """
        Register a logical table; does nothing if the name already exists.

        Args:
            name: Logical table name
            database: Physical database (dialect default if omitted)
            table: Physical table (the sanitized name if omitted)
            title: Display title (the name if omitted)

        Returns:
            The stored registry entry (the existing one on conflict)
        """
        name = sanitize_identifier(name)
        values = {
            "name": name,
            "title": title or name,
            "ordinal": 0,
            "db": sanitize_identifier(database or self.dialect.default_database),
            "table": sanitize_identifier(table or name),
        }
        stmt = self.dialect.insert_ignore(TableConfiguration.__table__, values, "name")
        await self.session.execute(stmt)
        await self.session.flush()
        logger.info(f"Registered table configuration: {name}")

        return self._to_config(await self._get_model(name))

    async def create(self, name: str, database: Optional[str] = None, table: Optional[str] = None) -> TableConfig:
        """
        Create a registry entry, failing if the name is taken.

        Raises:
            DuplicateError: If a configuration with the name exists
        """
        name = sanitize_identifier(name)
        if await self.find_one_by(name=name) is not None:
            raise DuplicateError(f"Table configuration '{name}' already exists")

        instance = await self.add(TableConfiguration(
            name=name,
            title=name,
            ordinal=0,
            database=sanitize_identifier(database or self.dialect.default_database),
            physical_table=sanitize_identifier(table or name),
        ))
        logger.info(f"Created table configuration: {name}")
        return self._to_config(instance)

    async def resolve(self, name: str) -> TableConfig:
        """
        Look up a logical table by sanitized name.

        Raises:
            TableNotFoundError: If no configuration has the name
            InvalidConfigurationError: If the physical database or table is missing
        """
        config = self._to_config(await self._get_model(name))
        if not config.database:
            raise InvalidConfigurationError(config.name, "database")
        if not config.table:
            raise InvalidConfigurationError(config.name, "table")
        return config

    async def list_with_details(self) -> List[TableConfig]:
        """All registry entries ordered by ordinal, then name."""
        models = await self.get_all(TableConfiguration.ordinal, TableConfiguration.name)
        return [self._to_config(model) for model in models]

    async def list_names(self) -> List[str]:
        """All logical table names, alphabetically."""
        result = await self.session.execute(
            select(TableConfiguration.name).order_by(TableConfiguration.name)
        )
        return list(result.scalars().all())

    async def find_by_physical(self, database: Optional[str], table: str) -> Optional[TableConfig]:
        """Reverse lookup: the first registry entry bound to a physical table."""
        result = await self.session.execute(
            select(TableConfiguration)
            .where(TableConfiguration.database == sanitize_identifier(database or self.dialect.default_database))
            .where(TableConfiguration.physical_table == sanitize_identifier(table))
            .order_by(TableConfiguration.id)
            .limit(1)
        )
        model = result.scalar_one_or_none()
        return self._to_config(model) if model else None

    async def update(self, name: str, **attributes) -> TableConfig:
        """
        Change display attributes of a registry entry.

        Args:
            name: Logical table name
            **attributes: Any of title, icon, ordinal, create_button_text

        Raises:
            InvalidArgumentError: For attributes that cannot be changed
            TableNotFoundError: If no configuration has the name
        """
        unknown = set(attributes) - set(_UPDATABLE)
        if unknown:
            raise InvalidArgumentError(f"Cannot update attributes: {', '.join(sorted(unknown))}")

        name = sanitize_identifier(name)
        values = {k: v for k, v in attributes.items() if v is not None}
        if values:
            result = await self.session.execute(
                update(TableConfiguration)
                .where(TableConfiguration.name == name)
                .values(**values)
            )
            await self.session.flush()
            if result.rowcount == 0:
                raise TableNotFoundError(name)

        return self._to_config(await self._get_model(name))

    async def _get_model(self, name: str) -> TableConfiguration:
        model = await self.find_one_by(name=sanitize_identifier(name))
        if model is None:
            raise TableNotFoundError(sanitize_identifier(name))
        return model

    @staticmethod
    def _to_config(model: TableConfiguration) -> TableConfig:
        return TableConfig(
            id=model.id,
            name=model.name,
            database=model.database,
            table=model.physical_table,
            title=model.title or model.name,
            ordinal=model.ordinal or 0,
            icon=model.icon,
            create_button_text=model.create_button_text,
        )
