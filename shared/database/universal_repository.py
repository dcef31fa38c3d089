"""
Universal Repository for Dynamic Tables.

Provides row CRUD for any physical table. The column set is introspected
on every call and every caller-supplied field name is checked against it
before a statement is built; values always travel as bound parameters.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import Text, and_, cast, column, delete, desc, func, insert, select, table, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import TableClause

from shared.database.dialects import TableDialect
from shared.database.exceptions import (
    InvalidArgumentError,
    ItemNotFoundError,
    TableNotFoundError,
    UnknownColumnError,
    wrap_database_errors,
)
from shared.database.identifiers import sanitize_identifier
from shared.database.types import (
    CREATED_COLUMN,
    FieldSpec,
    ID_COLUMN,
    Item,
    SYSTEM_COLUMNS,
    UPDATED_COLUMN,
)
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


class UniversalRepository:
    """
    Universal repository for dynamic table operations.

    Rows are returned as ``Item`` objects: a string id, the convention
    timestamps and a mapping of the remaining columns.

    Filters passed to ``list``/``count`` map column names to:
    - a plain value: equality (a string containing ``%`` is a LIKE pattern)
    - ``{"contains": value}``: substring match
    - ``{"eq": value}``: explicit equality
    - ``None``: IS NULL

    Example:
        >>> repo = UniversalRepository(session, dialect)
        >>> item = await repo.create("main", "books", {"title": "Dune"})
        >>> items = await repo.list("main", "books", {"title": {"contains": "un"}})
    """

    def __init__(self, session: AsyncSession, dialect: TableDialect):
        """
        Initialize repository.

        Args:
            session: Async SQLAlchemy session
            dialect: Dialect strategy of the session's engine
        """
        self.session = session
        self.dialect = dialect

    async def get_columns(self, database: Optional[str], table_name: str) -> List[FieldSpec]:
        """
        Introspect the current columns of a table.

        Raises:
            TableNotFoundError: If the table does not exist
        """
        with wrap_database_errors("list_columns", table_name):
            columns = await self.dialect.list_columns(self.session, database, table_name)
        if not columns:
            raise TableNotFoundError(table_name)
        return columns

    async def list(
        self,
        database: Optional[str],
        table_name: str,
        where: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None
    ) -> List[Item]:
        """
        List rows, newest first.

        Rows are ordered by ``created_at`` descending when the table has that
        column, otherwise by ``id`` descending.

        Args:
            database: Physical database
            table_name: Physical table name
            where: Column filters (see class docstring)
            limit: Maximum number of rows

        Returns:
            List of items
        """
        table_name = sanitize_identifier(table_name)
        specs = self._by_name(await self.get_columns(database, table_name))
        tbl = self._table(database, table_name, specs)

        query = select(tbl)
        where_clause = self._build_where_clause(table_name, tbl, specs, where)
        if where_clause is not None:
            query = query.where(where_clause)

        sort_column = CREATED_COLUMN if CREATED_COLUMN in specs else ID_COLUMN
        if sort_column in specs:
            query = query.order_by(desc(tbl.c[sort_column]))
            if sort_column != ID_COLUMN and ID_COLUMN in specs:
                query = query.order_by(desc(tbl.c[ID_COLUMN]))

        if limit:
            query = query.limit(limit)

        logger.info(f"list on '{table_name}' ordered by {sort_column}")
        with wrap_database_errors("list", table_name):
            result = await self.session.execute(query)
            rows = result.mappings().all()

        return [self._row_to_item(row) for row in rows]

    async def count(
        self,
        database: Optional[str],
        table_name: str,
        where: Optional[Dict[str, Any]] = None
    ) -> int:
        """Count rows matching the filters."""
        table_name = sanitize_identifier(table_name)
        specs = self._by_name(await self.get_columns(database, table_name))
        tbl = self._table(database, table_name, specs)

        query = select(func.count()).select_from(tbl)
        where_clause = self._build_where_clause(table_name, tbl, specs, where)
        if where_clause is not None:
            query = query.where(where_clause)

        with wrap_database_errors("count", table_name):
            result = await self.session.execute(query)
            return result.scalar_one()

    async def create(
        self,
        database: Optional[str],
        table_name: str,
        fields: Dict[str, Any]
    ) -> Item:
        """
        Insert a row and return it as stored.

        Only the supplied fields are written; NOT NULL and referential
        constraints are enforced by the database. ``created_at`` and
        ``updated_at`` are set to the current timestamp when the table has
        them and the caller did not supply them.

        Raises:
            UnknownColumnError: If a field is not a column of the table
            IntegrityError: If the database rejects the row
        """
        table_name = sanitize_identifier(table_name)
        specs = self._by_name(await self.get_columns(database, table_name))
        tbl = self._table(database, table_name, specs)

        values = self._prepare_values(table_name, specs, fields)
        for timestamp_column in (CREATED_COLUMN, UPDATED_COLUMN):
            if timestamp_column in specs and timestamp_column not in values:
                values[timestamp_column] = func.current_timestamp()

        logger.info(f"create on '{table_name}' with {len(fields)} field(s)")
        with wrap_database_errors("create", table_name):
            new_id = await self.dialect.insert_returning_id(
                self.session, insert(tbl).values(**values)
            )

        return await self.get(database, table_name, str(new_id))

    async def get(self, database: Optional[str], table_name: str, item_id: str) -> Item:
        """
        Get a row by id.

        Raises:
            ItemNotFoundError: If no row has the id
        """
        table_name = sanitize_identifier(table_name)
        specs = self._by_name(await self.get_columns(database, table_name))
        tbl = self._table(database, table_name, specs)

        id_value = self._id_value(table_name, specs, item_id)
        if id_value is None:
            raise ItemNotFoundError(table_name, str(item_id))

        with wrap_database_errors("get", table_name):
            result = await self.session.execute(select(tbl).where(tbl.c[ID_COLUMN] == id_value))
            row = result.mappings().first()

        if row is None:
            raise ItemNotFoundError(table_name, str(item_id))
        return self._row_to_item(row)

    async def get_last(self, database: Optional[str], table_name: str) -> Item:
        """
        Get the most recently inserted row (highest id).

        Raises:
            ItemNotFoundError: If the table is empty
        """
        table_name = sanitize_identifier(table_name)
        specs = self._by_name(await self.get_columns(database, table_name))
        if ID_COLUMN not in specs:
            raise UnknownColumnError(table_name, ID_COLUMN)
        tbl = self._table(database, table_name, specs)

        with wrap_database_errors("get_last", table_name):
            result = await self.session.execute(
                select(tbl).order_by(desc(tbl.c[ID_COLUMN])).limit(1)
            )
            row = result.mappings().first()

        if row is None:
            raise ItemNotFoundError(table_name, "last")
        return self._row_to_item(row)

    async def edit(
        self,
        database: Optional[str],
        table_name: str,
        item_id: str,
        fields: Dict[str, Any]
    ) -> Item:
        """
        Update the supplied fields of a row and return it re-read.

        Columns not present in ``fields`` are left untouched.

        Raises:
            InvalidArgumentError: If ``fields`` is empty or contains ``id``
            ItemNotFoundError: If no row has the id
        """
        table_name = sanitize_identifier(table_name)
        if not fields:
            raise InvalidArgumentError("no fields to update")

        specs = self._by_name(await self.get_columns(database, table_name))
        tbl = self._table(database, table_name, specs)

        values = self._prepare_values(table_name, specs, fields)
        if ID_COLUMN in values:
            raise InvalidArgumentError("the id column cannot be updated")
        if UPDATED_COLUMN in specs and UPDATED_COLUMN not in values:
            values[UPDATED_COLUMN] = func.current_timestamp()

        id_value = self._id_value(table_name, specs, item_id)
        if id_value is None:
            raise ItemNotFoundError(table_name, str(item_id))

        logger.info(f"edit on '{table_name}' id={item_id} with {len(fields)} field(s)")
        with wrap_database_errors("edit", table_name):
            result = await self.session.execute(
                update(tbl).where(tbl.c[ID_COLUMN] == id_value).values(**values)
            )

        if result.rowcount == 0:
            raise ItemNotFoundError(table_name, str(item_id))
        return await self.get(database, table_name, item_id)

    async def delete(self, database: Optional[str], table_name: str, item_id: str) -> bool:
        """
        Delete a row by id.

        Returns:
            True if a row was removed, False if none had the id
        """
        table_name = sanitize_identifier(table_name)
        specs = self._by_name(await self.get_columns(database, table_name))
        tbl = self._table(database, table_name, specs)

        id_value = self._id_value(table_name, specs, item_id)
        if id_value is None:
            return False

        logger.info(f"delete on '{table_name}' id={item_id}")
        with wrap_database_errors("delete", table_name):
            result = await self.session.execute(delete(tbl).where(tbl.c[ID_COLUMN] == id_value))

        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Statement building
    # ------------------------------------------------------------------

    @staticmethod
    def _by_name(columns: List[FieldSpec]) -> Dict[str, FieldSpec]:
        return {spec.name: spec for spec in columns}

    def _table(
        self,
        database: Optional[str],
        table_name: str,
        specs: Dict[str, FieldSpec]
    ) -> TableClause:
        schema = sanitize_identifier(database or self.dialect.default_database)
        return table(table_name, *(column(name) for name in specs), schema=schema)

    def _resolve_column(self, table_name: str, specs: Dict[str, FieldSpec], name: str) -> FieldSpec:
        spec = specs.get(sanitize_identifier(name))
        if spec is None:
            raise UnknownColumnError(table_name, name)
        return spec

    def _prepare_values(
        self,
        table_name: str,
        specs: Dict[str, FieldSpec],
        fields: Dict[str, Any]
    ) -> Dict[str, Any]:
        values = {}
        for name, value in fields.items():
            spec = self._resolve_column(table_name, specs, name)
            values[spec.name] = self.dialect.coerce_value(spec, value)
        return values

    def _id_value(self, table_name: str, specs: Dict[str, FieldSpec], item_id: Any) -> Any:
        """Bind value for the id column, or None if the id cannot exist."""
        if ID_COLUMN not in specs:
            raise UnknownColumnError(table_name, ID_COLUMN)
        try:
            return self.dialect.coerce_value(specs[ID_COLUMN], str(item_id))
        except InvalidArgumentError:
            return None

    def _build_where_clause(
        self,
        table_name: str,
        tbl: TableClause,
        specs: Dict[str, FieldSpec],
        where: Optional[Dict[str, Any]]
    ):
        """Build a conjunction of equality / contains predicates."""
        if not where:
            return None

        conditions = []
        for name, value in where.items():
            spec = self._resolve_column(table_name, specs, name)
            col = tbl.c[spec.name]

            if isinstance(value, dict):
                for op, op_value in value.items():
                    if op == "contains":
                        conditions.append(
                            cast(col, Text).contains(str(op_value), autoescape=True)
                        )
                    elif op == "eq":
                        conditions.append(col == self.dialect.coerce_value(spec, op_value))
                    else:
                        raise InvalidArgumentError(f"Unsupported filter operator: '{op}'")
            elif value is None:
                conditions.append(col.is_(None))
            elif isinstance(value, str) and "%" in value:
                conditions.append(cast(col, Text).like(value))
            else:
                conditions.append(col == self.dialect.coerce_value(spec, value))

        return and_(*conditions)

    # ------------------------------------------------------------------
    # Row conversion
    # ------------------------------------------------------------------

    @staticmethod
    def _normalize(value: Any) -> Any:
        if isinstance(value, memoryview):
            value = value.tobytes()
        if isinstance(value, (bytes, bytearray)):
            return bytes(value).decode("utf-8", errors="replace")
        return value

    def _row_to_item(self, row) -> Item:
        """Convert a result mapping to an Item."""
        return Item(
            id=str(row[ID_COLUMN]),
            created_at=self._normalize(row.get(CREATED_COLUMN)),
            updated_at=self._normalize(row.get(UPDATED_COLUMN)),
            fields={
                key: self._normalize(value)
                for key, value in row.items()
                if key not in SYSTEM_COLUMNS
            },
        )
