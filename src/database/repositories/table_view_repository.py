"""
Table view repository.

A view's column rows are always replaced as a whole: the old rows are
deleted and the visible columns inserted within the caller's transaction,
so a failed insert rolls the view back to its previous column set.
"""

from typing import List, Optional, Sequence

from sqlalchemy import delete, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from shared.database.exceptions import InvalidArgumentError, ViewNotFoundError
from shared.database.identifiers import sanitize_identifier
from shared.database.types import DEFAULT_VIEW_TYPE, TableView, TableViewColumn
from src.database.models import TableView as TableViewModel
from src.database.models import TableViewColumn as TableViewColumnModel
from src.database.repositories.base import BaseRepository
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)

SORT_ORDERS = ("asc", "desc")


class TableViewRepository(BaseRepository[TableViewModel]):
    """Repository for saved table views and their columns."""

    def __init__(self, session: AsyncSession):
        super().__init__(TableViewModel, session)

    async def create(
        self,
        table_name: str,
        view_name: str,
        columns: Sequence[TableViewColumn],
        view_type: Optional[str] = None,
        is_default: bool = False
    ) -> TableView:
        """
        Create a view, or replace the view with the same table and name.

        Args:
            table_name: Logical table name
            view_name: View name (unique per table)
            columns: Column settings; only visible ones are stored
            view_type: Presentation type (defaults to "table")
            is_default: Make this the table's default view

        Returns:
            The stored view
        """
        table_name = sanitize_identifier(table_name)
        view_type = view_type or DEFAULT_VIEW_TYPE

        view = await self.find_one_by(table_name=table_name, view_name=view_name)
        if view is None:
            view = await self.add(TableViewModel(
                table_name=table_name,
                view_name=view_name,
                view_type=view_type,
                is_default=is_default,
            ))
        else:
            await self.session.execute(
                update(TableViewModel)
                .where(TableViewModel.id == view.id)
                .values(view_type=view_type, is_default=is_default)
            )

        if is_default:
            await self._clear_other_defaults(table_name, view.id)
        await self._replace_columns(view.id, columns)

        logger.info(f"Saved view '{view_name}' ({view.id}) for table '{table_name}'")
        return await self.get(view.id)

    async def update(
        self,
        view_id: int,
        table_name: str,
        view_name: str,
        columns: Sequence[TableViewColumn],
        view_type: Optional[str] = None,
        is_default: Optional[bool] = None
    ) -> TableView:
        """
        Rename a view and replace its columns.

        Raises:
            ViewNotFoundError: If no view with the id belongs to the table
        """
        table_name = sanitize_identifier(table_name)
        values = {"view_name": view_name, "view_type": view_type or DEFAULT_VIEW_TYPE}
        if is_default is not None:
            values["is_default"] = is_default

        result = await self.session.execute(
            update(TableViewModel)
            .where(TableViewModel.id == view_id)
            .where(TableViewModel.table_name == table_name)
            .values(**values)
        )
        if result.rowcount == 0:
            raise ViewNotFoundError(view_id)

        if is_default:
            await self._clear_other_defaults(table_name, view_id)
        await self._replace_columns(view_id, columns)

        logger.info(f"Updated view {view_id} for table '{table_name}'")
        return await self.get(view_id)

    async def list(self, table_name: str) -> List[TableView]:
        """Every view of a table, by name, each with its ordered columns."""
        result = await self.session.execute(
            select(TableViewModel)
            .options(selectinload(TableViewModel.columns))
            .where(TableViewModel.table_name == sanitize_identifier(table_name))
            .order_by(TableViewModel.view_name)
        )
        return [self._to_view(model) for model in result.scalars().all()]

    async def get(self, view_id: int) -> TableView:
        """
        Get a single view with its columns.

        Raises:
            ViewNotFoundError: If the view does not exist
        """
        result = await self.session.execute(
            select(TableViewModel)
            .options(selectinload(TableViewModel.columns))
            .where(TableViewModel.id == view_id)
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        if model is None:
            raise ViewNotFoundError(view_id)
        return self._to_view(model)

    async def delete(self, view_id: int) -> None:
        """
        Delete a view and its columns.

        Raises:
            ViewNotFoundError: If the view does not exist
        """
        await self.session.execute(
            delete(TableViewColumnModel).where(TableViewColumnModel.view_id == view_id)
        )
        if not await self.delete_by_id(view_id):
            raise ViewNotFoundError(view_id)
        logger.info(f"Deleted view {view_id}")

    async def _replace_columns(self, view_id: int, columns: Sequence[TableViewColumn]) -> None:
        await self.session.execute(
            delete(TableViewColumnModel).where(TableViewColumnModel.view_id == view_id)
        )

        rows = [
            {
                "view_id": view_id,
                "column_name": sanitize_identifier(col.column_name),
                "is_visible": True,
                "column_order": col.column_order,
                "column_width": col.column_width,
                "sort_order": self._sort_order(col.sort_order),
            }
            for col in columns
            if col.is_visible
        ]
        if rows:
            await self.session.execute(insert(TableViewColumnModel), rows)
        await self.session.flush()

    async def _clear_other_defaults(self, table_name: str, view_id: int) -> None:
        await self.session.execute(
            update(TableViewModel)
            .where(TableViewModel.table_name == table_name)
            .where(TableViewModel.id != view_id)
            .values(is_default=False)
        )

    @staticmethod
    def _sort_order(value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        normalized = value.lower()
        if normalized not in SORT_ORDERS:
            raise InvalidArgumentError(f"Invalid sort order: '{value}'")
        return normalized

    @staticmethod
    def _to_view(model: TableViewModel) -> TableView:
        return TableView(
            id=model.id,
            table_name=model.table_name,
            view_name=model.view_name,
            is_default=bool(model.is_default),
            view_type=model.view_type or DEFAULT_VIEW_TYPE,
            columns=[
                TableViewColumn(
                    column_name=col.column_name,
                    is_visible=bool(col.is_visible),
                    column_order=col.column_order,
                    sort_order=col.sort_order,
                    column_width=col.column_width,
                )
                for col in sorted(model.columns, key=lambda c: c.column_order)
            ],
        )
