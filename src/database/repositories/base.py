"""
Base repository pattern for metadata tables.
"""

from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from shared.utils.logger import setup_logger

logger = setup_logger(__name__)

ModelType = TypeVar("ModelType")


class BaseRepository(Generic[ModelType]):
    """
    Base repository providing CRUD operations over an ORM model.

    Repositories never commit; the caller's session scope decides.
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session

    async def add(self, instance: ModelType) -> ModelType:
        """
        Persist a new instance and load its generated columns.

        Args:
            instance: Unsaved model instance

        Returns:
            The same instance, refreshed
        """
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        logger.debug(f"Created {self.model.__name__}: {instance.id}")
        return instance

    async def find_one_by(self, **filters: Any) -> Optional[ModelType]:
        """Get the record whose columns equal the given values, or None."""
        result = await self.session.execute(
            select(self.model).filter_by(**filters)
        )
        return result.scalar_one_or_none()

    async def get_all(self, *order_by: Any) -> List[ModelType]:
        """
        Get all records.

        Args:
            *order_by: Columns to order by

        Returns:
            List of model instances
        """
        query = select(self.model)
        if order_by:
            query = query.order_by(*order_by)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def delete_by_id(self, id: int) -> bool:
        """
        Delete a record.

        Args:
            id: Record ID

        Returns:
            True if deleted, False if not found
        """
        result = await self.session.execute(
            delete(self.model).where(self.model.id == id)
        )
        await self.session.flush()

        deleted = result.rowcount > 0
        if deleted:
            logger.debug(f"Deleted {self.model.__name__}: {id}")

        return deleted
