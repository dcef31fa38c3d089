"""
Dialect registry.

Provides decorator-based registration for database dialects. The active
dialect is looked up once from the engine's SQLAlchemy dialect name.
"""

from typing import Dict, Type, Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from shared.database.dialects.base import TableDialect
from shared.database.exceptions import UnsupportedOperationError
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)

# Global registry of all dialects
DIALECTS: Dict[str, Type[TableDialect]] = {}


def register_dialect(name: str):
    """
    Decorator to register a dialect in the global registry.

    Usage:
        @register_dialect("postgresql")
        class PostgreSQLDialect(TableDialect):
            ...

    Args:
        name: SQLAlchemy dialect name the class handles
    """
    def decorator(cls: Type[TableDialect]):
        if name in DIALECTS:
            logger.warning(
                f"Dialect '{name}' is already registered. "
                f"Overwriting with {cls.__name__}"
            )

        cls.name = name
        DIALECTS[name] = cls
        logger.debug(f"Registered dialect: {name} -> {cls.__name__}")
        return cls

    return decorator


def get_dialect(name: str, default_database: Optional[str] = None) -> TableDialect:
    """
    Instantiate a registered dialect by name.

    Args:
        name: Dialect name
        default_database: Physical database used when a table has none

    Raises:
        UnsupportedOperationError: If no dialect is registered under the name
    """
    dialect_cls = DIALECTS.get(name)
    if dialect_cls is None:
        raise UnsupportedOperationError(
            name, "connect", f"no dialect registered (available: {', '.join(sorted(DIALECTS))})"
        )
    return dialect_cls(default_database)


def dialect_for_engine(engine: AsyncEngine, default_database: Optional[str] = None) -> TableDialect:
    """Pick the dialect matching an engine's SQLAlchemy dialect."""
    return get_dialect(engine.dialect.name, default_database)


def list_dialects() -> Dict[str, str]:
    """
    List all registered dialects.

    Returns:
        Dictionary mapping dialect names to class names
    """
    return {name: cls.__name__ for name, cls in DIALECTS.items()}


def is_registered(name: str) -> bool:
    """Check if a dialect is registered."""
    return name in DIALECTS
