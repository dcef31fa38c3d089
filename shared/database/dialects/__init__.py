"""
Database dialects.

All dialects are automatically registered via decorators.
"""

from shared.database.dialects.base import TableDialect, FOREIGN_KEY_ACTIONS
from shared.database.dialects.registry import (
    DIALECTS,
    register_dialect,
    get_dialect,
    dialect_for_engine,
    list_dialects,
    is_registered,
)

# Import all dialects to trigger registration
from shared.database.dialects import postgresql, sqlite

__all__ = [
    'TableDialect',
    'FOREIGN_KEY_ACTIONS',
    'DIALECTS',
    'register_dialect',
    'get_dialect',
    'dialect_for_engine',
    'list_dialects',
    'is_registered',
    'postgresql',
    'sqlite',
]
