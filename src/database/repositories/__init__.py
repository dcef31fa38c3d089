"""
Database repositories for table metadata.
"""

from .base import BaseRepository
from .table_config_repository import TableConfigRepository
from .table_view_repository import TableViewRepository

__all__ = [
    "BaseRepository",
    "TableConfigRepository",
    "TableViewRepository",
]
