"""
Database ORM models package.
"""

from src.database.models.table_configuration import TableConfiguration
from src.database.models.table_view import TableView, TableViewColumn

__all__ = ["TableConfiguration", "TableView", "TableViewColumn"]
