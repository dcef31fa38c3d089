"""
Shared database utilities.

Dynamic access to caller-named physical tables: identifier sanitizing,
column introspection and mutation, generic row CRUD and foreign keys.
"""

from shared.database.foreign_key_manager import ForeignKeyManager
from shared.database.identifiers import sanitize_identifier
from shared.database.schema_manager import SchemaManager
from shared.database.universal_repository import UniversalRepository

__all__ = [
    "ForeignKeyManager",
    "SchemaManager",
    "UniversalRepository",
    "sanitize_identifier",
]
