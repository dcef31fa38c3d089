"""
Tables module - dynamic table engine.

Operators define tables backed by a real database and work with their
rows, columns, foreign keys and saved views without per-table code.

Usage:
    from modules.tables import TableEngine

    engine = TableEngine.from_settings(get_settings())
    await engine.register_table("books")
    items = await engine.list_items("books")
"""

from modules.tables.table_engine import TableEngine

__all__ = [
    'TableEngine',
]
