"""
SQLAlchemy model for the table registry.

Each row binds a logical table name to the physical database and table
that hold its rows, plus display attributes.
"""

from sqlalchemy import Column, Integer, String

from src.database.connection import Base


class TableConfiguration(Base):
    """Registry entry for a logical table."""

    __tablename__ = "table_configurations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), unique=True, nullable=False)

    # Display attributes
    title = Column(String(255))
    ordinal = Column(Integer, default=0, nullable=False)
    icon = Column(String(255))
    create_button_text = Column(String(255))

    # Physical binding (schema on PostgreSQL, attached database on SQLite)
    database = Column("db", String(255))
    physical_table = Column("table", String(255))

    def __repr__(self):
        return f"<TableConfiguration(name={self.name}, db={self.database}, table={self.physical_table})>"
