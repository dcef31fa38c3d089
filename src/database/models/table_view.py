"""
SQLAlchemy models for saved table views.

A view stores only its visible columns; a view without column rows means
all columns in their natural order.
"""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from src.database.connection import Base


class TableView(Base):
    """Named column preset for a logical table."""

    __tablename__ = "table_views"
    __table_args__ = (
        UniqueConstraint("table_name", "view_name", name="uq_table_views_table_view"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    table_name = Column(String(255), nullable=False, index=True)
    view_name = Column(String(255), nullable=False)
    is_default = Column(Boolean, default=False, nullable=False)
    view_type = Column(String(50), default="table", nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    columns = relationship(
        "TableViewColumn",
        back_populates="view",
        cascade="all, delete-orphan",
        order_by="TableViewColumn.column_order",
    )

    def __repr__(self):
        return f"<TableView(id={self.id}, table={self.table_name}, name={self.view_name})>"


class TableViewColumn(Base):
    """One visible column of a view, with its position and sort direction."""

    __tablename__ = "table_view_columns"
    __table_args__ = (
        UniqueConstraint("view_id", "column_name", name="uq_table_view_columns_view_column"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    view_id = Column(
        Integer,
        ForeignKey("table_views.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    column_name = Column(String(255), nullable=False)
    is_visible = Column(Boolean, default=True, nullable=False)
    column_order = Column(Integer, default=0, nullable=False)
    column_width = Column(Integer)
    sort_order = Column(String(10))  # 'asc', 'desc' or NULL

    view = relationship("TableView", back_populates="columns")
