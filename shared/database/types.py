"""
Value types shared by the table engine components.
"""

from dataclasses import dataclass, field, asdict
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

# Convention columns
ID_COLUMN = "id"
CREATED_COLUMN = "created_at"
UPDATED_COLUMN = "updated_at"

SYSTEM_COLUMNS = (ID_COLUMN, CREATED_COLUMN, UPDATED_COLUMN)
PROTECTED_COLUMNS = (ID_COLUMN, CREATED_COLUMN)

DEFAULT_CREATE_BUTTON_TEXT = "Insert Row"
DEFAULT_VIEW_TYPE = "table"


def to_json_value(value: Any) -> Any:
    """Convert driver values (datetime, Decimal) to JSON-friendly equivalents."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value


@dataclass
class FieldSpec:
    """
    A column as reported by introspection.

    ``type`` is the native type string for introspected columns, or a logical
    type (``int64``, ``string``, ``datetime``) when passed to ``add_column``.
    """
    name: str
    type: str
    required: bool = False
    default_to_current_timestamp: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return asdict(self)


@dataclass
class Item:
    """One row: identifier, convention timestamps and the remaining columns."""
    id: str
    created_at: Any = None
    updated_at: Any = None
    fields: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "id": self.id,
            "created_at": to_json_value(self.created_at),
            "updated_at": to_json_value(self.updated_at),
            "fields": {k: to_json_value(v) for k, v in self.fields.items()},
        }


@dataclass
class ForeignKey:
    """A referential constraint between two physical columns."""
    constraint_name: str
    table_schema: str
    table_name: str
    column_name: str
    referenced_schema: str
    referenced_table: str
    referenced_column: str
    on_delete: str = "NO ACTION"
    on_update: str = "NO ACTION"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return asdict(self)


@dataclass
class TableConfig:
    """Registry entry binding a logical table name to its physical location."""
    name: str
    database: Optional[str]
    table: Optional[str]
    title: str
    ordinal: int = 0
    icon: Optional[str] = None
    create_button_text: Optional[str] = None
    id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return asdict(self)


@dataclass
class DatabaseTable:
    """A physical table and whether a registry entry points at it."""
    table_name: str
    has_configuration: bool
    configuration_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return asdict(self)


@dataclass
class TableViewColumn:
    """One visible column of a view."""
    column_name: str
    is_visible: bool = True
    column_order: int = 0
    sort_order: Optional[str] = None
    column_width: Optional[int] = None


@dataclass
class TableView:
    """A named column preset for a table."""
    id: int
    table_name: str
    view_name: str
    is_default: bool = False
    view_type: str = DEFAULT_VIEW_TYPE
    columns: List[TableViewColumn] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return asdict(self)


@dataclass
class TableStructure:
    """Everything a caller needs to render and edit a table."""
    name: str
    fields: List[FieldSpec]
    create_button_text: str = DEFAULT_CREATE_BUTTON_TEXT
    foreign_keys: List[ForeignKey] = field(default_factory=list)
    view_type: str = DEFAULT_VIEW_TYPE

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return asdict(self)
