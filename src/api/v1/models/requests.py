"""
API request models.

Pydantic models for API request bodies.
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any

from shared.database.types import FieldSpec, TableViewColumn


class RegisterTableRequest(BaseModel):
    """Register an existing physical table under a logical name."""
    name: str = Field(..., min_length=1, description="Logical table name")
    database: Optional[str] = Field(None, description="Physical database (schema on PostgreSQL)")
    table: Optional[str] = Field(None, description="Physical table (defaults to the name)")
    title: Optional[str] = Field(None, description="Display title (defaults to the name)")


class CreateTableRequest(BaseModel):
    """Create a physical table with the convention columns and register it."""
    name: str = Field(..., min_length=1, description="Logical and physical table name")
    database: Optional[str] = Field(None, description="Physical database")


class UpdateTableRequest(BaseModel):
    """Display attributes of a registered table."""
    title: Optional[str] = None
    icon: Optional[str] = None
    ordinal: Optional[int] = None
    create_button_text: Optional[str] = None


class ItemFieldsRequest(BaseModel):
    """Column values for a row."""
    fields: Dict[str, Any] = Field(default_factory=dict, description="Column name to value")


class AddColumnRequest(BaseModel):
    """Column to add, with a logical type."""
    name: str = Field(..., min_length=1)
    type: str = Field("string", description="int64, string or datetime; anything else is text")
    required: bool = False
    default_to_current_timestamp: bool = False

    def to_field_spec(self) -> FieldSpec:
        return FieldSpec(
            name=self.name,
            type=self.type,
            required=self.required,
            default_to_current_timestamp=self.default_to_current_timestamp,
        )


class ChangeColumnTypeRequest(BaseModel):
    new_type: str = Field(..., min_length=1, description="Native column type")


class RenameColumnRequest(BaseModel):
    new_name: str = Field(..., min_length=1)


class CreateForeignKeyRequest(BaseModel):
    """Reference another registered table from a column of this one."""
    column: str = Field(..., min_length=1)
    referenced_table: str = Field(..., min_length=1, description="Logical name of the referenced table")
    referenced_column: str = Field("id")
    on_delete: Optional[str] = Field(None, description="CASCADE, SET NULL, SET DEFAULT, RESTRICT or NO ACTION")
    on_update: Optional[str] = Field(None, description="CASCADE, SET NULL, SET DEFAULT, RESTRICT or NO ACTION")


class ViewColumnModel(BaseModel):
    column_name: str
    is_visible: bool = True
    column_order: int = 0
    sort_order: Optional[str] = Field(None, description="asc, desc or null")
    column_width: Optional[int] = None

    def to_view_column(self) -> TableViewColumn:
        return TableViewColumn(
            column_name=self.column_name,
            is_visible=self.is_visible,
            column_order=self.column_order,
            sort_order=self.sort_order,
            column_width=self.column_width,
        )


class SaveViewRequest(BaseModel):
    """Create or update a table view."""
    view_name: str = Field(..., min_length=1)
    view_type: Optional[str] = Field(None, description="Presentation type, 'table' by default")
    is_default: Optional[bool] = None
    columns: List[ViewColumnModel] = Field(default_factory=list)

    def view_columns(self) -> List[TableViewColumn]:
        return [col.to_view_column() for col in self.columns]
