"""
API response models.

Pydantic models for API responses.
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime
from enum import Enum


class ResponseStatus(str, Enum):
    """Response status values."""
    SUCCESS = "success"
    ERROR = "error"


class ErrorResponse(BaseModel):
    """
    Standard error response.
    """

    status: ResponseStatus = Field(default=ResponseStatus.ERROR)
    error: str = Field(..., description="Error code")
    message: str = Field(..., description="Human-readable error message")
    detail: Optional[str] = Field(default=None, description="Detailed error information")
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    model_config = {
        "json_schema_extra": {
            "example": {
                "status": "error",
                "error": "unsupported_on_dialect",
                "message": "change_column_type is not supported on sqlite: recreate the table to change a column type",
                "detail": None,
                "timestamp": "2024-01-20T10:30:00Z"
            }
        }
    }


class TableConfigResponse(BaseModel):
    id: Optional[int] = None
    name: str
    database: Optional[str] = None
    table: Optional[str] = None
    title: str
    ordinal: int = 0
    icon: Optional[str] = None
    create_button_text: Optional[str] = None


class DatabaseTableResponse(BaseModel):
    table_name: str
    has_configuration: bool
    configuration_name: Optional[str] = None


class FieldSpecResponse(BaseModel):
    name: str
    type: str
    required: bool = False


class ForeignKeyResponse(BaseModel):
    constraint_name: str
    table_schema: str
    table_name: str
    column_name: str
    referenced_schema: str
    referenced_table: str
    referenced_column: str
    on_delete: str
    on_update: str


class TableStructureResponse(BaseModel):
    name: str
    fields: List[FieldSpecResponse]
    create_button_text: str
    foreign_keys: List[ForeignKeyResponse] = Field(default_factory=list)
    view_type: str


class ItemResponse(BaseModel):
    id: str
    created_at: Optional[Any] = None
    updated_at: Optional[Any] = None
    fields: Dict[str, Any] = Field(default_factory=dict)


class ItemListResponse(BaseModel):
    items: List[ItemResponse]
    count: int


class DeleteResponse(BaseModel):
    deleted: bool


class ViewColumnResponse(BaseModel):
    column_name: str
    is_visible: bool
    column_order: int
    sort_order: Optional[str] = None
    column_width: Optional[int] = None


class TableViewResponse(BaseModel):
    id: int
    table_name: str
    view_name: str
    is_default: bool
    view_type: str
    columns: List[ViewColumnResponse] = Field(default_factory=list)
