"""
Items API endpoints.

Generic row CRUD over a registered table.
"""

from fastapi import APIRouter, Depends, Query, status
from typing import Any, Dict, List, Optional

from modules.tables import TableEngine
from shared.database.exceptions import InvalidArgumentError
from src.api.v1.dependencies.engine import get_table_engine
from src.api.v1.models.requests import ItemFieldsRequest
from src.api.v1.models.responses import DeleteResponse, ItemListResponse, ItemResponse

router = APIRouter(prefix="/tables/{name}/items", tags=["items"])


def _parse_filters(where: List[str], contains: List[str]) -> Dict[str, Any]:
    """Turn ``column:value`` query parameters into repository filters."""
    filters: Dict[str, Any] = {}
    for raw, is_contains in [(w, False) for w in where] + [(c, True) for c in contains]:
        column, sep, value = raw.partition(":")
        if not sep or not column:
            raise InvalidArgumentError(f"Filter must look like column:value, got '{raw}'")
        filters[column] = {"contains": value} if is_contains else value
    return filters


@router.get("", response_model=ItemListResponse)
async def list_items(
    name: str,
    where: List[str] = Query([], description="Equality filters, column:value"),
    contains: List[str] = Query([], description="Substring filters, column:value"),
    limit: Optional[int] = Query(None, ge=1),
    engine: TableEngine = Depends(get_table_engine)
):
    """
    List rows, newest first.

    Rows are ordered by created_at when the table has it, otherwise by id.
    """
    items = await engine.list_items(name, _parse_filters(where, contains), limit)
    return ItemListResponse(
        items=[ItemResponse(**item.to_dict()) for item in items],
        count=len(items),
    )


@router.post("", response_model=ItemResponse, status_code=status.HTTP_201_CREATED)
async def create_item(
    name: str,
    request: ItemFieldsRequest,
    engine: TableEngine = Depends(get_table_engine)
):
    item = await engine.create_item(name, request.fields)
    return ItemResponse(**item.to_dict())


@router.get("/last", response_model=ItemResponse)
async def get_last_item(name: str, engine: TableEngine = Depends(get_table_engine)):
    """Most recently inserted row."""
    return ItemResponse(**(await engine.get_last_item(name)).to_dict())


@router.get("/{item_id}", response_model=ItemResponse)
async def get_item(name: str, item_id: str, engine: TableEngine = Depends(get_table_engine)):
    return ItemResponse(**(await engine.get_item(name, item_id)).to_dict())


@router.patch("/{item_id}", response_model=ItemResponse)
async def edit_item(
    name: str,
    item_id: str,
    request: ItemFieldsRequest,
    engine: TableEngine = Depends(get_table_engine)
):
    """Update only the supplied fields."""
    item = await engine.edit_item(name, item_id, request.fields)
    return ItemResponse(**item.to_dict())


@router.delete("/{item_id}", response_model=DeleteResponse)
async def delete_item(name: str, item_id: str, engine: TableEngine = Depends(get_table_engine)):
    """Delete a row. Deleting an unknown id reports deleted=false."""
    return DeleteResponse(deleted=await engine.delete_item(name, item_id))
