"""
Table view API endpoints.
"""

from fastapi import APIRouter, Depends, status
from typing import List

from modules.tables import TableEngine
from src.api.v1.dependencies.engine import get_table_engine
from src.api.v1.models.requests import SaveViewRequest
from src.api.v1.models.responses import DeleteResponse, TableViewResponse

router = APIRouter(tags=["views"])


@router.get("/tables/{name}/views", response_model=List[TableViewResponse])
async def list_views(name: str, engine: TableEngine = Depends(get_table_engine)):
    """Every view of the table with its ordered visible columns."""
    return [TableViewResponse(**view.to_dict()) for view in await engine.list_views(name)]


@router.post("/tables/{name}/views", response_model=TableViewResponse, status_code=status.HTTP_201_CREATED)
async def create_view(name: str, request: SaveViewRequest, engine: TableEngine = Depends(get_table_engine)):
    """Create a view (replacing a view of the same name). Invisible columns are not stored."""
    view = await engine.create_view(
        name,
        request.view_name,
        request.view_columns(),
        request.view_type,
        bool(request.is_default),
    )
    return TableViewResponse(**view.to_dict())


@router.put("/tables/{name}/views/{view_id}", response_model=TableViewResponse)
async def update_view(
    name: str,
    view_id: int,
    request: SaveViewRequest,
    engine: TableEngine = Depends(get_table_engine)
):
    view = await engine.update_view(
        view_id,
        name,
        request.view_name,
        request.view_columns(),
        request.view_type,
        request.is_default,
    )
    return TableViewResponse(**view.to_dict())


@router.get("/views/{view_id}", response_model=TableViewResponse)
async def get_view(view_id: int, engine: TableEngine = Depends(get_table_engine)):
    return TableViewResponse(**(await engine.get_view(view_id)).to_dict())


@router.delete("/views/{view_id}", response_model=DeleteResponse)
async def delete_view(view_id: int, engine: TableEngine = Depends(get_table_engine)):
    await engine.delete_view(view_id)
    return DeleteResponse(deleted=True)
