"""
Foreign key API endpoints.
"""

from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from modules.tables import TableEngine
from src.api.v1.dependencies.engine import get_table_engine
from src.api.v1.models.requests import CreateForeignKeyRequest
from src.api.v1.models.responses import DeleteResponse, ForeignKeyResponse

router = APIRouter(tags=["foreign-keys"])


@router.get("/tables/{name}/foreign-keys", response_model=List[ForeignKeyResponse])
async def list_foreign_keys(name: str, engine: TableEngine = Depends(get_table_engine)):
    """Foreign keys where the table is either the referencing or the referenced side."""
    return [ForeignKeyResponse(**fk.to_dict()) for fk in await engine.list_foreign_keys(name)]


@router.post(
    "/tables/{name}/foreign-keys",
    response_model=ForeignKeyResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_foreign_key(
    name: str,
    request: CreateForeignKeyRequest,
    engine: TableEngine = Depends(get_table_engine)
):
    fk = await engine.create_foreign_key(
        name,
        request.column,
        request.referenced_table,
        request.referenced_column,
        request.on_delete,
        request.on_update,
    )
    return ForeignKeyResponse(**fk.to_dict())


@router.delete("/foreign-keys/{constraint_name}", response_model=DeleteResponse)
async def delete_foreign_key(
    constraint_name: str,
    database: Optional[str] = Query(None),
    engine: TableEngine = Depends(get_table_engine)
):
    await engine.delete_foreign_key(constraint_name, database)
    return DeleteResponse(deleted=True)
