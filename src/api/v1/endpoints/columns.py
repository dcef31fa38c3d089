"""
Columns API endpoints.
"""

from fastapi import APIRouter, Depends, status
from typing import List

from modules.tables import TableEngine
from src.api.v1.dependencies.engine import get_table_engine
from src.api.v1.models.requests import AddColumnRequest, ChangeColumnTypeRequest, RenameColumnRequest
from src.api.v1.models.responses import FieldSpecResponse

router = APIRouter(prefix="/tables/{name}/columns", tags=["columns"])


async def _columns(engine: TableEngine, name: str) -> List[FieldSpecResponse]:
    return [FieldSpecResponse(**spec.to_dict()) for spec in await engine.list_columns(name)]


@router.get("", response_model=List[FieldSpecResponse])
async def list_columns(name: str, engine: TableEngine = Depends(get_table_engine)):
    """Current columns with their native types."""
    return await _columns(engine, name)


@router.post("", response_model=List[FieldSpecResponse], status_code=status.HTTP_201_CREATED)
async def add_column(name: str, request: AddColumnRequest, engine: TableEngine = Depends(get_table_engine)):
    await engine.add_column(name, request.to_field_spec())
    return await _columns(engine, name)


@router.put("/{column}/type", response_model=List[FieldSpecResponse])
async def change_column_type(
    name: str,
    column: str,
    request: ChangeColumnTypeRequest,
    engine: TableEngine = Depends(get_table_engine)
):
    await engine.change_column_type(name, column, request.new_type)
    return await _columns(engine, name)


@router.put("/{column}/name", response_model=List[FieldSpecResponse])
async def rename_column(
    name: str,
    column: str,
    request: RenameColumnRequest,
    engine: TableEngine = Depends(get_table_engine)
):
    await engine.rename_column(name, column, request.new_name)
    return await _columns(engine, name)


@router.delete("/{column}", response_model=List[FieldSpecResponse])
async def drop_column(name: str, column: str, engine: TableEngine = Depends(get_table_engine)):
    await engine.drop_column(name, column)
    return await _columns(engine, name)
