"""
Tables API endpoints.

Registry entries, physical table creation and table structure.
"""

from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from modules.tables import TableEngine
from src.api.v1.dependencies.engine import get_table_engine
from src.api.v1.models.requests import CreateTableRequest, RegisterTableRequest, UpdateTableRequest
from src.api.v1.models.responses import (
    DatabaseTableResponse,
    TableConfigResponse,
    TableStructureResponse,
)
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)

router = APIRouter(prefix="/tables", tags=["tables"])


@router.get("", response_model=List[TableConfigResponse])
async def list_tables(engine: TableEngine = Depends(get_table_engine)):
    """List registered tables ordered for navigation."""
    return [TableConfigResponse(**config.to_dict()) for config in await engine.list_tables()]


@router.post("/register", response_model=TableConfigResponse, status_code=status.HTTP_201_CREATED)
async def register_table(request: RegisterTableRequest, engine: TableEngine = Depends(get_table_engine)):
    """Register an existing physical table. Registering a known name returns the existing entry."""
    config = await engine.register_table(request.name, request.database, request.table, request.title)
    return TableConfigResponse(**config.to_dict())


@router.post("", response_model=TableConfigResponse, status_code=status.HTTP_201_CREATED)
async def create_table(request: CreateTableRequest, engine: TableEngine = Depends(get_table_engine)):
    """Create a physical table with id, created_at and updated_at, and register it."""
    config = await engine.create_table(request.name, request.database)
    logger.info(f"Created table: {config.name}")
    return TableConfigResponse(**config.to_dict())


@router.get("/database", response_model=List[DatabaseTableResponse])
async def list_database_tables(
    database: Optional[str] = Query(None, description="Physical database (default if omitted)"),
    engine: TableEngine = Depends(get_table_engine)
):
    """List physical tables and whether each is registered."""
    tables = await engine.list_database_tables(database)
    return [DatabaseTableResponse(**table.to_dict()) for table in tables]


@router.get("/{name}", response_model=TableConfigResponse)
async def get_table(name: str, engine: TableEngine = Depends(get_table_engine)):
    return TableConfigResponse(**(await engine.resolve_table(name)).to_dict())


@router.patch("/{name}", response_model=TableConfigResponse)
async def update_table(
    name: str,
    request: UpdateTableRequest,
    engine: TableEngine = Depends(get_table_engine)
):
    """Change display attributes of a registered table."""
    config = await engine.update_table(name, **request.model_dump(exclude_none=True))
    return TableConfigResponse(**config.to_dict())


@router.get("/{name}/structure", response_model=TableStructureResponse)
async def get_table_structure(name: str, engine: TableEngine = Depends(get_table_engine)):
    """Columns, foreign keys, create-button text and view type of a table."""
    structure = await engine.get_table_structure(name)
    return TableStructureResponse(**structure.to_dict())
