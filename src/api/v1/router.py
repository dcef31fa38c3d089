"""
API v1 router.

Combines all v1 endpoint routers.
"""

from fastapi import APIRouter

from src.api.v1.endpoints import columns, foreign_keys, items, tables, views

# Create main v1 router
api_router = APIRouter()


@api_router.get("/", tags=["info"])
async def api_v1_info():
    """
    API v1 information endpoint.

    Returns:
        API version and available endpoints
    """
    return {
        "title": "Dynamic Table Engine API",
        "version": "1.0.0",
        "endpoints": {
            "tables": "/api/v1/tables",
            "items": "/api/v1/tables/{name}/items",
            "columns": "/api/v1/tables/{name}/columns",
            "foreign_keys": "/api/v1/tables/{name}/foreign-keys",
            "views": "/api/v1/tables/{name}/views",
            "health": "/health",
            "docs": "/docs"
        }
    }

# Include endpoint routers
api_router.include_router(tables.router)
api_router.include_router(items.router)
api_router.include_router(columns.router)
api_router.include_router(foreign_keys.router)
api_router.include_router(views.router)
