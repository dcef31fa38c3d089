"""
Table engine dependency.
"""

from fastapi import HTTPException, Request, status

from modules.tables import TableEngine


def get_table_engine(request: Request) -> TableEngine:
    """
    Return the application's table engine.

    Raises:
        HTTPException: 503 if the engine has not been started
    """
    engine = getattr(request.app.state, "table_engine", None)
    if engine is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Table engine is not initialized",
        )
    return engine
