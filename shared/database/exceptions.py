"""
Exceptions raised by the dynamic table engine.

Database driver failures are wrapped into ``DatabaseOperationError`` with the
operation and physical table attached. Integrity violations (NOT NULL,
unique, referential) are logged and re-raised unmodified.
"""

from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


class TableEngineError(Exception):
    """Base exception for the table engine."""
    pass


class NotFoundError(TableEngineError):
    """Raised when a requested object does not exist."""
    pass


class TableNotFoundError(NotFoundError):
    """Raised when a logical or physical table does not exist."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Table '{name}' not found")


class ItemNotFoundError(NotFoundError):
    """Raised when no row matches the requested id."""

    def __init__(self, table: str, item_id: str):
        self.table = table
        self.item_id = item_id
        super().__init__(f"Item '{item_id}' not found in table '{table}'")


class ViewNotFoundError(NotFoundError):
    """Raised when a table view does not exist."""

    def __init__(self, view_id: int):
        self.view_id = view_id
        super().__init__(f"Table view {view_id} not found")


class ConstraintNotFoundError(NotFoundError):
    """Raised when a foreign key constraint does not exist."""

    def __init__(self, constraint_name: str):
        self.constraint_name = constraint_name
        super().__init__(f"Constraint '{constraint_name}' not found")


class UnknownColumnError(NotFoundError):
    """Raised when a field name is not a column of the table."""

    def __init__(self, table: str, column: str):
        self.table = table
        self.column = column
        super().__init__(f"Column '{column}' does not exist in table '{table}'")


class UnsupportedOperationError(TableEngineError):
    """
    Raised when the active dialect cannot perform an operation.

    Always raised before any statement is sent to the database.
    """

    def __init__(self, dialect: str, operation: str, reason: str):
        self.dialect = dialect
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation} is not supported on {dialect}: {reason}")


class InvalidConfigurationError(TableEngineError):
    """Raised when a table configuration lacks its physical binding."""

    def __init__(self, name: str, missing: str):
        self.name = name
        self.missing = missing
        super().__init__(f"Table configuration '{name}' is invalid: missing {missing}")


class ProtectedColumnError(TableEngineError):
    """Raised when renaming or dropping a system column."""

    def __init__(self, column: str):
        self.column = column
        super().__init__(f"Column '{column}' is a system column and cannot be modified")


class DuplicateError(TableEngineError):
    """Raised when creating something that already exists."""
    pass


class InvalidArgumentError(TableEngineError):
    """Raised when caller input cannot be used (empty update, bad type name, bad value)."""
    pass


class DatabaseOperationError(TableEngineError):
    """Driver or SQL failure with the operation and table that caused it."""

    def __init__(self, operation: str, table: Optional[str], detail: str):
        self.operation = operation
        self.table = table
        self.detail = detail
        target = f" on '{table}'" if table else ""
        super().__init__(f"{operation}{target} failed: {detail}")


@contextmanager
def wrap_database_errors(operation: str, table: Optional[str] = None) -> Iterator[None]:
    """
    Attach operation context to SQLAlchemy errors raised inside the block.

    Args:
        operation: Name of the operation being performed
        table: Physical table involved, if any

    Raises:
        IntegrityError: Re-raised unmodified after logging
        DatabaseOperationError: For any other SQLAlchemy error
    """
    try:
        yield
    except IntegrityError as e:
        logger.error(f"{operation} on '{table}' violated a constraint: {e.orig}")
        raise
    except SQLAlchemyError as e:
        logger.error(f"{operation} on '{table}' failed: {e}")
        raise DatabaseOperationError(operation, table, str(e)) from e
