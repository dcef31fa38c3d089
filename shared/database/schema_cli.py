#!/usr/bin/env python3
"""
Table Management CLI.

Command-line tool for managing dynamic tables.

Usage:
    python -m shared.database.schema_cli init
    python -m shared.database.schema_cli create-table books
    python -m shared.database.schema_cli register books main books
    python -m shared.database.schema_cli apply tables.yaml
    python -m shared.database.schema_cli list
    python -m shared.database.schema_cli columns books
"""

import asyncio
import sys

from modules.tables import TableEngine
from modules.tables.definitions import apply_table_definitions, load_table_definitions
from shared.database.exceptions import TableEngineError
from shared.utils.config import get_settings
from shared.utils.logger import log_error, setup_logger
from src.database.connection import create_tables

logger = setup_logger(__name__)


async def init_tables(engine: TableEngine) -> bool:
    """Create the metadata tables."""
    await create_tables(engine.engine)
    logger.info(f"✓ Metadata tables ready ({engine.dialect.name})")
    return True


async def create_table(engine: TableEngine, name: str, database: str | None = None) -> bool:
    """Create and register a physical table."""
    config = await engine.create_table(name, database)
    logger.info(f"✓ Table '{config.name}' created in '{config.database}'")
    return True


async def register_table(
    engine: TableEngine,
    name: str,
    database: str | None = None,
    table: str | None = None
) -> bool:
    """Register an existing physical table."""
    config = await engine.register_table(name, database, table)
    logger.info(f"✓ Table '{config.name}' -> {config.database}.{config.table}")
    return True


async def apply_definitions(engine: TableEngine, path: str) -> bool:
    """Apply a YAML table definition file."""
    summary = await apply_table_definitions(engine, load_table_definitions(path))
    for name, result in summary.items():
        state = "created" if result["created"] else "exists"
        print(f"  - {name}: {state}, +{len(result['columns_added'])} column(s), {len(result['views'])} view(s)")
    return True


async def list_tables(engine: TableEngine) -> bool:
    """List registered tables."""
    configs = await engine.list_tables()
    logger.info(f"Found {len(configs)} tables:")
    for config in configs:
        print(f"  - {config.name} ({config.database}.{config.table}) \"{config.title}\"")
    return True


async def list_columns(engine: TableEngine, name: str) -> bool:
    """List columns of a registered table."""
    for spec in await engine.list_columns(name):
        required = " NOT NULL" if spec.required else ""
        print(f"  - {spec.name}: {spec.type}{required}")
    return True


def print_usage():
    """Print CLI usage information."""
    print("""
Table Management CLI

Usage:
    python -m shared.database.schema_cli <command> [arguments]

Commands:
    init                                  Create the metadata tables
    create-table <name> [database]        Create and register a physical table
    register <name> [database] [table]    Register an existing physical table
    apply <file.yaml>                     Apply a YAML table definition file
    list                                  List registered tables
    columns <name>                        List columns of a table
    help                                  Show this help message
    """)


# command -> (handler, minimum positional arguments)
COMMANDS = {
    "init": (init_tables, 0),
    "create-table": (create_table, 1),
    "register": (register_table, 1),
    "apply": (apply_definitions, 1),
    "list": (list_tables, 0),
    "columns": (list_columns, 1),
}


async def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    argv = sys.argv[1:] if argv is None else argv
    if not argv or argv[0].lower() == "help":
        print_usage()
        return 0 if argv else 1

    command, args = argv[0].lower(), argv[1:]
    if command not in COMMANDS:
        print(f"Unknown command: {command}")
        print_usage()
        return 1

    handler, min_args = COMMANDS[command]
    if len(args) < min_args:
        print(f"Error: {command} requires at least {min_args} argument(s)")
        return 1

    engine = TableEngine.from_settings(get_settings())
    try:
        success = await handler(engine, *args)
        return 0 if success else 1
    except (TableEngineError, FileNotFoundError) as e:
        log_error(logger, e, f"✗ {command} failed")
        return 1
    finally:
        await engine.close()


def run() -> None:
    """Console script entry point."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
