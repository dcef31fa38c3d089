"""
YAML table definitions.

Declares tables, their columns, display attributes and views in a file and
brings the database in line with it. Applying a file twice is a no-op:
existing tables are only registered, existing columns are skipped and views
are saved by name.

Example file:
    tables:
      - name: books
        title: Books
        icon: book
        ordinal: 1
        create_button_text: Add book
        columns:
          - {name: title, type: string, required: false}
          - {name: pages, type: int64}
        views:
          - name: Default
            default: true
            columns:
              - {column_name: title, column_order: 0, sort_order: asc}
"""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from modules.tables.table_engine import TableEngine
from shared.database.exceptions import InvalidArgumentError
from shared.database.identifiers import sanitize_identifier
from shared.database.types import FieldSpec, TableViewColumn
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)

_VIEW_COLUMN_KEYS = {f.name for f in fields(TableViewColumn)}
_DISPLAY_ATTRIBUTES = ("title", "icon", "ordinal", "create_button_text")


@dataclass
class ViewDefinition:
    name: str
    view_type: Optional[str] = None
    is_default: bool = False
    columns: List[TableViewColumn] = field(default_factory=list)


@dataclass
class TableDefinition:
    name: str
    database: Optional[str] = None
    attributes: Dict[str, Any] = field(default_factory=dict)
    columns: List[FieldSpec] = field(default_factory=list)
    views: List[ViewDefinition] = field(default_factory=list)


def _entries(entry: Dict[str, Any], key: str, owner: str) -> List[Any]:
    value = entry.get(key) or []
    if not isinstance(value, list):
        raise InvalidArgumentError(f"'{key}' of '{owner}' must be a list")
    return value


def _parse_column(col: Any, table: str) -> FieldSpec:
    if not isinstance(col, dict) or not col.get("name"):
        raise InvalidArgumentError(f"Column of '{table}' without a name: {col!r}")
    return FieldSpec(
        name=col["name"],
        type=col.get("type", "string"),
        required=bool(col.get("required", False)),
        default_to_current_timestamp=bool(col.get("default_to_current_timestamp", False)),
    )


def _parse_view(view: Any, table: str) -> ViewDefinition:
    if not isinstance(view, dict) or not view.get("name"):
        raise InvalidArgumentError(f"View of '{table}' without a name: {view!r}")

    columns = []
    for col in _entries(view, "columns", view["name"]):
        if not isinstance(col, dict) or not col.get("column_name"):
            raise InvalidArgumentError(f"Column of view '{view['name']}' without a column_name: {col!r}")
        unknown = set(col) - _VIEW_COLUMN_KEYS
        if unknown:
            raise InvalidArgumentError(
                f"Unknown keys for column '{col['column_name']}' of view '{view['name']}': "
                f"{', '.join(sorted(unknown))}"
            )
        columns.append(TableViewColumn(**col))

    return ViewDefinition(
        name=view["name"],
        view_type=view.get("type"),
        is_default=bool(view.get("default", False)),
        columns=columns,
    )


def parse_table_definitions(config: Dict[str, Any]) -> List[TableDefinition]:
    """
    Parse the ``tables`` section of a loaded YAML document.

    Raises:
        InvalidArgumentError: If the document is not shaped like a definition file
    """
    tables = config.get("tables") if isinstance(config, dict) else None
    if not isinstance(tables, list):
        raise InvalidArgumentError("Table definition file must contain a 'tables' list")

    definitions = []
    for entry in tables:
        if not isinstance(entry, dict) or not entry.get("name"):
            raise InvalidArgumentError(f"Table definition without a name: {entry!r}")

        name = entry["name"]
        definitions.append(TableDefinition(
            name=name,
            database=entry.get("database"),
            attributes={k: entry[k] for k in _DISPLAY_ATTRIBUTES if k in entry},
            columns=[_parse_column(col, name) for col in _entries(entry, "columns", name)],
            views=[_parse_view(view, name) for view in _entries(entry, "views", name)],
        ))
    return definitions


def load_table_definitions(path: Union[str, Path]) -> List[TableDefinition]:
    """
    Load table definitions from a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist
        InvalidArgumentError: If the file is not valid YAML or not a definition file
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Table definition file not found: {path}")

    try:
        with open(path, "r") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise InvalidArgumentError(f"Invalid YAML in {path}: {e}") from e

    return parse_table_definitions(config)


async def apply_table_definitions(
    engine: TableEngine,
    definitions: List[TableDefinition]
) -> Dict[str, Dict[str, Any]]:
    """
    Create or complete every defined table.

    Returns:
        Per table: whether it was created, and the columns and views applied
    """
    summary = {}
    for definition in definitions:
        config = await engine.register_table(definition.name, definition.database)
        created = False
        if not await engine.schema.table_exists(config.database, config.table):
            await engine.schema.create_table(config.database, config.table)
            created = True

        if definition.attributes:
            await engine.update_table(config.name, **definition.attributes)

        existing = {spec.name for spec in await engine.list_columns(config.name)}
        added = []
        for spec in definition.columns:
            if sanitize_identifier(spec.name) in existing:
                continue
            await engine.add_column(config.name, spec)
            added.append(spec.name)

        for view in definition.views:
            await engine.create_view(config.name, view.name, view.columns, view.view_type, view.is_default)

        logger.info(
            f"Applied definition for '{config.name}': created={created}, "
            f"columns added={len(added)}, views={len(definition.views)}"
        )
        summary[config.name] = {
            "created": created,
            "columns_added": added,
            "views": [view.name for view in definition.views],
        }

    return summary
