"""
Table configuration - which tabs exist and their column order.

Every table is a spreadsheet tab whose first row is the header.
The header written by save/add always comes from this map, so the
column order here is what ends up in the sheet.
"""

import json
import os


# ============================================================
# DEFAULT TABLES
# ============================================================

DEFAULT_SCHEMAS = {
    'SKUs': ['id', 'name', 'month', 'forecast'],
    'Deliveries': ['id', 'date', 'sku', 'lot', 'qty'],
    'Plans': ['id', 'date', 'sku', 'qty'],
}

# Tables nobody configured still get an id column
FALLBACK_COLUMNS = ['id']

ID_COLUMN = 'id'


class TableSchemas:
    """
    Read-only map of table name -> ordered column list.

    Usage:
        schemas = load_schemas()
        schemas.columns('Deliveries')  # ['id', 'date', 'sku', 'lot', 'qty']
        schemas.columns('Unknown')     # ['id']
    """

    def __init__(self, tables: dict[str, list[str]]):
        self._tables = {name: list(cols) for name, cols in tables.items()}

    def columns(self, table: str) -> list[str]:
        return list(self._tables.get(table, FALLBACK_COLUMNS))

    @property
    def tables(self) -> list[str]:
        return list(self._tables)

    def __contains__(self, table: str) -> bool:
        return table in self._tables


def validate_schemas(tables) -> dict[str, list[str]]:
    """
    Check a table -> columns mapping and return a normalized copy.

    Raises:
        ValueError: if the mapping can't be used as a table configuration
    """
    if not isinstance(tables, dict):
        raise ValueError('Table schemas must be an object of table -> columns')

    validated = {}
    for name, columns in tables.items():
        if not isinstance(name, str) or not name.strip():
            raise ValueError(f'Invalid table name: {name!r}')
        if not isinstance(columns, list) or not columns:
            raise ValueError(f'Table {name!r} must have at least one column')

        for col in columns:
            if not isinstance(col, str) or not col:
                raise ValueError(f'Table {name!r} has an invalid column: {col!r}')

        if len(set(columns)) != len(columns):
            raise ValueError(f'Table {name!r} has duplicate columns')

        # Lookups for update/delete scan the first column
        if columns[0] != ID_COLUMN:
            raise ValueError(f'Table {name!r} must start with the {ID_COLUMN!r} column')

        validated[name] = list(columns)

    return validated


def load_schemas(raw: str = None) -> TableSchemas:
    """
    Load table schemas from TABLE_SCHEMAS (JSON) or fall back to the defaults.

    Args:
        raw: JSON text to use instead of the environment variable
    """
    if raw is None:
        raw = os.environ.get('TABLE_SCHEMAS')

    if not raw:
        return TableSchemas(validate_schemas(DEFAULT_SCHEMAS))

    try:
        tables = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f'TABLE_SCHEMAS is not valid JSON: {e}') from e

    return TableSchemas(validate_schemas(tables))
