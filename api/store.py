"""
Storage contract for the table gateway.

A store holds named tables of rows. Each row is a list of cell values,
and row 0 of every table is its header. Any backend that offers these
six operations can sit behind the gateway - Google Sheets in production
(see sheets.py), a dict in memory for local runs and tests.
"""

import copy
from typing import Any, Optional, Protocol


Cell = Any
Row = list[Cell]


class TabularStore(Protocol):
    """Operations the gateway needs from a backend"""

    def get_rows(self, table: str) -> Optional[list[Row]]:
        """All rows including the header, or None if the table doesn't exist"""
        ...

    def create_table(self, table: str, header: Row) -> None:
        ...

    def overwrite_rows(self, table: str, header: Row, rows: list[Row]) -> None:
        """Clear everything, write the header, then write rows below it"""
        ...

    def append_row(self, table: str, row: Row, index: int) -> None:
        """Add a row at `index` or below, where `index` is the current row count"""
        ...

    def delete_row(self, table: str, index: int) -> None:
        """Remove row `index` (0 = header) and shift the rest up"""
        ...

    def update_row(self, table: str, index: int, row: Row) -> None:
        ...


class MemoryStore:
    """
    In-process store backed by a dict.

    Usage:
        store = MemoryStore({'Plans': [['id', 'date', 'sku', 'qty']]})
        store.append_row('Plans', ['1', '2024-01-01', 'A1', 5], 1)
    """

    def __init__(self, tables: dict[str, list[Row]] = None):
        self._tables: dict[str, list[Row]] = copy.deepcopy(tables) if tables else {}

    def get_rows(self, table: str) -> Optional[list[Row]]:
        rows = self._tables.get(table)
        if rows is None:
            return None
        return copy.deepcopy(rows)

    def create_table(self, table: str, header: Row) -> None:
        self._tables[table] = [list(header)]

    def overwrite_rows(self, table: str, header: Row, rows: list[Row]) -> None:
        existing = self._require(table)
        existing.clear()
        existing.append(list(header))
        existing.extend(list(row) for row in rows)

    def append_row(self, table: str, row: Row, index: int) -> None:
        rows = self._require(table)
        while len(rows) < index:
            rows.append([])
        rows.append(list(row))

    def delete_row(self, table: str, index: int) -> None:
        rows = self._require(table)
        if not 0 <= index < len(rows):
            raise IndexError(f'Row {index} out of range for {table}')
        del rows[index]

    def update_row(self, table: str, index: int, row: Row) -> None:
        rows = self._require(table)
        if not 0 <= index < len(rows):
            raise IndexError(f'Row {index} out of range for {table}')
        rows[index] = list(row)

    def _require(self, table: str) -> list[Row]:
        if table not in self._tables:
            raise LookupError(f'No such table: {table}')
        return self._tables[table]
