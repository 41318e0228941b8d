"""
Table gateway - maps API actions onto store reads and writes.

Actions:
    read    GET   {sheet}              -> [row, ...]
    save    POST  {sheet, data}        -> {success, count}
    add     POST  {sheet, row}         -> {success}
    delete  POST  {sheet, id}          -> {success} / {success: false, error}
    update  POST  {sheet, id, row}     -> {success} / {success: false, error}

Rows are looked up by a linear scan of the id column (O(n) per call).
Ids are not checked for uniqueness; delete and update act on the first
match only.
"""

import threading
from typing import Any

from .logger import get_logger
from .schemas import TableSchemas, load_schemas
from .store import Row, TabularStore


logger = get_logger(__name__)


READ_ACTIONS = {'read'}
WRITE_ACTIONS = {'save', 'add', 'delete', 'update'}


# ============================================================
# ERRORS
# ============================================================

class GatewayError(Exception):
    """Base for errors that map straight onto an API error message"""
    message = 'Gateway error'

    def __init__(self, message: str = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class InvalidAction(GatewayError):
    message = 'Invalid action'


class MissingParameter(GatewayError):
    def __init__(self, name: str):
        super().__init__(f'{name} is required')
        self.name = name


class SheetNotFound(GatewayError):
    message = 'Sheet not found'


class IdNotFound(GatewayError):
    message = 'ID not found'


# ============================================================
# HELPERS
# ============================================================

def cell_key(value: Any) -> str:
    """
    String form of a cell used for id comparison.

    Sheets hands numbers back as floats or ints, and callers send ids as
    either strings or numbers, so 1, 1.0 and "1" all compare equal.
    """
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def cell_value(value: Any) -> Any:
    """Missing values are stored as empty cells"""
    return '' if value is None else value


def build_row(columns: list[str], data: dict) -> Row:
    return [cell_value(data.get(col)) for col in columns]


# ============================================================
# GATEWAY
# ============================================================

class Gateway:
    """
    CRUD operations over a tabular store.

    The store is injected so the same gateway runs against Google Sheets
    in production and a MemoryStore in tests:

        gateway = Gateway(SheetsStore(), load_schemas())
        gateway.add('Plans', {'id': '1', 'date': '2024-01-01', 'sku': 'A1', 'qty': 5})
        gateway.read('Plans')

    Writes to the same table are serialized within this process.
    """

    def __init__(self, store: TabularStore, schemas: TableSchemas = None):
        self.store = store
        self.schemas = schemas or load_schemas()
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock(self, table: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(table)
            if lock is None:
                lock = self._locks[table] = threading.Lock()
            return lock

    def _existing_table_lock(self, table: str) -> threading.Lock:
        """
        Lock for delete/update. Only tables that are configured or that
        exist in the store get one, so made-up names don't pile up locks.
        """
        if table not in self.schemas and table not in self._locks:
            self._rows_or_raise(table)
        return self._lock(table)

    # ----- operations -----

    def read(self, table: str) -> list[dict]:
        """All data rows as dicts keyed by the sheet's header"""
        rows = self.store.get_rows(table)
        if not rows or len(rows) <= 1:
            return []

        headers = rows[0]
        result = []
        for row in rows[1:]:
            result.append({
                header: cell_value(row[j]) if j < len(row) else ''
                for j, header in enumerate(headers)
            })
        return result

    def save(self, table: str, data: list[dict]) -> dict:
        """Replace every data row in the table"""
        columns = self.schemas.columns(table)
        rows = [build_row(columns, item) for item in data]

        with self._lock(table):
            if self.store.get_rows(table) is None:
                self.store.create_table(table, columns)

            # Clear, header, then rows - a failure on the rows leaves just the header
            self.store.overwrite_rows(table, columns, rows)

        logger.info('save %s: %d rows', table, len(rows))
        return {'success': True, 'count': len(rows)}

    def add(self, table: str, row: dict) -> dict:
        columns = self.schemas.columns(table)

        with self._lock(table):
            existing = self.store.get_rows(table)
            if existing is None:
                self.store.create_table(table, columns)
                existing = [columns]
            self.store.append_row(table, build_row(columns, row), len(existing))

        logger.info('add %s: id=%s', table, cell_key(row.get('id')))
        return {'success': True}

    def delete(self, table: str, row_id: Any) -> dict:
        with self._existing_table_lock(table):
            rows = self._rows_or_raise(table)
            index = self._find(table, rows, row_id)
            self.store.delete_row(table, index)

        logger.info('delete %s: id=%s', table, cell_key(row_id))
        return {'success': True}

    def update(self, table: str, row_id: Any, changes: dict) -> dict:
        """Rewrite the first row matching row_id, keeping columns not in changes"""
        with self._existing_table_lock(table):
            rows = self._rows_or_raise(table)
            index = self._find(table, rows, row_id)

            headers = rows[0]
            current = rows[index]
            updated = []
            for j, header in enumerate(headers):
                if header in changes:
                    updated.append(cell_value(changes[header]))
                else:
                    updated.append(current[j] if j < len(current) else '')

            self.store.update_row(table, index, updated)

        logger.info('update %s: id=%s fields=%s', table, cell_key(row_id), sorted(changes))
        return {'success': True}

    def _rows_or_raise(self, table: str) -> list[Row]:
        rows = self.store.get_rows(table)
        if rows is None:
            logger.warning('%s: sheet not found', table)
            raise SheetNotFound()
        return rows

    def _find(self, table: str, rows: list[Row], row_id: Any) -> int:
        """Index of the first data row whose id column matches"""
        key = cell_key(row_id)
        for i in range(1, len(rows)):
            row = rows[i]
            if row and cell_key(row[0]) == key:
                return i

        logger.warning('%s: id %s not found', table, key)
        raise IdNotFound()

    # ----- dispatch -----

    def handle(self, action: str, params: dict, method: str = 'POST') -> Any:
        """
        Run one API request.

        Args:
            action: the requested action name
            params: query parameters (GET) or the decoded JSON body (POST)
            method: 'GET' allows only read, 'POST' allows only writes

        Returns:
            The JSON-serializable response payload

        Raises:
            InvalidAction, MissingParameter
        """
        allowed = READ_ACTIONS if method == 'GET' else WRITE_ACTIONS
        if action not in allowed:
            raise InvalidAction()

        if action == 'read':
            # No sheet reads like a sheet that doesn't exist
            table = params.get('sheet')
            return self.read(table) if table else []

        table = _require(params, 'sheet')
        if action == 'save':
            return self.save(table, _require(params, 'data'))
        if action == 'add':
            return self.add(table, _require(params, 'row'))

        try:
            if action == 'delete':
                return self.delete(table, _require(params, 'id'))
            return self.update(table, _require(params, 'id'), _require(params, 'row'))
        except (SheetNotFound, IdNotFound) as e:
            return {'success': False, 'error': e.message}


def _require(params: dict, name: str) -> Any:
    value = params.get(name)
    if value is None or value == '':
        raise MissingParameter(name)
    return value
