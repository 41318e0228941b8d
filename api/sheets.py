"""
Material Delivery Plan - Google Sheets Backend

Stores each table in its own tab of one spreadsheet. Row 1 of every tab
is the header; data rows follow with no gaps.

All reads and writes go through the Sheets API v4 using a service
account, so the spreadsheet must be shared with GCP_CLIENT_EMAIL.
"""

import os
from typing import Optional
from google.oauth2 import service_account
from googleapiclient.discovery import build

from .logger import get_logger
from .store import Row


logger = get_logger(__name__)


# ============================================================
# CONFIGURATION
# ============================================================

SCOPES = ['https://www.googleapis.com/auth/spreadsheets']


def credentials_from_env():
    """Build service account credentials from GCP_* environment variables"""
    creds_info = {
        "type": "service_account",
        "project_id": os.environ.get("GCP_PROJECT_ID"),
        "private_key": os.environ.get("GCP_PRIVATE_KEY", "").replace("\\n", "\n"),
        "client_email": os.environ.get("GCP_CLIENT_EMAIL"),
        "token_uri": "https://oauth2.googleapis.com/token",
    }

    return service_account.Credentials.from_service_account_info(
        creds_info,
        scopes=SCOPES
    )


def quote_title(title: str) -> str:
    """Quote a tab title for A1 notation: Bob's -> 'Bob''s'"""
    return "'" + title.replace("'", "''") + "'"


# ============================================================
# SHEETS STORE
# ============================================================

class SheetsStore:
    """
    Google Sheets implementation of the table store.

    Features:
    - One tab per table, header in row 1
    - Numbers come back as numbers (UNFORMATTED_VALUE)
    - Values are written RAW, so "0012" stays a string
    - Tab ids are cached and refreshed when a tab is added

    Usage:
        store = SheetsStore()
        rows = store.get_rows('Deliveries')
    """

    def __init__(self, spreadsheet_id: str = None, service=None):
        self.spreadsheet_id = spreadsheet_id or os.environ.get('GOOGLE_SHEETS_SPREADSHEET_ID')
        if not self.spreadsheet_id:
            raise ValueError('GOOGLE_SHEETS_SPREADSHEET_ID is not set')

        self._service = service
        self._sheet_ids: Optional[dict[str, int]] = None

    @property
    def service(self):
        """Lazy-load the Google Sheets service"""
        if self._service is None:
            self._service = build('sheets', 'v4', credentials=credentials_from_env())
        return self._service

    def _values(self):
        return self.service.spreadsheets().values()

    def _load_sheet_ids(self) -> dict[str, int]:
        """Map tab title -> numeric sheetId from the spreadsheet metadata"""
        spreadsheet = self.service.spreadsheets().get(
            spreadsheetId=self.spreadsheet_id,
            fields='sheets.properties(sheetId,title)'
        ).execute()

        sheet_ids = {}
        for sheet in spreadsheet.get('sheets', []):
            props = sheet.get('properties', {})
            sheet_ids[props.get('title', '')] = props.get('sheetId', 0)

        self._sheet_ids = sheet_ids
        return sheet_ids

    def _lookup_sheet_id(self, table: str) -> Optional[int]:
        """Cached sheetId, reloading the metadata when the title isn't cached"""
        if self._sheet_ids is not None and table in self._sheet_ids:
            return self._sheet_ids[table]
        # Someone may have added the tab since we cached
        return self._load_sheet_ids().get(table)

    def _sheet_id(self, table: str) -> int:
        sheet_id = self._lookup_sheet_id(table)
        if sheet_id is None:
            raise LookupError(f'No such sheet: {table}')
        return sheet_id

    def has_table(self, table: str) -> bool:
        return self._lookup_sheet_id(table) is not None

    def get_rows(self, table: str) -> Optional[list[Row]]:
        if not self.has_table(table):
            return None

        result = self._values().get(
            spreadsheetId=self.spreadsheet_id,
            range=quote_title(table),
            valueRenderOption='UNFORMATTED_VALUE'
        ).execute()

        # The API drops trailing empty rows and cells
        return result.get('values', [])

    def create_table(self, table: str, header: Row) -> None:
        logger.info('creating sheet %s', table)
        self.service.spreadsheets().batchUpdate(
            spreadsheetId=self.spreadsheet_id,
            body={'requests': [{'addSheet': {'properties': {'title': table}}}]}
        ).execute()
        self._sheet_ids = None

        self._write(table, 1, [header])

    def overwrite_rows(self, table: str, header: Row, rows: list[Row]) -> None:
        self._values().clear(
            spreadsheetId=self.spreadsheet_id,
            range=quote_title(table),
            body={}
        ).execute()

        # Header goes in on its own so a failed data write still leaves it
        self._write(table, 1, [header])
        if rows:
            self._write(table, 2, rows)

    def append_row(self, table: str, row: Row, index: int) -> None:
        # Anchored below the last row, past any blank rows mid-tab
        self._values().append(
            spreadsheetId=self.spreadsheet_id,
            range=f"{quote_title(table)}!A{index + 1}",
            valueInputOption='RAW',
            insertDataOption='INSERT_ROWS',
            body={'values': [row]}
        ).execute()

    def delete_row(self, table: str, index: int) -> None:
        self.service.spreadsheets().batchUpdate(
            spreadsheetId=self.spreadsheet_id,
            body={
                'requests': [{
                    'deleteDimension': {
                        'range': {
                            'sheetId': self._sheet_id(table),
                            'dimension': 'ROWS',
                            'startIndex': index,
                            'endIndex': index + 1,
                        }
                    }
                }]
            }
        ).execute()

    def update_row(self, table: str, index: int, row: Row) -> None:
        self._write(table, index + 1, [row])

    def _write(self, table: str, first_row: int, rows: list[Row]) -> None:
        """Write rows starting at 1-based sheet row `first_row`, column A"""
        self._values().update(
            spreadsheetId=self.spreadsheet_id,
            range=f"{quote_title(table)}!A{first_row}",
            valueInputOption='RAW',
            body={'values': rows}
        ).execute()
