"""
Material Delivery Plan - API Client

Talks to a deployed /api/data endpoint from Python, the same way the
planning page does from the browser.

Usage:
    client = TableStoreClient('https://plans.example.vercel.app/api/data')
    client.add('Deliveries', {'id': '1', 'date': '2024-01-01', 'sku': 'A1', 'lot': 'L1', 'qty': 10})
    for row in client.read('Deliveries'):
        print(row['id'], row['qty'])
"""

import os
from typing import Any

import httpx


class TableStoreError(Exception):
    """The endpoint answered with {"error": ...}"""


class TableStoreClient:
    """
    Client for the table store endpoint.

    read() returns the rows; the write methods return the response
    payload as-is, so a missing id on update/delete shows up as
    {'success': False, 'error': 'ID not found'} rather than an exception.
    """

    def __init__(self, base_url: str = None, timeout: float = 30.0, transport: httpx.BaseTransport = None):
        self.base_url = base_url or os.environ.get('TABLE_STORE_URL')
        if not self.base_url:
            raise ValueError('TABLE_STORE_URL is not set')

        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=self.timeout, transport=self._transport, follow_redirects=True)

    def _parse(self, response: httpx.Response) -> Any:
        try:
            data = response.json()
        except ValueError:
            raise TableStoreError(
                f'Unexpected response: {response.status_code} - {response.text[:200]}'
            )

        if isinstance(data, dict) and 'error' in data and 'success' not in data:
            raise TableStoreError(data['error'])

        return data

    def _post(self, payload: dict) -> dict:
        with self._client() as client:
            response = client.post(self.base_url, json=payload)
            return self._parse(response)

    def read(self, sheet: str) -> list[dict]:
        with self._client() as client:
            response = client.get(self.base_url, params={'action': 'read', 'sheet': sheet})
            return self._parse(response)

    def save(self, sheet: str, rows: list[dict]) -> dict:
        return self._post({'action': 'save', 'sheet': sheet, 'data': rows})

    def add(self, sheet: str, row: dict) -> dict:
        return self._post({'action': 'add', 'sheet': sheet, 'row': row})

    def delete(self, sheet: str, row_id: Any) -> dict:
        return self._post({'action': 'delete', 'sheet': sheet, 'id': row_id})

    def update(self, sheet: str, row_id: Any, row: dict) -> dict:
        return self._post({'action': 'update', 'sheet': sheet, 'id': row_id, 'row': row})

    def test_connection(self, sheet: str = 'SKUs') -> dict:
        """
        Check the endpoint by reading one table.

        Returns:
            Dict with 'success' and 'message'
        """
        try:
            rows = self.read(sheet)
            return {
                'success': True,
                'message': f'Connected! {sheet} has {len(rows)} rows'
            }
        except httpx.ConnectError:
            return {'success': False, 'message': f'Could not connect to {self.base_url}'}
        except (httpx.HTTPError, TableStoreError) as e:
            return {'success': False, 'message': str(e)}
