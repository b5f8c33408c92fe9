import logging
from typing import Any
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)

API_URL = "https://api.airtable.com/v0"


class StoreError(Exception):
    """Raised when Airtable refuses or fails to create a record."""


class AirtableClient:
    """Creates records in one Airtable base through the REST API."""

    def __init__(self, client: httpx.AsyncClient, api_key: str, base_id: str):
        self._client = client
        self._api_key = api_key
        self._base_id = base_id

    def table_url(self, table: str) -> str:
        return f"{API_URL}/{self._base_id}/{quote(table, safe='')}"

    async def create_record(self, table: str, fields: dict[str, Any]) -> str:
        """Create a single row and return its record id."""
        if not self._api_key:
            raise StoreError("Airtable API key is not configured")

        try:
            response = await self._client.post(
                self.table_url(table),
                headers={"Authorization": f"Bearer {self._api_key}"},
                json={"records": [{"fields": fields}]},
            )
        except httpx.HTTPError as exc:
            raise StoreError(f"create failed: {exc}") from exc

        if response.status_code >= 400:
            raise StoreError(f"create failed: {response.status_code} {_error_text(response)}")

        records = response.json().get("records") or []
        if not records or "id" not in records[0]:
            raise StoreError("create failed: response contained no record id")
        return records[0]["id"]


def _error_text(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict):
        return error.get("message") or error.get("type") or str(error)
    if isinstance(error, str):
        return error
    return response.text
