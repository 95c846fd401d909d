"""Airtable table fetcher.

Used endpoint:
- GET /{baseId}/{tableName} -> {"records": [{"id": ..., "fields": {...}}, ...]}

Query parameters: view, maxRecords, filterByFormula, fields[] (repeated).
Every call is a single attempt: no retries, no backoff, no caching. A
non-success response is raised as RemoteError.
"""

import logging
from collections.abc import Sequence
from typing import Any, Protocol
from urllib.parse import quote

import httpx

from staybase.config import settings
from staybase.errors import RemoteError
from staybase.schemas.records import Record
from staybase.services.formula import Expression

logger = logging.getLogger(__name__)

# Maximum characters of a non-JSON error body kept in the error message
_ERROR_BODY_LIMIT = 500


class TableFetcher(Protocol):
    """Anything that can run one bounded table query."""

    async def fetch(
        self,
        store_location: str,
        remote_name: str,
        *,
        view: str | None = None,
        max_records: int | None = None,
        filter_formula: str | Expression | None = None,
        fields: Sequence[str] | None = None,
    ) -> list[Record]: ...


def _error_message(resp: httpx.Response) -> str:
    """Extract the store's error message from a failed response."""
    try:
        data: Any = resp.json()
    except ValueError:
        return resp.text[:_ERROR_BODY_LIMIT] or resp.reason_phrase

    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict):
        message = error.get("message") or error.get("type")
        if message:
            return str(message)
    elif isinstance(error, str) and error:
        return error
    return resp.text[:_ERROR_BODY_LIMIT] or resp.reason_phrase


class AirtableClient:
    """Read-only Airtable REST client.

    Owns one httpx.AsyncClient for the process; call ``close()`` on shutdown.
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        max_records: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize AirtableClient.

        Args:
            api_key: Airtable personal access token. Defaults to settings.
            base_url: API root, e.g. https://api.airtable.com/v0.
            timeout: Per-request timeout in seconds.
            max_records: Process-wide hard cap on records per request.
            transport: Optional httpx transport (for testing).
        """
        self.max_records = max_records if max_records is not None else settings.max_records
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.airtable_base_url,
            headers={"Authorization": f"Bearer {api_key or settings.airtable_api_key}"},
            timeout=timeout if timeout is not None else settings.airtable_timeout,
            transport=transport,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "AirtableClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def effective_cap(self, requested: int | None) -> int:
        """Clamp a requested record count to the process-wide cap."""
        if requested is None:
            return self.max_records
        return min(requested, self.max_records)

    async def fetch(
        self,
        store_location: str,
        remote_name: str,
        *,
        view: str | None = None,
        max_records: int | None = None,
        filter_formula: str | Expression | None = None,
        fields: Sequence[str] | None = None,
    ) -> list[Record]:
        """Run one bounded query against a table and return its raw records.

        ``filter_formula`` may be a ready formula string or an expression
        tree from ``staybase.services.formula``. ``fields`` is only a
        selection hint for the store; callers still project the records onto
        the table's allow-list.

        Raises:
            RemoteError: On a transport failure or non-success response.
        """
        cap = self.effective_cap(max_records)
        formula = (
            filter_formula
            if filter_formula is None or isinstance(filter_formula, str)
            else filter_formula.to_formula()
        )

        params: list[tuple[str, str | int]] = [("maxRecords", cap)]
        if view:
            params.append(("view", view))
        if formula:
            params.append(("filterByFormula", formula))
        for name in fields or ():
            params.append(("fields[]", name))

        path = f"/{quote(store_location, safe='')}/{quote(remote_name, safe='')}"
        logger.debug("Fetching %s (maxRecords=%d, filter=%s)", path, cap, formula)

        try:
            resp = await self._client.get(path, params=params)
        except httpx.HTTPError as e:
            logger.warning("Airtable request to %s failed: %s", remote_name, e)
            raise RemoteError(None, str(e) or e.__class__.__name__) from e

        if not resp.is_success:
            message = _error_message(resp)
            logger.warning("Airtable returned %d for %s: %s", resp.status_code, remote_name, message)
            raise RemoteError(resp.status_code, message)

        try:
            data: Any = resp.json()
        except ValueError as e:
            raise RemoteError(resp.status_code, "Airtable returned a non-JSON response") from e

        records = data.get("records") if isinstance(data, dict) else None
        if not isinstance(records, list):
            raise RemoteError(resp.status_code, "Airtable response has no records list")

        return [
            Record(id=str(r.get("id", "")), fields=r.get("fields") or {})
            for r in records
            if isinstance(r, dict)
        ]
