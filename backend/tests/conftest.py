"""Pytest configuration and shared fixtures.

This module provides centralized test fixtures for:
- An in-memory table fetcher that applies formula trees like the store does
- A two-property registry with bookings, guests and contacts tables
- A query service pinned to a fixed "today"
- HTTP client for API testing
"""

import asyncio
import os
from datetime import date
from typing import Any

# Settings are read at import time; configure them before importing the app.
os.environ.setdefault("AIRTABLE_API_KEY", "test-airtable-key")
os.environ.setdefault("MCP_AUTH_TOKEN", "test-token")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from staybase.config import settings
from staybase.dependencies import get_query_service
from staybase.main import app
from staybase.schemas.records import Record
from staybase.services.queries import PropertyQueryService
from staybase.services.registry import PropertyRegistry

TODAY = date(2024, 6, 1)

BASE_A = "appAAAAAAAAAAAAAA"
BASE_B = "appBBBBBBBBBBBBBB"


# =============================================================================
# In-memory store
# =============================================================================


class InMemoryTableFetcher:
    """TableFetcher double backed by dicts of raw records.

    Applies the filter expression with ``matches()`` and the record cap, but
    ignores the field hint so that projection is what strips extra fields.
    Records every call; ``failures`` maps (base, table) to an exception.
    """

    def __init__(self, tables: dict[tuple[str, str], list[dict[str, Any]]] | None = None):
        self.tables = tables or {}
        self.failures: dict[tuple[str, str], Exception] = {}
        self.calls: list[dict[str, Any]] = []

    async def fetch(
        self,
        store_location: str,
        remote_name: str,
        *,
        view=None,
        max_records=None,
        filter_formula=None,
        fields=None,
    ) -> list[Record]:
        self.calls.append({
            "store_location": store_location,
            "remote_name": remote_name,
            "view": view,
            "max_records": max_records,
            "filter_formula": filter_formula,
            "fields": fields,
        })
        # Yield so concurrent fetches interleave
        await asyncio.sleep(0)

        failure = self.failures.get((store_location, remote_name))
        if failure is not None:
            raise failure

        rows = self.tables.get((store_location, remote_name), [])
        if filter_formula is not None:
            rows = [row for row in rows if filter_formula.matches(row.get("fields", {}))]
        if max_records is not None:
            rows = rows[:max_records]
        return [Record(id=row["id"], fields=dict(row.get("fields", {}))) for row in rows]


# =============================================================================
# Property configuration
# =============================================================================


def _bookings_table() -> dict[str, Any]:
    return {
        "tableName": "Bookings",
        "allowedFields": [
            "Booking_ID",
            "Guest_Name",
            "Guest_Email",
            "Arrival_Date",
            "Departure_Date",
            "Booking_Status",
        ],
        "dateFields": {"checkin": "Arrival_Date", "checkout": "Departure_Date"},
        "nameFields": ["Guest_Name"],
        "emailField": "Guest_Email",
    }


def _guests_table() -> dict[str, Any]:
    return {
        "tableName": "Guests",
        "allowedFields": ["First_Name", "Last_Name", "email", "Phone"],
        "nameFields": ["First_Name", "Last_Name"],
        "emailField": "email",
    }


@pytest.fixture
def properties_data() -> list[dict[str, Any]]:
    """Raw property configuration for two properties."""
    return [
        {
            "propertyId": "prop-a",
            "name": "Serenity Zen Retreat",
            "baseId": BASE_A,
            "tables": {
                "bookings": _bookings_table(),
                "guests": _guests_table(),
                "contacts": {"tableName": "Contacts", "allowedFields": ["Name", "Role"]},
            },
        },
        {
            "propertyId": "prop-b",
            "name": "Lakeside Cabin",
            "baseId": BASE_B,
            "tables": {
                "bookings": _bookings_table(),
                "guests": _guests_table(),
            },
        },
    ]


def _booking(record_id: str, name: str, email: str, arrival: str, departure: str) -> dict[str, Any]:
    return {
        "id": record_id,
        "fields": {
            "Booking_ID": record_id.upper(),
            "Guest_Name": name,
            "Guest_Email": email,
            "Arrival_Date": arrival,
            "Departure_Date": departure,
            "Booking_Status": "Confirmed",
            # Not allow-listed: must never reach a response
            "Payout_Amount": 1234.5,
        },
    }


@pytest.fixture
def store_tables() -> dict[tuple[str, str], list[dict[str, Any]]]:
    """Raw remote records keyed by (base, table)."""
    return {
        (BASE_A, "Bookings"): [
            _booking("rec_b1", "John Smith", "smith@x.com", "2024-06-01", "2024-06-05"),
            _booking("rec_b2", "Maria Garcia", "maria@example.com", "2024-05-28", "2024-06-01"),
            _booking("rec_b3", "Ann Lee", "ann.lee@example.com", "2024-06-02", "2024-06-04"),
            _booking("rec_b4", "Peter Pan", "peter@example.com", "2024-07-10", "2024-07-12"),
            _booking("rec_b5", "Olga Old", "olga@example.com", "2024-05-01", "2024-05-31"),
        ],
        (BASE_A, "Guests"): [
            {
                "id": "rec_g1",
                "fields": {
                    "First_Name": "John",
                    "Last_Name": "Smith",
                    "email": "smith@x.com",
                    "Phone": "+1 555 0100",
                    "Internal_Rating": "VIP",
                },
            },
            {
                "id": "rec_g2",
                "fields": {"First_Name": "Maria", "Last_Name": "Garcia", "email": "maria@example.com"},
            },
        ],
        (BASE_A, "Contacts"): [
            {"id": "rec_c1", "fields": {"Name": "Carl", "Role": "Cleaner", "Bank_Account": "DE00"}},
            {"id": "rec_c2", "fields": {"Name": "Mona", "Role": "Manager"}},
        ],
        (BASE_B, "Bookings"): [
            _booking("rec_b9", "Jane Doe", "jane@doe.com", "2024-06-10", "2024-06-12"),
        ],
        (BASE_B, "Guests"): [
            {"id": "rec_g9", "fields": {"First_Name": "Jane", "Last_Name": "Doe", "email": "jane@doe.com"}},
        ],
    }


@pytest.fixture
def registry(properties_data) -> PropertyRegistry:
    return PropertyRegistry.from_data(properties_data)


@pytest.fixture
def fetcher(store_tables) -> InMemoryTableFetcher:
    return InMemoryTableFetcher(store_tables)


@pytest.fixture
def service(registry, fetcher) -> PropertyQueryService:
    """Query service over the in-memory store with today fixed to 2024-06-01."""
    return PropertyQueryService(
        registry,
        fetcher,
        max_records=50,
        default_range_days=31,
        today=lambda: TODAY,
    )


# =============================================================================
# HTTP Client Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def client(service):
    """Async test client for the FastAPI app backed by the in-memory store.

    The lifespan does not run under ASGITransport, so the query service is
    provided through a dependency override.
    """
    app.dependency_overrides[get_query_service] = lambda: service

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.pop(get_query_service, None)


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Headers with the configured bearer token."""
    return {"Authorization": f"Bearer {settings.mcp_auth_token}"}
