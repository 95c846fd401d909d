"""Composed read operations over configured properties.

Each operation resolves the property and table from the registry, builds a
filter formula, fetches from the store and projects the records onto the
table's allow-list. Nothing is cached and nothing is written.

Operations:
  1. list_properties, get_property: registry reads, no remote calls
  2. list_bookings_by_range: bookings overlapping a date range
  3. todays_checkins_checkouts: today/tomorrow digest (two fetches)
  4. find_booking_by_guest: guest name/email substring search
  5. get_guest_contact: cross-property guest lookup with correlated
     bookings
  6. list_contacts: property contacts
"""

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable
from datetime import date, datetime, timedelta, timezone
from typing import Any

from staybase.config import settings
from staybase.errors import ConfigurationError, ValidationError
from staybase.schemas.property import Property, TableConfig, TableRole
from staybase.schemas.records import (
    BookingRangeResult,
    BookingSearchResult,
    CheckInOutDigest,
    ContactListResult,
    DateRange,
    GuestContact,
    GuestContactResult,
    PropertyDetailResult,
    PropertyListResult,
    Record,
)
from staybase.services.airtable import TableFetcher
from staybase.services.correlator import correlate
from staybase.services.formula import Expression, date_range, guest_search, same_day
from staybase.services.projector import project
from staybase.services.registry import PropertyRegistry

logger = logging.getLogger(__name__)

# Shortest accepted guest search query
MIN_QUERY_LENGTH = 2

_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")


def utc_today() -> date:
    """Current calendar date in UTC."""
    return datetime.now(timezone.utc).date()


def parse_date(value: Any, name: str) -> date:
    """Parse a strict YYYY-MM-DD date argument.

    Raises:
        ValidationError: If the value is not a valid YYYY-MM-DD date.
    """
    if not isinstance(value, str) or not _DATE_RE.fullmatch(value):
        raise ValidationError(f"{name} must be a date in YYYY-MM-DD format")
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"{name} is not a valid date: {value}") from None


def validate_query(query: Any) -> str:
    """Return the trimmed query, rejecting anything shorter than two characters."""
    if not isinstance(query, str) or len(query.strip()) < MIN_QUERY_LENGTH:
        raise ValidationError(f"query must be at least {MIN_QUERY_LENGTH} characters")
    return query.strip()


def validate_max_records(max_records: Any) -> int | None:
    if max_records is None:
        return None
    if isinstance(max_records, bool) or not isinstance(max_records, int) or max_records < 1:
        raise ValidationError("max_records must be a positive integer")
    return max_records


async def gather_all(*aws: Awaitable[Any]) -> list[Any]:
    """Run awaitables concurrently and fail if any of them failed.

    Waits until every branch has settled, then re-raises the first failure
    (in launch order) unchanged. There is no partial result.
    """
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return list(results)


class PropertyQueryService:
    """Read operations over the property registry and the remote store."""

    def __init__(
        self,
        registry: PropertyRegistry,
        fetcher: TableFetcher,
        *,
        max_records: int | None = None,
        default_range_days: int | None = None,
        today: Callable[[], date] | None = None,
    ):
        """
        Initialize PropertyQueryService.

        Args:
            registry: Immutable property configuration.
            fetcher: Table fetcher (AirtableClient in production).
            max_records: Per-request record cap. Defaults to settings.
            default_range_days: Width of the default booking range.
            today: Clock returning the current date (UTC by default).
        """
        self.registry = registry
        self.fetcher = fetcher
        self.max_records = max_records if max_records is not None else settings.max_records
        self.default_range_days = (
            default_range_days if default_range_days is not None else settings.default_range_days
        )
        self._today = today or utc_today

    def _cap(self, max_records: int | None) -> int:
        return min(max_records or self.max_records, self.max_records)

    async def _fetch_projected(
        self,
        prop: Property,
        table: TableConfig,
        *,
        filter_formula: Expression | None = None,
        max_records: int | None = None,
    ) -> list[Record]:
        records = await self.fetcher.fetch(
            prop.store_location,
            table.remote_name,
            max_records=self._cap(max_records),
            filter_formula=filter_formula,
            fields=list(table.allowed_fields),
        )
        return project(records, table.allowed_fields)

    # -------------------------------------------------------------------------
    # Registry reads
    # -------------------------------------------------------------------------

    async def list_properties(self) -> PropertyListResult:
        return PropertyListResult(properties=self.registry.list())

    async def get_property(self, property_id: str) -> PropertyDetailResult:
        return PropertyDetailResult(property=self.registry.resolve(property_id))

    # -------------------------------------------------------------------------
    # Bookings
    # -------------------------------------------------------------------------

    def _bookings_table(self, prop: Property) -> TableConfig:
        table = prop.table(TableRole.BOOKINGS)
        if table.date_fields is None:
            raise ValidationError(f"Bookings table of property {prop.id} has no date fields configured")
        return table

    async def list_bookings_by_range(
        self,
        property_id: str,
        start_date: str | None = None,
        end_date: str | None = None,
        max_records: int | None = None,
    ) -> BookingRangeResult:
        """List bookings whose stay intersects [start_date, end_date].

        Defaults to today through today + DEFAULT_RANGE_DAYS.

        Raises:
            NotFoundError: Unknown property or no bookings table.
            ValidationError: Malformed dates, end before start, bad max_records.
            RemoteError: The store rejected the query.
        """
        max_records = validate_max_records(max_records)
        prop = self.registry.resolve(property_id)
        table = self._bookings_table(prop)

        start = parse_date(start_date, "start_date") if start_date else self._today()
        end = (
            parse_date(end_date, "end_date")
            if end_date
            else start + timedelta(days=self.default_range_days)
        )
        if end < start:
            raise ValidationError("end_date must not be before start_date")

        bookings = await self._fetch_projected(
            prop,
            table,
            filter_formula=date_range(table.date_fields, start, end),
            max_records=max_records,
        )
        logger.info(
            "Property %s: %d bookings between %s and %s", prop.id, len(bookings), start, end
        )
        return BookingRangeResult(
            bookings=bookings,
            range=DateRange(start_date=start.isoformat(), end_date=end.isoformat()),
        )

    async def todays_checkins_checkouts(self, property_id: str) -> CheckInOutDigest:
        """Bookings checking in or out today and tomorrow (UTC dates).

        Both days are fetched concurrently; a failure of either fails the call.
        """
        prop = self.registry.resolve(property_id)
        table = self._bookings_table(prop)

        today = self._today()
        tomorrow = today + timedelta(days=1)
        today_filter = same_day(table.date_fields, today)
        tomorrow_filter = same_day(table.date_fields, tomorrow)

        today_bookings, tomorrow_bookings = await gather_all(
            self._fetch_projected(prop, table, filter_formula=today_filter),
            self._fetch_projected(prop, table, filter_formula=tomorrow_filter),
        )
        return CheckInOutDigest(today=today_bookings, tomorrow=tomorrow_bookings)

    async def find_booking_by_guest(
        self,
        property_id: str,
        query: str,
        max_records: int | None = None,
    ) -> BookingSearchResult:
        """Search a property's bookings by guest name or email substring."""
        query = validate_query(query)
        max_records = validate_max_records(max_records)
        prop = self.registry.resolve(property_id)
        table = prop.table(TableRole.BOOKINGS)

        bookings = await self._fetch_projected(
            prop,
            table,
            filter_formula=guest_search(table, query),
            max_records=max_records,
        )
        return BookingSearchResult(bookings=bookings)

    # -------------------------------------------------------------------------
    # Guests and contacts
    # -------------------------------------------------------------------------

    async def _guest_contacts_for(
        self, prop: Property, query: str, max_records: int | None
    ) -> list[GuestContact]:
        guest_table = prop.table(TableRole.GUESTS)
        booking_table = prop.table(TableRole.BOOKINGS)
        guest_filter = guest_search(guest_table, query)
        booking_filter = guest_search(booking_table, query)

        guests, bookings = await gather_all(
            self._fetch_projected(
                prop, guest_table, filter_formula=guest_filter, max_records=max_records
            ),
            self._fetch_projected(
                prop, booking_table, filter_formula=booking_filter, max_records=max_records
            ),
        )

        matches = correlate(
            guests,
            bookings,
            query=query,
            guest_table=guest_table,
            booking_table=booking_table,
        )
        return [
            GuestContact(
                id=match.guest.id,
                fields=match.guest.fields,
                property_id=prop.id,
                property_name=prop.display_name,
                bookings=match.bookings,
            )
            for match in matches
        ]

    async def get_guest_contact(
        self, query: str, max_records: int | None = None
    ) -> GuestContactResult:
        """Find guests by name/email across all properties, with their bookings.

        Only properties defining both a guests and a bookings table are
        searched. Properties are queried concurrently; any failure fails the
        whole lookup.

        Raises:
            ValidationError: Query shorter than two characters.
            ConfigurationError: No properties are configured at all.
            RemoteError: Any property's fetch failed.
        """
        query = validate_query(query)
        max_records = validate_max_records(max_records)
        if len(self.registry) == 0:
            raise ConfigurationError("No properties configured")

        eligible = [
            prop for prop in self.registry if prop.has_roles(TableRole.GUESTS, TableRole.BOOKINGS)
        ]
        per_property = await gather_all(
            *(self._guest_contacts_for(prop, query, max_records) for prop in eligible)
        )

        guests = [guest for group in per_property for guest in group]
        logger.info(
            "Guest lookup matched %d guests across %d properties", len(guests), len(eligible)
        )
        return GuestContactResult(guests=guests)

    async def list_contacts(
        self, property_id: str, max_records: int | None = None
    ) -> ContactListResult:
        """Trusted contacts of a property (cleaner, manager, ...)."""
        max_records = validate_max_records(max_records)
        prop = self.registry.resolve(property_id)
        table = prop.table(TableRole.CONTACTS)

        contacts = await self._fetch_projected(prop, table, max_records=max_records)
        return ContactListResult(contacts=contacts)
