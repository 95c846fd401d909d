"""Property API routes: configuration, bookings, guests and contacts."""

from fastapi import APIRouter, Depends

from staybase.auth import verify_bearer_token
from staybase.dependencies import get_query_service
from staybase.schemas.records import (
    BookingRangeResult,
    BookingSearchResult,
    CheckInOutDigest,
    ContactListResult,
    GuestContactResult,
    PropertyDetailResult,
    PropertyListResult,
)
from staybase.services.queries import PropertyQueryService

router = APIRouter(tags=["properties"])


@router.get("/properties", response_model=PropertyListResult)
async def list_properties(
    service: PropertyQueryService = Depends(get_query_service),
    _client: str = Depends(verify_bearer_token),
) -> PropertyListResult:
    """List configured properties with their base IDs and table roles."""
    return await service.list_properties()


@router.get("/properties/{property_id}", response_model=PropertyDetailResult)
async def get_property(
    property_id: str,
    service: PropertyQueryService = Depends(get_query_service),
    _client: str = Depends(verify_bearer_token),
) -> PropertyDetailResult:
    """Get the configuration of a single property.

    Raises:
        NotFoundError: 404 if the property is not configured.
    """
    return await service.get_property(property_id)


@router.get("/properties/{property_id}/bookings", response_model=BookingRangeResult)
async def list_bookings(
    property_id: str,
    start_date: str | None = None,
    end_date: str | None = None,
    max_records: int | None = None,
    service: PropertyQueryService = Depends(get_query_service),
    _client: str = Depends(verify_bearer_token),
) -> BookingRangeResult:
    """List bookings overlapping [start_date, end_date] (inclusive).

    Args:
        start_date: YYYY-MM-DD, defaults to today (UTC).
        end_date: YYYY-MM-DD, defaults to start_date + DEFAULT_RANGE_DAYS.
        max_records: Record cap, clamped to MAX_RECORDS.
    """
    return await service.list_bookings_by_range(property_id, start_date, end_date, max_records)


@router.get("/properties/{property_id}/bookings/today", response_model=CheckInOutDigest)
async def todays_checkins_checkouts(
    property_id: str,
    service: PropertyQueryService = Depends(get_query_service),
    _client: str = Depends(verify_bearer_token),
) -> CheckInOutDigest:
    """Check-ins and check-outs for today and tomorrow."""
    return await service.todays_checkins_checkouts(property_id)


@router.get("/properties/{property_id}/bookings/search", response_model=BookingSearchResult)
async def find_booking_by_guest(
    property_id: str,
    query: str,
    max_records: int | None = None,
    service: PropertyQueryService = Depends(get_query_service),
    _client: str = Depends(verify_bearer_token),
) -> BookingSearchResult:
    """Search bookings by guest name or email (case-insensitive substring)."""
    return await service.find_booking_by_guest(property_id, query, max_records)


@router.get("/properties/{property_id}/contacts", response_model=ContactListResult)
async def list_contacts(
    property_id: str,
    max_records: int | None = None,
    service: PropertyQueryService = Depends(get_query_service),
    _client: str = Depends(verify_bearer_token),
) -> ContactListResult:
    """Trusted contacts for a property (e.g. cleaner, manager)."""
    return await service.list_contacts(property_id, max_records)


@router.get("/guests", response_model=GuestContactResult)
async def get_guest_contact(
    query: str,
    max_records: int | None = None,
    service: PropertyQueryService = Depends(get_query_service),
    _client: str = Depends(verify_bearer_token),
) -> GuestContactResult:
    """Find guests by partial name or email across all properties.

    Each guest carries its propertyId, propertyName and correlated bookings.
    """
    return await service.get_guest_contact(query, max_records)
