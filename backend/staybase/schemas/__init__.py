"""Pydantic schemas."""

from staybase.schemas.property import (
    DateFields,
    Property,
    PropertySummary,
    TableConfig,
    TableRole,
)
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

__all__ = [
    # Property configuration
    "DateFields",
    "Property",
    "PropertySummary",
    "TableConfig",
    "TableRole",
    # Records and results
    "BookingRangeResult",
    "BookingSearchResult",
    "CheckInOutDigest",
    "ContactListResult",
    "DateRange",
    "GuestContact",
    "GuestContactResult",
    "PropertyDetailResult",
    "PropertyListResult",
    "Record",
]
