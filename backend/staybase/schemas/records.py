"""Record and operation result schemas.

Records are passed through as the remote store returned them, reduced to the
allow-listed fields of their table. Field values are never coerced.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from staybase.schemas.property import Property, PropertySummary


class Record(BaseModel):
    """A remote table record: opaque id plus a field map."""

    id: str
    fields: dict[str, Any] = Field(default_factory=dict)


class GuestContact(Record):
    """A guest record tagged with its property and correlated bookings."""

    model_config = ConfigDict(populate_by_name=True)

    property_id: str = Field(..., alias="propertyId")
    property_name: str = Field(..., alias="propertyName")
    bookings: list[Record] = Field(default_factory=list)


class DateRange(BaseModel):
    """Inclusive date range, both ends as YYYY-MM-DD."""

    start_date: str
    end_date: str


class BookingRangeResult(BaseModel):
    bookings: list[Record]
    range: DateRange


class CheckInOutDigest(BaseModel):
    """Bookings checking in or out today and tomorrow."""

    today: list[Record]
    tomorrow: list[Record]


class BookingSearchResult(BaseModel):
    bookings: list[Record]


class GuestContactResult(BaseModel):
    guests: list[GuestContact]


class ContactListResult(BaseModel):
    contacts: list[Record]


class PropertyListResult(BaseModel):
    properties: list[PropertySummary]


class PropertyDetailResult(BaseModel):
    property: Property
