"""Guest to booking correlation.

Guests and bookings live in separate tables with no shared key, so they are
joined by case-insensitive substring containment on name and email. This is
an O(guests x bookings) scan over two small in-memory lists (both bounded by
the per-request record cap).
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from staybase.schemas.property import TableConfig
from staybase.schemas.records import Record


@dataclass
class GuestMatch:
    """A guest record with the bookings attached to it."""

    guest: Record
    bookings: list[Record] = field(default_factory=list)


def _text(fields: dict[str, Any], name: str | None) -> str:
    if not name:
        return ""
    value = fields.get(name)
    return "" if value is None else str(value)


def guest_email(guest: Record, table: TableConfig) -> str:
    """Lower-cased, trimmed email of a guest record."""
    return _text(guest.fields, table.email_field).strip().lower()


def guest_name(guest: Record, table: TableConfig) -> str:
    """Name fields joined by a space, trimmed and lower-cased."""
    parts = [_text(guest.fields, name) for name in table.name_fields]
    return " ".join(parts).strip().lower()


def correlate(
    guests: Sequence[Record],
    bookings: Sequence[Record],
    *,
    query: str,
    guest_table: TableConfig,
    booking_table: TableConfig,
) -> list[GuestMatch]:
    """Attach bookings to each guest.

    A booking is attached when its guest email contains the guest's email,
    its guest name contains the guest's name, or either contains the query.
    Empty guest emails and names never match on their own. Guest order and
    booking order are preserved; a booking may attach to several guests.
    """
    q = query.lower()
    booking_keys = [
        (
            booking,
            " ".join(_text(booking.fields, name) for name in booking_table.name_fields).lower(),
            _text(booking.fields, booking_table.email_field).lower(),
        )
        for booking in bookings
    ]

    matches: list[GuestMatch] = []
    for guest in guests:
        email = guest_email(guest, guest_table)
        name = guest_name(guest, guest_table)
        attached = [
            booking
            for booking, booking_name, booking_email in booking_keys
            if (email and email in booking_email)
            or (name and name in booking_name)
            or q in booking_name
            or q in booking_email
        ]
        matches.append(GuestMatch(guest=guest, bookings=attached))
    return matches
