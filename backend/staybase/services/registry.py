"""Property registry and configuration loading.

The registry maps property identifiers to their Airtable base and tables.
It is built once at startup (see ``staybase.main``) and passed by reference
to the query service; there are no mutation operations.
"""

import json
import logging
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from staybase.config import Settings
from staybase.errors import ConfigurationError, NotFoundError
from staybase.schemas.property import Property, PropertySummary

logger = logging.getLogger(__name__)

_PROPERTY_LIST_ADAPTER = TypeAdapter(list[Property])


def default_properties(base_id: str) -> list[dict[str, Any]]:
    """Built-in property definitions used when no PROPERTIES_FILE is set."""
    return [
        {
            "propertyId": "415394",
            "name": "Serenity Zen Retreat",
            "baseId": base_id,
            "tables": {
                "bookings": {
                    "tableName": "Bookings",
                    "allowedFields": [
                        "Booking_ID",
                        "Property_Name",
                        "Guest_Name",
                        "Guest_Email",
                        "Guest_Phone",
                        "Arrival_Date",
                        "Departure_Date",
                        "Nights_Stay",
                        "Booking_Status",
                        "Listing_Site",
                        "Notes",
                    ],
                    "dateFields": {"checkin": "Arrival_Date", "checkout": "Departure_Date"},
                    "nameFields": ["Guest_Name"],
                    "emailField": "Guest_Email",
                },
                "guests": {
                    "tableName": "Guests",
                    "allowedFields": [
                        "First_Name",
                        "Last_Name",
                        "email",
                        "Phone",
                        "Address_City",
                        "Address_State",
                        "Address_Postal_Code",
                        "Notes",
                    ],
                    "nameFields": ["First_Name", "Last_Name"],
                    "emailField": "email",
                },
                "contacts": {
                    "tableName": "Contacts",
                    "allowedFields": ["Name"],
                },
            },
        },
    ]


class PropertyRegistry:
    """Read-only registry of configured properties.

    Properties are resolvable by exact identifier only; iteration follows
    configuration order.
    """

    def __init__(self, properties: Iterable[Property]):
        by_id: dict[str, Property] = {}
        for prop in properties:
            if prop.id in by_id:
                raise ConfigurationError(f"Duplicate propertyId in configuration: {prop.id}")
            by_id[prop.id] = prop
        self._properties = by_id

    def resolve(self, property_id: str) -> Property:
        """Get a property by identifier.

        Raises:
            NotFoundError: If no property with that identifier is configured.
        """
        prop = self._properties.get(property_id)
        if prop is None:
            raise NotFoundError(f"Unknown propertyId: {property_id}")
        return prop

    def list(self) -> list[PropertySummary]:
        """Summaries of all properties (role names only, no field lists)."""
        return [prop.summary() for prop in self._properties.values()]

    def __iter__(self) -> Iterator[Property]:
        return iter(tuple(self._properties.values()))

    def __len__(self) -> int:
        return len(self._properties)

    @classmethod
    def from_data(cls, data: Any) -> "PropertyRegistry":
        """Build a registry from decoded JSON (a list of property objects).

        Raises:
            ConfigurationError: If the data does not describe valid properties.
        """
        try:
            properties = _PROPERTY_LIST_ADAPTER.validate_python(data)
        except PydanticValidationError as e:
            raise ConfigurationError(f"Invalid property configuration: {e}") from e
        return cls(properties)

    @classmethod
    def from_file(cls, path: str | Path) -> "PropertyRegistry":
        """Load a registry from a JSON properties file.

        Raises:
            ConfigurationError: If the file cannot be read or is invalid.
        """
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot read properties file {path}: {e}") from e
        return cls.from_data(data)


def load_registry(settings: Settings) -> PropertyRegistry:
    """Build the process-wide registry from settings.

    Uses PROPERTIES_FILE when set, otherwise the built-in default property.
    """
    if settings.properties_file:
        registry = PropertyRegistry.from_file(settings.properties_file)
        logger.info("Loaded %d properties from %s", len(registry), settings.properties_file)
    else:
        registry = PropertyRegistry.from_data(default_properties(settings.airtable_property_base_id))
        logger.info("Using built-in property configuration (%d properties)", len(registry))

    if len(registry) == 0:
        logger.warning("No properties configured; cross-property lookups will fail")
    return registry
