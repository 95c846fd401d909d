"""Tool definitions and dispatch for the query operations.

Seven read-only tools wrap PropertyQueryService. Each tool name is also the
name of the service method it calls; arguments use the snake_case names of
the JSON input schemas below and results are the operation's JSON object.

Tools:
  1. list_properties
  2. get_property
  3. list_bookings_by_range
  4. todays_checkins_checkouts
  5. find_booking_by_guest
  6. get_guest_contact
  7. list_contacts
"""

import json
import logging
from typing import Any

from staybase.config import settings
from staybase.errors import NotFoundError, ValidationError
from staybase.services.queries import MIN_QUERY_LENGTH, PropertyQueryService

logger = logging.getLogger(__name__)


# =============================================================================
# Tool Schemas (JSON Schema input definitions)
# =============================================================================

_PROPERTY_ID: dict[str, Any] = {"type": "string", "description": "Property ID"}

_DATE: dict[str, Any] = {
    "type": "string",
    "pattern": r"^\d{4}-\d{2}-\d{2}$",
    "description": "YYYY-MM-DD",
}

_QUERY: dict[str, Any] = {
    "type": "string",
    "minLength": MIN_QUERY_LENGTH,
    "description": "Guest name or email substring",
}

_MAX_RECORDS: dict[str, Any] = {
    "type": "integer",
    "minimum": 1,
    "maximum": settings.max_records,
    "description": "Maximum number of records to return.",
}


def _input_schema(properties: dict[str, Any], required: list[str]) -> dict[str, Any]:
    return {
        "type": "object",
        "properties": properties,
        "required": required,
        "additionalProperties": False,
    }


TOOL_SCHEMAS: list[dict[str, Any]] = [
    {
        "name": "list_properties",
        "title": "List properties",
        "description": "List configured properties and base IDs",
        "inputSchema": _input_schema({}, []),
    },
    {
        "name": "get_property",
        "title": "Get property details",
        "description": "Get configured property metadata",
        "inputSchema": _input_schema({"property_id": _PROPERTY_ID}, ["property_id"]),
    },
    {
        "name": "list_bookings_by_range",
        "title": "List bookings in date range",
        "description": (
            "List bookings for a property between start_date and end_date (inclusive). "
            f"Defaults to the next {settings.default_range_days} days."
        ),
        "inputSchema": _input_schema(
            {
                "property_id": _PROPERTY_ID,
                "start_date": _DATE,
                "end_date": _DATE,
                "max_records": _MAX_RECORDS,
            },
            ["property_id"],
        ),
    },
    {
        "name": "todays_checkins_checkouts",
        "title": "Today/tomorrow check-ins and check-outs",
        "description": "Check-ins/outs for today and tomorrow for a property",
        "inputSchema": _input_schema({"property_id": _PROPERTY_ID}, ["property_id"]),
    },
    {
        "name": "find_booking_by_guest",
        "title": "Find bookings by guest name/email",
        "description": (
            "Search bookings for a property by guest name or email "
            "(contains match, case-insensitive)"
        ),
        "inputSchema": _input_schema(
            {"property_id": _PROPERTY_ID, "query": _QUERY, "max_records": _MAX_RECORDS},
            ["property_id", "query"],
        ),
    },
    {
        "name": "get_guest_contact",
        "title": "Get guest contact",
        "description": (
            "Find guest contact info by partial name or email (case-insensitive "
            "substring match) across all properties and include their bookings"
        ),
        "inputSchema": _input_schema(
            {"query": _QUERY, "max_records": _MAX_RECORDS},
            ["query"],
        ),
    },
    {
        "name": "list_contacts",
        "title": "List property contacts",
        "description": "Return trusted contacts for a property (e.g., cleaner, manager)",
        "inputSchema": _input_schema(
            {"property_id": _PROPERTY_ID, "max_records": _MAX_RECORDS},
            ["property_id"],
        ),
    },
]

_SCHEMAS_BY_NAME: dict[str, dict[str, Any]] = {schema["name"]: schema for schema in TOOL_SCHEMAS}

_TYPE_CHECKS = {
    "string": lambda v: isinstance(v, str),
    "integer": lambda v: isinstance(v, int) and not isinstance(v, bool),
}


# =============================================================================
# Dispatch
# =============================================================================


def parse_arguments(name: str, arguments: dict[str, Any] | str | None) -> dict[str, Any]:
    """Check tool arguments against the tool's input schema.

    Accepts a dict or a JSON object string. Null values are treated as
    omitted. Range checks (dates, query length, max_records) are left to
    the query service.

    Raises:
        NotFoundError: Unknown tool.
        ValidationError: Arguments are not an object, or are missing,
            unexpected or of the wrong type.
    """
    schema = _SCHEMAS_BY_NAME.get(name)
    if schema is None:
        raise NotFoundError(f"Unknown tool: {name}")

    if arguments is None:
        arguments = {}
    elif isinstance(arguments, str):
        try:
            arguments = json.loads(arguments) if arguments.strip() else {}
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid JSON arguments for {name}: {e}") from e
    if not isinstance(arguments, dict):
        raise ValidationError(f"Arguments for {name} must be an object")

    input_schema = schema["inputSchema"]
    properties: dict[str, Any] = input_schema["properties"]

    unexpected = sorted(set(arguments) - set(properties))
    if unexpected:
        raise ValidationError(f"Unexpected arguments for {name}: {', '.join(unexpected)}")

    parsed = {key: value for key, value in arguments.items() if value is not None}
    missing = [key for key in input_schema["required"] if key not in parsed]
    if missing:
        raise ValidationError(f"Missing required arguments for {name}: {', '.join(missing)}")

    for key, value in parsed.items():
        expected = properties[key]["type"]
        if not _TYPE_CHECKS[expected](value):
            raise ValidationError(f"Argument {key} of {name} must be of type {expected}")
    return parsed


async def execute_tool(
    name: str,
    arguments: dict[str, Any] | str | None,
    service: PropertyQueryService,
) -> dict[str, Any]:
    """Run a tool by name and return its JSON-serializable result.

    Errors from argument checking and from the operation propagate
    unchanged; mapping them to a transport error is the caller's job.
    """
    parsed = parse_arguments(name, arguments)
    logger.info("Executing tool %s with arguments %s", name, sorted(parsed))

    operation = getattr(service, name)
    result = await operation(**parsed)
    return result.model_dump(mode="json", by_alias=True)
