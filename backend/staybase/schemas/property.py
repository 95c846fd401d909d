"""Pydantic schemas for the static property configuration.

A property maps to one Airtable base and a set of tables, each addressed by
its logical role. Models are frozen: the configuration is loaded once at
startup and never mutated afterwards.

Aliases keep the camelCase wire keys (``propertyId``, ``baseId``,
``tableName``, ...) so a properties file and API responses use the same
shape.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from staybase.errors import NotFoundError


class TableRole(str, Enum):
    """Logical purpose of a table within a property."""

    BOOKINGS = "bookings"
    GUESTS = "guests"
    CONTACTS = "contacts"


class DateFields(BaseModel):
    """Check-in/check-out field names of a booking table."""

    model_config = ConfigDict(frozen=True)

    checkin: str = Field(..., min_length=1)
    checkout: str = Field(..., min_length=1)


class TableConfig(BaseModel):
    """Configuration of one remote table.

    ``allowed_fields`` is the security boundary: any field not listed is
    stripped from every response. ``name_fields`` and ``email_field`` name the
    guest-identity columns used by searches and by the guest/booking
    correlation.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    remote_name: str = Field(..., alias="tableName", min_length=1)
    allowed_fields: tuple[str, ...] = Field(..., alias="allowedFields")
    date_fields: DateFields | None = Field(default=None, alias="dateFields")
    name_fields: tuple[str, ...] = Field(default=(), alias="nameFields")
    email_field: str | None = Field(default=None, alias="emailField")

    @field_validator("allowed_fields")
    @classmethod
    def _unique_allowed_fields(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if len(set(value)) != len(value):
            raise ValueError("allowedFields must not contain duplicates")
        if any(not name for name in value):
            raise ValueError("allowedFields must not contain empty names")
        return value

    @model_validator(mode="after")
    def _referenced_fields_allowed(self) -> "TableConfig":
        referenced = list(self.name_fields)
        if self.email_field:
            referenced.append(self.email_field)
        if self.date_fields is not None:
            referenced.extend([self.date_fields.checkin, self.date_fields.checkout])

        missing = [name for name in referenced if name not in self.allowed_fields]
        if missing:
            raise ValueError(
                f"Fields {missing} of table {self.remote_name!r} are not in allowedFields"
            )
        return self


class PropertySummary(BaseModel):
    """Discovery view of a property: no field allow-lists, only role names."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="propertyId")
    display_name: str = Field(..., alias="name")
    store_location: str = Field(..., alias="baseId")
    tables: list[TableRole] = Field(default_factory=list)


class Property(BaseModel):
    """A configured property (one Airtable base)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., alias="propertyId", min_length=1)
    display_name: str = Field(..., alias="name")
    store_location: str = Field(..., alias="baseId", min_length=1)
    tables: dict[TableRole, TableConfig] = Field(default_factory=dict)

    def table(self, role: TableRole) -> TableConfig:
        """Get the table configured for a role.

        Raises:
            NotFoundError: If the property does not define the role.
        """
        config = self.tables.get(role)
        if config is None:
            raise NotFoundError(f"Property {self.id} has no {role.value} table configured")
        return config

    def has_roles(self, *roles: TableRole) -> bool:
        return all(role in self.tables for role in roles)

    def summary(self) -> PropertySummary:
        return PropertySummary(
            id=self.id,
            display_name=self.display_name,
            store_location=self.store_location,
            tables=list(self.tables),
        )
