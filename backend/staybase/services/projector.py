"""Field projection: restrict records to a table's allow-listed fields."""

from collections.abc import Iterable, Sequence
from typing import Any

from staybase.schemas.records import Record


def project_record(record: Record | dict[str, Any], allowed_fields: Sequence[str]) -> Record:
    """Reduce one record to the allow-listed fields.

    Keeps ``id`` unchanged and copies values verbatim, in allow-list order.
    Fields missing from the input stay missing (no null defaults).
    """
    if isinstance(record, Record):
        record_id, fields = record.id, record.fields
    else:
        record_id, fields = str(record.get("id", "")), record.get("fields") or {}

    return Record(
        id=record_id,
        fields={name: fields[name] for name in allowed_fields if name in fields},
    )


def project(records: Iterable[Record | dict[str, Any]], allowed_fields: Sequence[str]) -> list[Record]:
    """Project every record onto ``allowed_fields``. Never fails."""
    return [project_record(record, allowed_fields) for record in records]
