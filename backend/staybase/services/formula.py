"""Filter formula builder for the Airtable formula dialect.

Formulas are built as a small expression tree and serialized with
``to_formula()``. Every node can also evaluate itself against a record's
field map with ``matches()``, using the same semantics the store applies
server-side (the in-memory fetcher used by the tests relies on this).

Node kinds:
  - Contains:     case-insensitive substring match on a field or a
                  concatenation of fields
  - SameDay:      a date field falls on an exact calendar day
  - RangeOverlap: a check-in/check-out span intersects an inclusive range
  - AllOf, AnyOf: AND / OR composition (flattened, any depth; rendered
                  and evaluated without recursion)

String literals are always quoted and escaped, so query text can never
leave the literal context; field names that would close a ``{...}``
reference are rejected.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Union

from staybase.errors import ValidationError
from staybase.schemas.property import DateFields, TableConfig

_LITERAL_ESCAPES = str.maketrans({
    "\\": "\\\\",
    "'": "\\'",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
})


def quote_literal(value: str) -> str:
    """Render a string as a single-quoted, escaped formula literal."""
    return "'" + value.translate(_LITERAL_ESCAPES) + "'"


def _check_field_name(name: str) -> str:
    if not name:
        raise ValidationError("Field name must not be empty")
    if "{" in name or "}" in name:
        raise ValidationError(f"Field name contains a reserved character: {name!r}")
    return name


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        return ", ".join(_as_text(v) for v in value)
    return str(value)


def _as_date(value: Any) -> date | None:
    """Interpret a field value as a calendar date (None when not a date)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and len(value) >= 10:
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            return None
    return None


# =============================================================================
# Targets
# =============================================================================


@dataclass(frozen=True)
class FieldRef:
    """Reference to a single field: ``{name}``."""

    name: str

    def __post_init__(self) -> None:
        _check_field_name(self.name)

    def to_formula(self) -> str:
        return "{" + self.name + "}"

    def text(self, fields: dict[str, Any]) -> str:
        return _as_text(fields.get(self.name))


@dataclass(frozen=True)
class Concatenation:
    """Several fields joined by a separator: ``CONCATENATE({a}, ' ', {b})``."""

    names: tuple[str, ...]
    separator: str = " "

    def __post_init__(self) -> None:
        if not self.names:
            raise ValidationError("Concatenation needs at least one field")
        for name in self.names:
            _check_field_name(name)

    def to_formula(self) -> str:
        parts: list[str] = []
        for i, name in enumerate(self.names):
            if i:
                parts.append(quote_literal(self.separator))
            parts.append("{" + name + "}")
        return f"CONCATENATE({', '.join(parts)})"

    def text(self, fields: dict[str, Any]) -> str:
        return self.separator.join(_as_text(fields.get(name)) for name in self.names)


Target = Union[FieldRef, Concatenation]


# =============================================================================
# Predicates
# =============================================================================


@dataclass(frozen=True)
class Contains:
    """Lower-cased target contains the lower-cased query."""

    target: Target
    query: str

    def to_formula(self) -> str:
        return f"FIND(LOWER({quote_literal(self.query)}), LOWER({self.target.to_formula()}))>0"

    def matches(self, fields: dict[str, Any]) -> bool:
        return self.query.lower() in self.target.text(fields).lower()


@dataclass(frozen=True)
class SameDay:
    """Date field falls on ``day``."""

    field: str
    day: date

    def __post_init__(self) -> None:
        _check_field_name(self.field)

    def to_formula(self) -> str:
        return f"IS_SAME({{{self.field}}}, '{self.day.isoformat()}', 'day')"

    def matches(self, fields: dict[str, Any]) -> bool:
        return _as_date(fields.get(self.field)) == self.day


@dataclass(frozen=True)
class RangeOverlap:
    """Check-in on or before ``end`` and check-out on or after ``start``.

    The store only offers strict comparisons, so the bounds are widened by
    exactly one day on each side to include both boundary dates.
    """

    checkin: str
    checkout: str
    start: date
    end: date

    def __post_init__(self) -> None:
        _check_field_name(self.checkin)
        _check_field_name(self.checkout)

    def to_formula(self) -> str:
        return (
            f"AND(IS_BEFORE({{{self.checkin}}}, DATEADD('{self.end.isoformat()}', 1, 'days')), "
            f"IS_AFTER({{{self.checkout}}}, DATEADD('{self.start.isoformat()}', -1, 'days')))"
        )

    def matches(self, fields: dict[str, Any]) -> bool:
        checkin = _as_date(fields.get(self.checkin))
        checkout = _as_date(fields.get(self.checkout))
        if checkin is None or checkout is None:
            return False
        return checkin < self.end + timedelta(days=1) and checkout > self.start - timedelta(days=1)


@dataclass(frozen=True)
class AllOf:
    """Logical AND of its terms."""

    terms: tuple["Expression", ...]

    def to_formula(self) -> str:
        return _walk(self, _render_node)

    def matches(self, fields: dict[str, Any]) -> bool:
        return _walk(self, lambda node, results: _evaluate_node(node, results, fields))


@dataclass(frozen=True)
class AnyOf:
    """Logical OR of its terms."""

    terms: tuple["Expression", ...]

    def to_formula(self) -> str:
        return _walk(self, _render_node)

    def matches(self, fields: dict[str, Any]) -> bool:
        return _walk(self, lambda node, results: _evaluate_node(node, results, fields))


Expression = Union[Contains, SameDay, RangeOverlap, AllOf, AnyOf]

_GROUP_FORMULA = {AllOf: ("AND", "TRUE()"), AnyOf: ("OR", "FALSE()")}


def _flatten(terms: Iterable["Expression"], kind: type) -> list["Expression"]:
    """Inline nested groups of the same kind (AND(a, AND(b, c)) == AND(a, b, c))."""
    flat: list[Expression] = []
    stack = list(reversed(list(terms)))
    while stack:
        term = stack.pop()
        if isinstance(term, kind):
            stack.extend(reversed(term.terms))
        else:
            flat.append(term)
    return flat


def _walk(root: "Expression", combine: Callable[[Any, list[Any]], Any]) -> Any:
    """Fold an expression tree post-order with an explicit stack.

    ``combine(node, child_results)`` is called once per node; leaves get an
    empty list. Groups are flattened first, so the walk holds one stack
    entry per pending node and never recurses.
    """
    results: list[Any] = []
    stack: list[tuple[Expression, list[Expression] | None]] = [(root, None)]
    while stack:
        node, children = stack.pop()
        if not isinstance(node, (AllOf, AnyOf)):
            results.append(combine(node, []))
        elif children is None:
            children = _flatten(node.terms, type(node))
            stack.append((node, children))
            stack.extend((child, None) for child in reversed(children))
        else:
            split = len(results) - len(children)
            child_results = results[split:]
            del results[split:]
            results.append(combine(node, child_results))
    return results[0]


def _render_node(node: "Expression", parts: list[str]) -> str:
    if not isinstance(node, (AllOf, AnyOf)):
        return node.to_formula()
    function, empty = _GROUP_FORMULA[type(node)]
    if not parts:
        return empty
    if len(parts) == 1:
        return parts[0]
    return f"{function}({', '.join(parts)})"


def _evaluate_node(node: "Expression", values: list[bool], fields: dict[str, Any]) -> bool:
    if isinstance(node, AllOf):
        return all(values)
    if isinstance(node, AnyOf):
        return any(values)
    return node.matches(fields)


def all_of(*terms: Expression) -> AllOf:
    return AllOf(tuple(terms))


def any_of(*terms: Expression) -> AnyOf:
    return AnyOf(tuple(terms))


# =============================================================================
# Builders used by the query operations
# =============================================================================


def date_range(date_fields: DateFields, start: date, end: date) -> RangeOverlap:
    """Bookings whose stay intersects the inclusive range [start, end]."""
    return RangeOverlap(
        checkin=date_fields.checkin,
        checkout=date_fields.checkout,
        start=start,
        end=end,
    )


def same_day(date_fields: DateFields, day: date) -> AnyOf:
    """Bookings checking in or checking out on ``day``."""
    return any_of(SameDay(date_fields.checkin, day), SameDay(date_fields.checkout, day))


def contains_any(targets: Iterable[Target], query: str) -> AnyOf:
    """OR of case-insensitive substring matches over ``targets``."""
    return AnyOf(tuple(Contains(target, query) for target in targets))


def guest_search(table: TableConfig, query: str) -> AnyOf:
    """Substring search over a table's guest name and email fields.

    Each name field is searched on its own; with several name fields the
    space-joined full name is searched as well.

    Raises:
        ValidationError: If the table has no guest identity fields configured.
    """
    targets: list[Target] = [FieldRef(name) for name in table.name_fields]
    if len(table.name_fields) > 1:
        targets.append(Concatenation(tuple(table.name_fields)))
    if table.email_field:
        targets.append(FieldRef(table.email_field))

    if not targets:
        raise ValidationError(
            f"Table {table.remote_name} has no guest name or email fields configured"
        )
    return contains_any(targets, query)
