# src/pgrest/core/query/filters.py
"""
Filter parsing and rendering.

A request filter is a loosely typed mapping such as::

    {"ip": ["127.0.0.1", "10.0.0.1"], "date_updated": None,
     "email": {"$ilike": "%@example.com"},
     "$or": [{"session_data->>username": "bob"}, {"date_created": {"$gt": "2018-01-01"}}]}

``parse_filter`` turns it into a tree of ``Condition`` objects, each of which
renders itself to SQL while binding its values through a shared
``QueryParams`` accumulator.
"""

import re
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Sequence, Tuple

from pgrest.core.errors import ValidationError
from pgrest.core.query.operators import (
    COMPARISON_OPERATORS,
    LIST_OPERATORS,
    LOGICAL_OPERATORS,
    NULL_OPERATORS,
    PATTERN_OPERATORS,
)

IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
PATH_SEGMENT_RE = re.compile(r"^[A-Za-z0-9_]+$")
_PATH_TOKEN_RE = re.compile(r"(->>?)")

SCALAR_TYPES = (str, int, float, bool)


class QueryParams:
    """Ordered list of bound values; hands out ``$n`` placeholders in sequence."""

    def __init__(self) -> None:
        self.values: List[Any] = []

    def bind(self, value: Any) -> str:
        self.values.append(value)
        return f"${len(self.values)}"

    def bind_all(self, values: Sequence[Any]) -> List[str]:
        return [self.bind(value) for value in values]

    def __len__(self) -> int:
        return len(self.values)


def quote_identifier(name: str) -> str:
    if not isinstance(name, str) or not IDENTIFIER_RE.match(name):
        raise ValidationError(f"Invalid field name '{name}'")
    return f'"{name}"'


def quote_table(table: str) -> str:
    """Quote a possibly schema-qualified table name."""
    return ".".join(quote_identifier(part) for part in table.split("."))


@dataclass(frozen=True)
class FieldRef:
    """A column, optionally followed by JSON extraction steps (``col->'a'->>'b'``)."""

    column: str
    path: Tuple[Tuple[str, str], ...] = ()

    @classmethod
    def parse(cls, key: str) -> "FieldRef":
        tokens = _PATH_TOKEN_RE.split(key)
        column, rest = tokens[0], tokens[1:]
        quote_identifier(column)
        path = []
        for i in range(0, len(rest), 2):
            op, segment = rest[i], rest[i + 1]
            if not PATH_SEGMENT_RE.match(segment):
                raise ValidationError(f"Invalid JSON path in field '{key}'")
            path.append((op, segment))
        return cls(column, tuple(path))

    def render(self) -> str:
        sql = quote_identifier(self.column)
        for op, segment in self.path:
            sql += f"{op}'{segment}'"
        return sql


class Condition:
    """A node of the parsed filter tree."""

    def render(self, params: QueryParams) -> str:
        raise NotImplementedError

    def matches_all(self) -> bool:
        """True when the condition cannot exclude any row."""
        return False


@dataclass
class Always(Condition):
    def render(self, params: QueryParams) -> str:
        return "1=1"

    def matches_all(self) -> bool:
        return True


@dataclass
class Never(Condition):
    def render(self, params: QueryParams) -> str:
        return "0=1"


@dataclass
class IsNull(Condition):
    field: FieldRef
    negated: bool = False

    def render(self, params: QueryParams) -> str:
        return f"{self.field.render()} IS {'NOT ' if self.negated else ''}NULL"


@dataclass
class Compare(Condition):
    field: FieldRef
    operator: str
    value: Any

    def render(self, params: QueryParams) -> str:
        return f"{self.field.render()} {self.operator} {params.bind(self.value)}"


@dataclass
class InList(Condition):
    field: FieldRef
    values: List[Any]
    negated: bool = False

    def render(self, params: QueryParams) -> str:
        binds = ", ".join(params.bind_all(self.values))
        return f"{self.field.render()} {'NOT IN' if self.negated else 'IN'} ({binds})"


@dataclass
class Match(Condition):
    field: FieldRef
    operator: str
    pattern: str

    def render(self, params: QueryParams) -> str:
        return f"{self.field.render()} {self.operator} {params.bind(self.pattern)}"


@dataclass
class Group(Condition):
    conjunction: str
    conditions: List[Condition] = field(default_factory=list)

    def matches_all(self) -> bool:
        if self.conjunction == "AND":
            return all(c.matches_all() for c in self.conditions)
        return any(c.matches_all() for c in self.conditions)

    def render(self, params: QueryParams) -> str:
        if not self.conditions:
            # Empty AND is vacuously true, empty OR matches nothing
            return "1=1" if self.conjunction == "AND" else "0=1"
        parts = [condition.render(params) for condition in self.conditions]
        if len(parts) == 1:
            return parts[0]
        return "(" + f" {self.conjunction} ".join(parts) + ")"


def matches_all(conditions: List[Condition]) -> bool:
    """True when top-level conditions select every row of the table."""
    return all(c.matches_all() for c in conditions)


def render_where(conditions: List[Condition], params: QueryParams) -> str:
    """Render top-level conditions as a `` WHERE ...`` clause joined by AND."""
    if not conditions:
        return ""
    return " WHERE " + " AND ".join(c.render(params) for c in conditions)


# ===== Parsing =====


def parse_filter(filter: Mapping[str, Any]) -> List[Condition]:
    """Parse a filter object into top-level conditions (implicitly AND-ed)."""
    if not isinstance(filter, Mapping):
        raise ValidationError("Filter must be an object")

    conditions: List[Condition] = []
    for key, value in filter.items():
        if key in LOGICAL_OPERATORS:
            branches = [_parse_clause(key, sub) for sub in _branches(key, value)]
            conditions.append(Group(LOGICAL_OPERATORS[key], branches))
        elif key.startswith("$"):
            raise ValidationError(f"Unsupported filter operator '{key}'")
        else:
            conditions.append(parse_field(FieldRef.parse(key), value))
    return conditions


def _branches(key: str, value: Any) -> List[Any]:
    if isinstance(value, list):
        branches = value
    elif isinstance(value, Mapping):
        branches = [{k: v} for k, v in value.items()]
    else:
        raise ValidationError(f"'{key}' expects an array of filter objects")
    if not branches and LOGICAL_OPERATORS[key] == "AND":
        raise ValidationError(f"'{key}' expects at least one filter object")
    return branches


def _parse_clause(key: str, sub: Any) -> Condition:
    if not isinstance(sub, Mapping) or not sub:
        raise ValidationError(f"'{key}' expects an array of filter objects")
    return Group("AND", parse_filter(sub))


def parse_field(ref: FieldRef, value: Any) -> Condition:
    """Parse the value of a single field key."""
    if value is None:
        return IsNull(ref)
    if isinstance(value, list):
        return _in_list(ref, value, negated=False)
    if isinstance(value, Mapping):
        if not value:
            raise ValidationError(f"Empty operator object for field '{ref.column}'")
        parts = [parse_operator(ref, op, operand) for op, operand in value.items()]
        return parts[0] if len(parts) == 1 else Group("AND", parts)
    return Compare(ref, "=", _scalar(ref, value))


def parse_operator(ref: FieldRef, op: str, operand: Any) -> Condition:
    if op in LOGICAL_OPERATORS:
        if isinstance(operand, list):
            branches = [parse_field(ref, item) for item in operand]
        elif isinstance(operand, Mapping):
            branches = [parse_operator(ref, k, v) for k, v in operand.items()]
        else:
            raise ValidationError(f"'{op}' on field '{ref.column}' expects an array")
        if not branches and LOGICAL_OPERATORS[op] == "AND":
            raise ValidationError(f"'{op}' on field '{ref.column}' expects at least one value")
        return Group(LOGICAL_OPERATORS[op], branches)

    if op in ("$eq", "$ne") and operand is None:
        return IsNull(ref, negated=op == "$ne")

    if op in COMPARISON_OPERATORS:
        return Compare(ref, COMPARISON_OPERATORS[op], _scalar(ref, operand))

    if op in LIST_OPERATORS:
        if not isinstance(operand, list):
            raise ValidationError(f"'{op}' on field '{ref.column}' expects an array")
        return _in_list(ref, operand, negated=LIST_OPERATORS[op])

    if op in PATTERN_OPERATORS:
        if not isinstance(operand, str):
            raise ValidationError(f"'{op}' on field '{ref.column}' expects a string pattern")
        return Match(ref, PATTERN_OPERATORS[op], operand)

    if op in NULL_OPERATORS:
        return IsNull(ref, negated=NULL_OPERATORS[op] == bool(operand))

    raise ValidationError(f"Unsupported filter operator '{op}'")


def _in_list(ref: FieldRef, values: List[Any], negated: bool) -> Condition:
    if not values:
        return Always() if negated else Never()
    return InList(ref, [_scalar(ref, v) for v in values], negated=negated)


def _scalar(ref: FieldRef, value: Any) -> Any:
    if not isinstance(value, SCALAR_TYPES):
        raise ValidationError(f"Invalid filter value for field '{ref.column}'")
    return value
