"""Translation of request parameters into parameterized SQL."""

from pgrest.core.query.builder import QueryBuilder, SqlQuery
from pgrest.core.query.filters import FieldRef, QueryParams, parse_filter

__all__ = ["QueryBuilder", "SqlQuery", "FieldRef", "QueryParams", "parse_filter"]
