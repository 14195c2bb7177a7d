# src/pgrest/core/query/builder.py
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from pgrest.core.config import Pagination, UpsertPolicy
from pgrest.core.errors import ConfigError, ValidationError
from pgrest.core.query.filters import (
    FieldRef,
    QueryParams,
    parse_filter,
    quote_identifier,
    quote_table,
    render_where,
)

MODE_SELECT = "select"
MODE_SELECT_ROW_COUNT = "select-row-count"
MODE_INSERT = "insert"
MODE_UPDATE = "update"
MODE_DELETE = "delete"


@dataclass
class SqlQuery:
    """Parameterized SQL text with its ``$n`` values in order."""

    sql: str
    params: List[Any] = field(default_factory=list)


class QueryBuilder:
    """
    Builds a parameterized SQL statement for one table from API request parameters.

    Pick exactly one mode (``select``, ``select_row_count``, ``insert``,
    ``update``, ``delete``), set the filter/sort/pagination/columns/data that
    apply, then call ``build``::

        query = QueryBuilder("sessions").select().set_filter({"ip": "127.0.0.1"}).build()
    """

    def __init__(self, table: str, upsert: Optional[UpsertPolicy] = None):
        self.table = table
        self.upsert = upsert
        self.mode: Optional[str] = None

        self.data: Union[Dict[str, Any], List[Dict[str, Any]]] = {}
        self.filter: Mapping[str, Any] = {}
        self.sort: Mapping[str, int] = {}
        self.pagination: Optional[Pagination] = None
        self.columns: Optional[List[str]] = None

    # ----- modes -----

    def select(self) -> "QueryBuilder":
        self.mode = MODE_SELECT
        return self

    def select_row_count(self) -> "QueryBuilder":
        self.mode = MODE_SELECT_ROW_COUNT
        return self

    def insert(self) -> "QueryBuilder":
        self.mode = MODE_INSERT
        return self

    def update(self) -> "QueryBuilder":
        self.mode = MODE_UPDATE
        return self

    def delete(self) -> "QueryBuilder":
        self.mode = MODE_DELETE
        return self

    # ----- parameters -----

    def set_data(self, data: Union[Dict[str, Any], List[Dict[str, Any]], None] = None) -> "QueryBuilder":
        self.data = data if data is not None else {}
        return self

    def set_filter(self, filter: Optional[Mapping[str, Any]] = None) -> "QueryBuilder":
        self.filter = filter or {}
        return self

    def set_sort(self, sort: Optional[Mapping[str, int]] = None) -> "QueryBuilder":
        self.sort = sort or {}
        return self

    def set_pagination(self, pagination: Optional[Pagination] = None) -> "QueryBuilder":
        self.pagination = pagination
        return self

    def set_columns(self, columns: Optional[List[str]] = None) -> "QueryBuilder":
        self.columns = columns or None
        return self

    # ----- fragments -----

    def filter_sql(self, params: QueryParams) -> str:
        return render_where(parse_filter(self.filter), params)

    def sort_sql(self) -> str:
        parts = [
            f"{FieldRef.parse(key).render()} {'DESC' if direction == -1 else 'ASC'}"
            for key, direction in self.sort.items()
        ]
        return f" ORDER BY {', '.join(parts)}" if parts else ""

    def pagination_sql(self) -> str:
        # No pagination means every matching row is returned
        if self.pagination is None:
            return ""
        return f" LIMIT {int(self.pagination.per_page)} OFFSET {int(self.pagination.offset)}"

    def columns_sql(self) -> str:
        if not self.columns:
            return "*"
        return ", ".join(quote_identifier(c) for c in self.columns)

    # ----- statements -----

    def select_query(self) -> SqlQuery:
        params = QueryParams()
        sql = f"SELECT {self.columns_sql()} FROM {quote_table(self.table)}"
        sql += self.filter_sql(params)
        sql += self.sort_sql()
        sql += self.pagination_sql()
        return SqlQuery(sql, params.values)

    def select_row_count_query(self) -> SqlQuery:
        params = QueryParams()
        sql = f"SELECT COUNT(*) AS totalrowcount FROM {quote_table(self.table)}"
        sql += self.filter_sql(params)
        return SqlQuery(sql, params.values)

    def delete_query(self) -> SqlQuery:
        params = QueryParams()
        sql = f"DELETE FROM {quote_table(self.table)}"
        sql += self.filter_sql(params)
        return SqlQuery(sql, params.values)

    def insert_query(self) -> SqlQuery:
        rows = self.data if isinstance(self.data, list) else [self.data]
        if not rows:
            raise ValidationError("Insert requires at least one row")

        params = QueryParams()
        fields = list(rows[0].keys())
        sql = f"INSERT INTO {quote_table(self.table)}"

        if fields:
            columns = ", ".join(quote_identifier(f) for f in fields)
            values = ", ".join(
                "(" + ", ".join(params.bind_all([row.get(f) for f in fields])) + ")"
                for row in rows
            )
            sql += f" ({columns}) VALUES {values}"
        elif len(rows) == 1:
            sql += " DEFAULT VALUES"
        else:
            raise ValidationError("Multi-row insert requires at least one field")

        if self.upsert:
            conflict = ", ".join(quote_identifier(f) for f in self.upsert.conflict_fields)
            updates = ", ".join(
                f"{quote_identifier(f)}=EXCLUDED.{quote_identifier(f)}"
                for f in self.upsert.update_fields
            )
            sql += f" ON CONFLICT ({conflict}) DO UPDATE SET {updates}"

        sql += f" RETURNING {self.columns_sql()}"
        return SqlQuery(sql, params.values)

    def update_query(self) -> SqlQuery:
        if not isinstance(self.data, Mapping) or not self.data:
            raise ValidationError("Update requires at least one field")

        params = QueryParams()
        # Filter values are bound first, SET values continue the sequence
        where = self.filter_sql(params)
        parts = [f"{quote_identifier(f)}={params.bind(v)}" for f, v in self.data.items()]
        sql = f"UPDATE {quote_table(self.table)} SET {', '.join(parts)}{where}"
        sql += f" RETURNING {self.columns_sql()}"
        return SqlQuery(sql, params.values)

    def build(self) -> SqlQuery:
        """Get the SQL text and params for the current mode."""
        if self.mode == MODE_SELECT:
            return self.select_query()
        if self.mode == MODE_SELECT_ROW_COUNT:
            return self.select_row_count_query()
        if self.mode == MODE_INSERT:
            return self.insert_query()
        if self.mode == MODE_UPDATE:
            return self.update_query()
        if self.mode == MODE_DELETE:
            return self.delete_query()
        raise ConfigError("Invalid SQL query mode")
