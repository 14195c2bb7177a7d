"""Per-entity data access: builds statements and runs them on a DB client."""

from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Union

from pgrest.core.config import EntityConfig, Pagination
from pgrest.core.logging import color_palette, log
from pgrest.core.query import QueryBuilder, SqlQuery
from pgrest.db.client import QueryResult


class Executor(Protocol):
    def execute(self, sql: str, params: Sequence[Any] = ()) -> QueryResult: ...


class Repository:
    """CRUD statements for the table bound by ``config``."""

    def __init__(self, config: EntityConfig, db: Executor):
        self.config = config
        self.db = db

    def _builder(self) -> QueryBuilder:
        return QueryBuilder(self.config.table, upsert=self.config.upsert)

    def _run(self, query: SqlQuery) -> QueryResult:
        if self.config.show_sql:
            log.debug(f"{color_palette['sql'](query.sql)} {query.params!r}")
        return self.db.execute(query.sql, query.params)

    def find(
        self,
        filter: Mapping[str, Any],
        sort: Optional[Mapping[str, int]] = None,
        pagination: Optional[Pagination] = None,
        columns: Optional[List[str]] = None,
    ) -> QueryResult:
        query = (
            self._builder()
            .select()
            .set_filter(filter)
            .set_sort(sort)
            .set_pagination(pagination)
            .set_columns(columns)
            .build()
        )
        return self._run(query)

    def find_row_count(self, filter: Mapping[str, Any]) -> int:
        query = self._builder().select_row_count().set_filter(filter).build()
        result = self._run(query)
        return int(result.rows[0]["totalrowcount"])

    def create(
        self,
        data: Union[Dict[str, Any], List[Dict[str, Any]]],
        columns: Optional[List[str]] = None,
    ) -> QueryResult:
        query = self._builder().insert().set_data(data).set_columns(columns).build()
        return self._run(query)

    def update(
        self,
        filter: Mapping[str, Any],
        data: Dict[str, Any],
        columns: Optional[List[str]] = None,
    ) -> QueryResult:
        query = (
            self._builder()
            .update()
            .set_filter(filter)
            .set_data(data)
            .set_columns(columns)
            .build()
        )
        return self._run(query)

    def delete(self, filter: Mapping[str, Any]) -> QueryResult:
        query = self._builder().delete().set_filter(filter).build()
        return self._run(query)
