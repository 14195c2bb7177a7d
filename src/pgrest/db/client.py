"""SQLAlchemy-backed implementation of the ``execute(sql, params) -> rows`` capability."""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence

from pydantic import BaseModel
from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Engine
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from pgrest.core.errors import DBError
from pgrest.core.logging import color_palette, log

_PLACEHOLDER_RE = re.compile(r"\$(\d+)")


class PoolConfig(BaseModel):
    """Connection pool settings passed to ``create_engine``."""

    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800
    pool_pre_ping: bool = True


class DbConfig(BaseModel):
    """Database connection settings; ``url`` overrides the individual parts."""

    driver: str = "postgresql+psycopg"
    host: str = "localhost"
    port: Optional[int] = 5432
    database: str = "postgres"
    user: Optional[str] = None
    password: Optional[str] = None
    url: Optional[str] = None
    echo: bool = False
    pool: PoolConfig = PoolConfig()

    def sqlalchemy_url(self) -> URL | str:
        if self.url:
            return self.url
        return URL.create(
            drivername=self.driver,
            username=self.user,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.database,
        )


@dataclass
class QueryResult:
    """Rows returned by a statement and the number of rows it affected."""

    rows: List[Dict[str, Any]] = field(default_factory=list)
    row_count: int = 0

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        return iter(self.rows)


def to_named_params(sql: str, params: Sequence[Any]) -> tuple[str, Dict[str, Any]]:
    """Rewrite ``$n`` placeholders as ``:pn`` bind parameters for ``sqlalchemy.text``."""
    named = _PLACEHOLDER_RE.sub(lambda m: f":p{m.group(1)}", sql)
    return named, {f"p{i}": value for i, value in enumerate(params, start=1)}


class DbClient:
    """Executes parameterized statements, each in its own transaction."""

    def __init__(self, config: Optional[DbConfig] = None, engine: Optional[Engine] = None):
        if engine is None:
            config = config or DbConfig()
            engine = create_engine(
                config.sqlalchemy_url(),
                echo=config.echo,
                **config.pool.model_dump(),
            )
        self.config = config
        self.engine = engine

    @classmethod
    def from_url(cls, url: str, **engine_kwargs: Any) -> "DbClient":
        return cls(engine=create_engine(url, **engine_kwargs))

    @classmethod
    def from_engine(cls, engine: Engine) -> "DbClient":
        return cls(engine=engine)

    def execute(self, sql: str, params: Sequence[Any] = ()) -> QueryResult:
        statement, bind = to_named_params(sql, params)
        try:
            with self.engine.begin() as conn:
                result = conn.execute(text(statement), bind)
                if result.returns_rows:
                    rows = [dict(row) for row in result.mappings().all()]
                    return QueryResult(rows=rows, row_count=len(rows))
                return QueryResult(rows=[], row_count=result.rowcount)
        except DBAPIError as e:
            raise DBError.from_driver_error(e) from e
        except SQLAlchemyError as e:
            raise DBError(message=type(e).__name__) from e

    def test_connection(self) -> bool:
        try:
            self.execute("SELECT 1")
        except DBError as e:
            log.error(f"Database connection failed: {color_palette['error'](e)}")
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()
