"""
pgrest: generate FastAPI CRUD routes for a database table from a declarative config.
"""

from pgrest.api import ApiClient, ApiError
from pgrest.core import (
    ApiConfig,
    ConfigError,
    DBError,
    EntityConfig,
    EntityHooks,
    NotFoundError,
    Pagination,
    UpsertPolicy,
    ValidationError,
    log,
)
from pgrest.core.query import QueryBuilder
from pgrest.db import DbClient, DbConfig, EntityRegistry, PoolConfig
from pgrest.pgrest import PgRest

__version__ = "0.1.0"

__all__ = [
    "ApiClient",
    "ApiError",
    "ApiConfig",
    "ConfigError",
    "DBError",
    "EntityConfig",
    "EntityHooks",
    "NotFoundError",
    "Pagination",
    "UpsertPolicy",
    "ValidationError",
    "log",
    "QueryBuilder",
    "DbClient",
    "DbConfig",
    "EntityRegistry",
    "PoolConfig",
    "PgRest",
]
