"""Database interaction components for pgrest."""

from pgrest.db.client import DbClient, DbConfig, PoolConfig, QueryResult
from pgrest.db.registry import EntityBinding, EntityRegistry
from pgrest.db.repository import Executor, Repository

__all__ = [
    "DbClient",
    "DbConfig",
    "PoolConfig",
    "QueryResult",
    "EntityBinding",
    "EntityRegistry",
    "Executor",
    "Repository",
]
