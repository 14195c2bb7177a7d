"""Core utilities for pgrest: configuration, errors, logging and the request pipeline."""

from pgrest.core.errors import (
    ConfigError,
    DBError,
    NotFoundError,
    NotImplementedOperationError,
    PgRestError,
    ValidationError,
)
from pgrest.core.logging import Logger, color_palette, log
from pgrest.core.config import ApiConfig, EntityConfig, Pagination, UpsertPolicy
from pgrest.core.hooks import EntityHooks

__all__ = [
    "ConfigError",
    "DBError",
    "NotFoundError",
    "NotImplementedOperationError",
    "PgRestError",
    "ValidationError",
    "Logger",
    "color_palette",
    "log",
    "ApiConfig",
    "EntityConfig",
    "Pagination",
    "UpsertPolicy",
    "EntityHooks",
]
