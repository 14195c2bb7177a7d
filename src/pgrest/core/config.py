"""Configuration models for the API application and for entity bindings."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from pgrest.core.errors import ConfigError
from pgrest.core.hooks import EntityHooks


class ApiConfig(BaseModel):
    """Application-level settings applied to the FastAPI app."""

    project_name: str = "pgrest API"
    version: str = "0.1.0"
    description: str = "REST API generated from table bindings"
    author: Optional[str] = None
    email: Optional[str] = None
    license_info: Optional[Dict[str, str]] = None
    debug_mode: bool = False
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])


class Pagination(BaseModel):
    """A page request; ``perPage`` is the wire name of ``per_page``."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    page: int = Field(ge=1)
    per_page: int = Field(default=100, ge=1, alias="perPage")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page


class UpsertPolicy(BaseModel):
    """On insert conflict over ``conflict_fields``, refresh ``update_fields``."""

    conflict_fields: List[str]
    update_fields: List[str]


class EntityConfig(BaseModel):
    """Static binding of a table, its field schema and hooks to a base route."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    table: str
    endpoint: str
    primary_key: str
    fields: Dict[str, Any] = Field(default_factory=dict)
    name: Optional[str] = None
    primary_key_auto: bool = False
    primary_key_guid: bool = True
    on_create_timestamp: Optional[str] = None
    on_update_timestamp: Optional[str] = None
    upsert: Optional[UpsertPolicy] = None
    default_pagination: Optional[Pagination] = None
    hooks: EntityHooks = Field(default_factory=EntityHooks)
    show_sql: bool = False
    max_payload_bytes: Optional[int] = None

    @model_validator(mode="after")
    def _default_name(self) -> "EntityConfig":
        if not self.name:
            self.name = self.endpoint.rstrip("/").split("/")[-1]
        return self

    @property
    def generates_primary_key(self) -> bool:
        return self.primary_key_auto or self.primary_key_guid

    def check(self) -> None:
        """Fail fast on bindings that can never serve a request."""
        if not self.fields:
            raise ConfigError("Validation missing from API config")
        if self.primary_key not in self.fields:
            raise ConfigError(f"Primary key '{self.primary_key}' missing from validation config")
        if self.upsert:
            if not self.upsert.conflict_fields or not self.upsert.update_fields:
                raise ConfigError("Upsert requires at least one conflict field and one update field")
            unknown = [
                f for f in self.upsert.conflict_fields + self.upsert.update_fields
                if f not in self.fields
            ]
            if unknown:
                raise ConfigError(f"Upsert fields not in validation config: {', '.join(unknown)}")
