"""
Schema introspection endpoint.

Exposes the field schema of a bound entity as a JSON-Schema-like document,
together with its primary key policy, under ``{endpoint}/schema``.
"""

from typing import Any, Dict

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from pgrest.api.responses import success_response
from pgrest.db.registry import EntityBinding

# ===== Response Models =====


class PrimaryKeyPolicy(BaseModel):
    """Primary key configuration of an entity."""

    model_config = ConfigDict(populate_by_name=True)

    primary_key: str = Field(alias="primaryKey")
    primary_key_auto: bool = Field(alias="primaryKeyAuto")
    primary_key_guid: bool = Field(alias="primaryKeyGuid")


class EntitySchema(BaseModel):
    """Schema description returned in the ``data`` field."""

    model_config = ConfigDict(populate_by_name=True)

    json_schema: Dict[str, Any] = Field(alias="jsonSchema")
    config: PrimaryKeyPolicy


def build_entity_schema(binding: EntityBinding) -> EntitySchema:
    config = binding.config
    return EntitySchema(
        json_schema=binding.validator.json_schema(),
        config=PrimaryKeyPolicy(
            primary_key=config.primary_key,
            primary_key_auto=config.primary_key_auto,
            primary_key_guid=config.primary_key_guid,
        ),
    )


class SchemaOps:
    """Schema route generator for one entity."""

    def __init__(self, binding: EntityBinding, router: APIRouter):
        self.binding = binding
        self.router = router

    def generate_route(self) -> None:
        """Register ``GET {endpoint}/schema``; must precede the ``/{id}`` routes."""
        config = self.binding.config
        schema = build_entity_schema(self.binding).model_dump(by_alias=True)

        @self.router.get(
            f"{config.endpoint.rstrip('/')}/schema",
            summary=f"Get API schema definition for {config.table}",
        )
        def get_schema() -> JSONResponse:
            return success_response(schema)
