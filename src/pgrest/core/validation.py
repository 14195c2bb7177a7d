"""
Request validation against an entity's field schema.

The field schema (``EntityConfig.fields``) is compiled once into three
pydantic models:

- a filter model, where every field accepts its own type, a list of it or null,
  every field is optional and unknown keys (operators, JSON paths) pass;
- a create model, without the primary key when the server generates it;
- an update model, never containing the primary key.

Create and update models forbid unknown keys, and the values they produce
(after transforms such as ``to_lower``) are what gets persisted.
"""

from typing import Any, Dict, List, Mapping, Optional, Tuple, Type, Union

from pydantic import BaseModel, ConfigDict, Field, create_model
from pydantic import ValidationError as PydanticValidationError

from pgrest.common.types import base_field, is_json_path, split_field
from pgrest.core.config import EntityConfig, Pagination
from pgrest.core.errors import ValidationError
from pgrest.core.query.operators import UNVALIDATED_OPERATORS

PAGINATION_MESSAGE = "Pagination must contain keys 'page' and 'perPage' with integer values"

Row = Dict[str, Any]


def get_filter_values(filter: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Flatten mongo-style operator values into the leaf values they compare against.

    ``{"ip": {"$or": ["a", "b"]}}`` becomes ``{"ip": ["a", "b"]}``. Scalars,
    ``None`` and lists pass through unchanged, so a flat filter is returned
    as is. Values under pattern operators (``$like``, ``$ilike``...) and the
    flags of ``$null``/``$notNull`` are skipped, as are ``None`` leaves.
    """
    return {
        key: _leaf_values(value) if isinstance(value, Mapping) else value
        for key, value in filter.items()
    }


def _leaf_values(value: Mapping[str, Any]) -> List[Any]:
    values: List[Any] = []

    def walk(node: Any, key: Optional[str]) -> None:
        if isinstance(node, Mapping):
            for k, v in node.items():
                walk(v, k)
        elif isinstance(node, list):
            for item in node:
                walk(item, key)
        elif node is None or key in UNVALIDATED_OPERATORS:
            return
        else:
            values.append(node)

    walk(value, None)
    return values


def _to_validation_error(error: PydanticValidationError, prefix: Tuple[Any, ...] = ()) -> ValidationError:
    details = [
        {
            "field": ".".join(str(part) for part in prefix + tuple(e["loc"])),
            "message": e["msg"],
            "type": e["type"],
        }
        for e in error.errors()
    ]
    message = "; ".join(
        f"{d['field']}: {d['message']}" if d["field"] else d["message"] for d in details
    )
    return ValidationError(message, details)


class SchemaValidator:
    """Validates filter, payload, sort, pagination and columns for one entity."""

    def __init__(self, config: EntityConfig):
        self.config = config
        self.fields: Dict[str, Tuple[Any, bool]] = {
            name: split_field(spec) for name, spec in config.fields.items()
        }
        prefix = "".join(part.capitalize() for part in (config.name or config.table).split("_"))
        pk = config.primary_key

        self.filter_model = self._model(
            f"{prefix}Filter",
            {name: (Optional[Union[ann, List[ann]]], False) for name, (ann, _) in self.fields.items()},
            extra="allow",
        )
        self.create_model = self._model(
            f"{prefix}Create",
            {
                name: field
                for name, field in self.fields.items()
                if not (name == pk and config.generates_primary_key)
            },
            extra="forbid",
        )
        self.update_model = self._model(
            f"{prefix}Update",
            {name: (ann, False) for name, (ann, _) in self.fields.items() if name != pk},
            extra="forbid",
        )

    @staticmethod
    def _model(name: str, fields: Dict[str, Tuple[Any, bool]], extra: str) -> Type[BaseModel]:
        # Field names are carried as aliases so any column name is usable
        definitions = {
            f"field_{i}": (annotation, Field(... if required else None, alias=field_name))
            for i, (field_name, (annotation, required)) in enumerate(fields.items())
        }
        return create_model(name, __config__=ConfigDict(extra=extra), **definitions)

    def _validate_row(self, model: Type[BaseModel], row: Any, prefix: Tuple[Any, ...] = ()) -> Row:
        try:
            instance = model.model_validate(row)
        except PydanticValidationError as e:
            raise _to_validation_error(e, prefix) from e
        return instance.model_dump(by_alias=True, exclude_unset=True)

    # ===== Public checks =====

    def validate_filter(self, filter: Mapping[str, Any]) -> None:
        self._validate_row(self.filter_model, get_filter_values(filter))

    def validate_create(self, payload: Any) -> Union[Row, List[Row]]:
        if isinstance(payload, list):
            if not payload:
                raise ValidationError("Payload must contain at least one row")
            if not all(isinstance(row, Mapping) for row in payload):
                raise ValidationError("Payload must be an object or an array of objects")
            keys = set(payload[0].keys())
            if any(set(row.keys()) != keys for row in payload):
                raise ValidationError("All objects must have same keys in multi-row insert")
            return [
                self._validate_row(self.create_model, row, (i,))
                for i, row in enumerate(payload)
            ]
        if isinstance(payload, Mapping):
            return self._validate_row(self.create_model, payload)
        raise ValidationError("Payload must be an object or an array of objects")

    def validate_update(self, payload: Any) -> Row:
        if not isinstance(payload, Mapping):
            raise ValidationError("Payload must be an object")
        if not payload:
            raise ValidationError("Payload must contain at least one field")
        return self._validate_row(self.update_model, payload)

    def validate_sort(self, sort: Mapping[str, Any]) -> None:
        for key, direction in sort.items():
            known = key in self.fields or (is_json_path(key) and base_field(key) in self.fields)
            if not known:
                raise ValidationError(f"Sort field '{key}' not defined in validation config")
            if isinstance(direction, bool) or direction not in (1, -1):
                raise ValidationError(f"Sort direction for '{key}' must be 1 or -1")

    def validate_pagination(self, pagination: Any) -> Optional[Pagination]:
        if pagination is None or isinstance(pagination, Pagination):
            return pagination
        try:
            return Pagination.model_validate(pagination)
        except PydanticValidationError as e:
            raise ValidationError(PAGINATION_MESSAGE) from e

    def validate_columns(self, columns: Optional[List[str]]) -> None:
        for column in columns or []:
            if column not in self.fields:
                raise ValidationError(f"Column '{column}' not defined in validation config")

    def json_schema(self) -> Dict[str, Any]:
        """JSON-Schema-like description of the full field schema."""
        model = self._model(f"{self.create_model.__name__}Schema", self.fields, extra="forbid")
        schema = model.model_json_schema(by_alias=True)
        properties = {
            name: {k: v for k, v in prop.items() if k != "title"}
            for name, prop in schema.get("properties", {}).items()
        }
        for prop in properties.values():
            # Optional fields default to null; the default is not part of the contract
            if prop.get("default", 0) is None:
                del prop["default"]
        return {
            "title": self.config.table,
            "type": "object",
            "properties": properties,
            "required": [name for name, (_, required) in self.fields.items() if required],
        }
