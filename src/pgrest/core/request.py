"""Turns an inbound request into a validated ``Command``."""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pgrest.core.config import EntityConfig, Pagination
from pgrest.core.errors import ValidationError
from pgrest.core.query.filters import matches_all, parse_filter
from pgrest.core.validation import PAGINATION_MESSAGE, SchemaValidator


class Operation(str, Enum):
    FIND_ONE = "find_one"
    FIND_MANY = "find_many"
    CREATE = "create"
    UPDATE_ONE = "update_one"
    UPDATE_MANY = "update_many"
    DELETE_ONE = "delete_one"
    DELETE_MANY = "delete_many"

    @property
    def is_bulk_mutation(self) -> bool:
        return self in (Operation.UPDATE_MANY, Operation.DELETE_MANY)


@dataclass
class RawRequest:
    """Framework-neutral view of an HTTP request."""

    method: str = "GET"
    path_params: Dict[str, Any] = field(default_factory=dict)
    query: Dict[str, str] = field(default_factory=dict)
    payload: Any = None


@dataclass
class Command:
    """Normalized request: what to select and what to write."""

    filter: Dict[str, Any] = field(default_factory=dict)
    sort: Dict[str, int] = field(default_factory=dict)
    pagination: Optional[Pagination] = None
    columns: Optional[List[str]] = None
    data: Union[Dict[str, Any], List[Dict[str, Any]]] = field(default_factory=dict)


def _parse_json_object(raw: str, label: str) -> Dict[str, Any]:
    try:
        value = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{label} must be valid JSON") from e
    if not isinstance(value, dict):
        raise ValidationError(f"{label} must be a JSON object")
    return value


class RequestProcessor:
    """The single funnel every operation passes through before any SQL is built."""

    def __init__(self, config: EntityConfig, validator: Optional[SchemaValidator] = None):
        self.config = config
        self.validator = validator or SchemaValidator(config)

    def process(self, request: RawRequest, operation: Operation) -> Command:
        command = Command(data=request.payload if request.payload is not None else {})
        query = request.query

        # Path addressing wins over the query string filter
        path_filter: Dict[str, Any] = {}
        if "id" in request.path_params:
            path_filter[self.config.primary_key] = request.path_params["id"]

        if query.get("filter"):
            command.filter = {**_parse_json_object(query["filter"], "Filter"), **path_filter}
        else:
            command.filter = path_filter

        if query.get("sort"):
            command.sort = {**command.sort, **_parse_json_object(query["sort"], "Sort")}

        if query.get("pagination"):
            try:
                command.pagination = _parse_json_object(query["pagination"], "Pagination")
            except ValidationError:
                raise ValidationError(PAGINATION_MESSAGE) from None
        else:
            command.pagination = self.config.default_pagination

        if query.get("columns"):
            command.columns = [c.strip() for c in query["columns"].split(",") if c.strip()]

        self.validate(command, operation)

        # Refuse to update/delete every row, by omission or by a filter that excludes nothing
        if operation.is_bulk_mutation and matches_all(parse_filter(command.filter)):
            raise ValidationError("Filter parameter is required")

        return self.config.hooks.pre_query(command, request)

    def validate(self, command: Command, operation: Operation) -> None:
        """Run every check; the first failure raises."""
        validator = self.validator
        validator.validate_filter(command.filter)
        if operation == Operation.CREATE:
            command.data = validator.validate_create(command.data)
        elif operation in (Operation.UPDATE_ONE, Operation.UPDATE_MANY):
            command.data = validator.validate_update(command.data)
        validator.validate_sort(command.sort)
        command.pagination = validator.validate_pagination(command.pagination)
        validator.validate_columns(command.columns)
