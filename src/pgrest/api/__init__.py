"""API generation components for pgrest."""

from pgrest.api.client import ApiClient, ApiError
from pgrest.api.crud import CrudOps
from pgrest.api.responses import classify_error, error_response, success_response
from pgrest.api.schema import SchemaOps

__all__ = [
    "ApiClient",
    "ApiError",
    "CrudOps",
    "SchemaOps",
    "classify_error",
    "error_response",
    "success_response",
]
