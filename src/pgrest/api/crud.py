# src/pgrest/api/crud.py
"""CRUD operations for a bound table with FastAPI routes."""

import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from fastapi import APIRouter, Body, Query, Request
from fastapi.responses import JSONResponse

from pgrest.api.responses import error_response, pagination_response, success_response
from pgrest.core import errors
from pgrest.core.request import Operation, RawRequest
from pgrest.db.registry import EntityBinding

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

FILTER_DOC = "JSON encoded filter, e.g. {\"ip\": {\"$or\": [\"a\", \"b\"]}}"
SORT_DOC = "JSON encoded sort, e.g. {\"date_created\": -1}"
PAGINATION_DOC = "JSON encoded pagination, e.g. {\"page\": 1, \"perPage\": 50}"
COLUMNS_DOC = "Comma separated list of columns to return"


def _timestamp() -> str:
    return datetime.now().strftime(TIMESTAMP_FORMAT)


class CrudOps:
    """Binds the CRUD endpoint family of one entity to a router."""

    def __init__(self, binding: EntityBinding, router: APIRouter):
        """Initialize CRUD handler with the entity binding and target router."""
        self.binding = binding
        self.config = binding.config
        self.processor = binding.processor
        self.repo = binding.repository
        self.hooks = binding.config.hooks
        self.router = router

    @property
    def endpoint(self) -> str:
        return self.config.endpoint.rstrip("/")

    # ===== Controller =====

    def find_one(self, request: RawRequest) -> JSONResponse:
        command = self.processor.process(request, Operation.FIND_ONE)
        result = self.repo.find(command.filter, columns=command.columns)
        if len(result.rows) != 1:
            raise errors.NotFoundError(f"{self.config.table} record not found")
        return success_response(self.hooks.post_select(result.rows)[0])

    def find_many(self, request: RawRequest) -> JSONResponse:
        command = self.processor.process(request, Operation.FIND_MANY)
        result = self.repo.find(
            command.filter, command.sort, command.pagination, command.columns
        )
        total_rows = self.repo.find_row_count(command.filter)
        return success_response(
            self.hooks.post_select(result.rows),
            pagination=pagination_response(command.pagination, total_rows),
        )

    def create(self, request: RawRequest) -> JSONResponse:
        command = self.processor.process(request, Operation.CREATE)
        data = self.hooks.pre_insert(command.data)

        is_many = isinstance(data, list)
        stamp = _timestamp()
        rows: List[Dict[str, Any]] = []
        for row in data if is_many else [data]:
            row = dict(row)
            if not self.config.primary_key_auto and self.config.primary_key_guid:
                row[self.config.primary_key] = str(uuid.uuid4())
            if self.config.on_create_timestamp:
                row[self.config.on_create_timestamp] = stamp
            rows.append(row)

        result = self.repo.create(rows, command.columns)
        return success_response(
            result.rows if is_many else result.rows[0], status_code=201
        )

    def update_one(self, request: RawRequest) -> JSONResponse:
        command = self.processor.process(request, Operation.UPDATE_ONE)
        result = self.repo.update(command.filter, self._update_data(command.data), command.columns)
        if result.row_count != 1:
            raise errors.NotFoundError(f"{self.config.table} record not found")
        return success_response(result.rows[0], rowCount=result.row_count)

    def update_many(self, request: RawRequest) -> JSONResponse:
        command = self.processor.process(request, Operation.UPDATE_MANY)
        result = self.repo.update(command.filter, self._update_data(command.data), command.columns)
        # Zero matches on the bulk endpoint is a success with rowCount 0
        return success_response(result.rows, rowCount=result.row_count)

    def replace_one(self, request: RawRequest) -> JSONResponse:
        raise errors.NotImplementedOperationError("Replacing a record is not supported, use PATCH")

    def delete_one(self, request: RawRequest) -> JSONResponse:
        command = self.processor.process(request, Operation.DELETE_ONE)
        result = self.repo.delete(command.filter)
        if result.row_count == 0:
            raise errors.NotFoundError(f"{self.config.table} record not found")
        return success_response(None, rowCount=result.row_count)

    def delete_many(self, request: RawRequest) -> JSONResponse:
        command = self.processor.process(request, Operation.DELETE_MANY)
        result = self.repo.delete(command.filter)
        return success_response(None, rowCount=result.row_count)

    def _update_data(self, data: Dict[str, Any]) -> Dict[str, Any]:
        data = dict(self.hooks.pre_update(data))
        if self.config.on_update_timestamp:
            data[self.config.on_update_timestamp] = _timestamp()
        return data

    # ===== Routes =====

    def _raw_request(
        self,
        request: Request,
        filter: Optional[str] = None,
        sort: Optional[str] = None,
        pagination: Optional[str] = None,
        columns: Optional[str] = None,
        payload: Any = None,
    ) -> RawRequest:
        limit = self.config.max_payload_bytes
        length = request.headers.get("content-length")
        if limit and length and length.isdigit() and int(length) > limit:
            raise errors.ValidationError(f"Payload exceeds {limit} bytes")

        query = {
            key: value
            for key, value in (
                ("filter", filter),
                ("sort", sort),
                ("pagination", pagination),
                ("columns", columns),
            )
            if value is not None
        }
        return RawRequest(
            method=request.method,
            path_params=dict(request.path_params),
            query=query,
            payload=payload,
        )

    def _route(self, action: Callable[[RawRequest], JSONResponse], **raw: Any) -> JSONResponse:
        """Run a controller action, turning any error into an error envelope."""
        try:
            return action(self._raw_request(**raw))
        except Exception as e:
            return error_response(e)

    def read(self) -> None:
        """Add GET many and GET one routes."""
        table = self.config.table

        @self.router.get(self.endpoint, summary=f"Get many {table} records")
        def find_many(
            request: Request,
            filter: Optional[str] = Query(None, description=FILTER_DOC),
            sort: Optional[str] = Query(None, description=SORT_DOC),
            pagination: Optional[str] = Query(None, description=PAGINATION_DOC),
            columns: Optional[str] = Query(None, description=COLUMNS_DOC),
        ) -> JSONResponse:
            return self._route(
                self.find_many,
                request=request,
                filter=filter,
                sort=sort,
                pagination=pagination,
                columns=columns,
            )

        @self.router.get(f"{self.endpoint}/{{id}}", summary=f"Get single {table} record")
        def find_one(
            request: Request,
            id: str,
            columns: Optional[str] = Query(None, description=COLUMNS_DOC),
        ) -> JSONResponse:
            return self._route(self.find_one, request=request, columns=columns)

    def create_route(self) -> None:
        """Add POST route."""

        @self.router.post(self.endpoint, summary=f"Create {self.config.table} record(s)")
        def create(
            request: Request,
            payload: Any = Body(None),
            columns: Optional[str] = Query(None, description=COLUMNS_DOC),
        ) -> JSONResponse:
            return self._route(self.create, request=request, payload=payload, columns=columns)

    def update(self) -> None:
        """Add PATCH one, PATCH many and PUT routes."""
        table = self.config.table

        @self.router.patch(self.endpoint, summary=f"Patch many {table} records")
        def update_many(
            request: Request,
            payload: Any = Body(None),
            filter: Optional[str] = Query(None, description=FILTER_DOC),
            columns: Optional[str] = Query(None, description=COLUMNS_DOC),
        ) -> JSONResponse:
            return self._route(
                self.update_many,
                request=request,
                payload=payload,
                filter=filter,
                columns=columns,
            )

        @self.router.patch(f"{self.endpoint}/{{id}}", summary=f"Patch single {table} record")
        def update_one(
            request: Request,
            id: str,
            payload: Any = Body(None),
            columns: Optional[str] = Query(None, description=COLUMNS_DOC),
        ) -> JSONResponse:
            return self._route(self.update_one, request=request, payload=payload, columns=columns)

        @self.router.put(f"{self.endpoint}/{{id}}", summary=f"Replace single {table} record")
        def replace_one(request: Request, id: str) -> JSONResponse:
            return self._route(self.replace_one, request=request)

    def delete(self) -> None:
        """Add DELETE one and DELETE many routes."""
        table = self.config.table

        @self.router.delete(self.endpoint, summary=f"Delete many {table} records")
        def delete_many(
            request: Request,
            filter: Optional[str] = Query(None, description=FILTER_DOC),
        ) -> JSONResponse:
            return self._route(self.delete_many, request=request, filter=filter)

        @self.router.delete(f"{self.endpoint}/{{id}}", summary=f"Delete single {table} record")
        def delete_one(request: Request, id: str) -> JSONResponse:
            return self._route(self.delete_one, request=request)

    def generate_all(self) -> None:
        """Generate all CRUD routes."""
        self.read()
        self.create_route()
        self.update()
        self.delete()
