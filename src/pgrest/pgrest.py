"""Main pgrest application class."""

from typing import Dict, List, Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pgrest.api.crud import CrudOps
from pgrest.api.responses import error_response
from pgrest.api.schema import SchemaOps
from pgrest.core.config import ApiConfig, EntityConfig
from pgrest.core.errors import PgRestError, ValidationError
from pgrest.core.logging import color_palette, log
from pgrest.db.registry import EntityBinding, EntityRegistry
from pgrest.db.repository import Executor
from pgrest.ui import display_entity_structure, print_welcome


class PgRest:
    """Registers entity bindings and mounts their routes on a FastAPI app."""

    def __init__(
        self,
        config: Optional[ApiConfig] = None,
        app: Optional[FastAPI] = None,
        registry: Optional[EntityRegistry] = None,
    ):
        """Initialize the app; entities are added with ``register``."""
        self.config = config or ApiConfig()
        self.app = app or FastAPI()
        self.registry = registry or EntityRegistry()
        self.routers: Dict[str, APIRouter] = {}
        if self.config.debug_mode:
            log.set_level("DEBUG")
        self._initialize_app()
        self.configure_error_handlers()

    def _initialize_app(self) -> None:
        """Initialize FastAPI app configuration."""
        self.app.title = self.config.project_name
        self.app.version = self.config.version
        self.app.description = self.config.description

        if self.config.author:
            self.app.contact = {"name": self.config.author, "email": self.config.email}

        if self.config.license_info:
            self.app.license_info = self.config.license_info

        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=self.config.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    def register(self, config: EntityConfig, db: Executor, verbose: bool = False) -> EntityBinding:
        """
        Bind a table to its endpoint and generate its routes.

        Raises ``ConfigError`` straight away when the binding is unusable.
        """
        binding = self.registry.register(config, db)

        router = APIRouter(tags=[config.name or config.table])
        # The schema route goes first so `/schema` is not taken as an id
        SchemaOps(binding, router).generate_route()
        CrudOps(binding, router).generate_all()
        self.routers[config.name] = router
        self.app.include_router(router)

        log.success(
            f"Generated routes for {color_palette['entity'](config.name)} "
            f"({color_palette['table'](config.table)}) at {color_palette['endpoint'](config.endpoint)}"
        )
        if verbose:
            display_entity_structure(config)
        return binding

    def register_all(self, configs: List[EntityConfig], db: Executor, verbose: bool = False) -> None:
        log.section("Generating Entity Routes")
        with log.timed(f"Registered {len(configs)} entities"), log.indented():
            for config in configs:
                self.register(config, db, verbose=verbose)
        log.table(
            ["Entity", "Table", "Endpoint"],
            [[c.name, c.table, c.endpoint] for c in configs],
            title="Entities",
        )

    def print_welcome(self, host: str = "localhost", port: int = 8000) -> None:
        """Print welcome message with app information."""
        print_welcome(self.config.project_name, self.config.version, host, port)

    def configure_error_handlers(self) -> None:
        """
        Configure global error handlers for the API.

        Every error is answered with the standard ``{error, data}`` envelope.
        """

        @self.app.exception_handler(RequestValidationError)
        async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
            messages = "; ".join(
                f"{'.'.join(str(p) for p in e.get('loc', ()))}: {e.get('msg')}" for e in exc.errors()
            )
            return error_response(ValidationError(messages))

        @self.app.exception_handler(PgRestError)
        async def pgrest_error_handler(request: Request, exc: PgRestError) -> JSONResponse:
            return error_response(exc)

        @self.app.exception_handler(Exception)
        async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
            return error_response(exc)
