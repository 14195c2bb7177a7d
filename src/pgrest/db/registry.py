"""Registry of bound entities, built once at startup."""

from dataclasses import dataclass
from typing import Dict, Iterator

from pgrest.core.config import EntityConfig
from pgrest.core.errors import ConfigError
from pgrest.core.request import RequestProcessor
from pgrest.core.validation import SchemaValidator
from pgrest.db.repository import Executor, Repository


@dataclass(frozen=True)
class EntityBinding:
    """Everything a controller needs to serve one entity."""

    config: EntityConfig
    validator: SchemaValidator
    processor: RequestProcessor
    repository: Repository


class EntityRegistry:
    """Maps entity names to their bindings; read-only once the app is serving."""

    def __init__(self) -> None:
        self._bindings: Dict[str, EntityBinding] = {}

    def register(self, config: EntityConfig, db: Executor) -> EntityBinding:
        config.check()
        if config.name in self._bindings:
            raise ConfigError(f"Entity '{config.name}' is already registered")

        validator = SchemaValidator(config)
        binding = EntityBinding(
            config=config,
            validator=validator,
            processor=RequestProcessor(config, validator),
            repository=Repository(config, db),
        )
        self._bindings[config.name] = binding
        return binding

    def get(self, name: str) -> EntityBinding:
        try:
            return self._bindings[name]
        except KeyError:
            raise ConfigError(f"Entity '{name}' is not registered") from None

    def __contains__(self, name: object) -> bool:
        return name in self._bindings

    def __iter__(self) -> Iterator[EntityBinding]:
        return iter(self._bindings.values())

    def __len__(self) -> int:
        return len(self._bindings)
