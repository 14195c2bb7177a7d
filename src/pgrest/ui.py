# src/pgrest/ui.py

from typing import Any, get_args, get_origin

from rich.align import Align
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .common.types import split_field
from .core.config import EntityConfig
from .core.logging import console


def type_name(annotation: Any) -> str:
    """Short readable name for a field annotation."""
    if hasattr(annotation, "__metadata__"):
        # Annotated[T, ...] -> T
        return type_name(get_args(annotation)[0])
    if get_origin(annotation) is not None:
        return str(annotation).replace("typing.", "")
    return getattr(annotation, "__name__", str(annotation))


def display_entity_structure(config: EntityConfig) -> None:
    """Prints the field schema of an entity using a rich Table."""

    structure_table = Table(
        box=None, padding=(0, 1), show_header=False, show_edge=False
    )
    structure_table.add_column("Name", style="cyan", no_wrap=True, width=24)
    structure_table.add_column("Type", style="green", width=32)
    structure_table.add_column("Details", style="white")

    for name, spec in config.fields.items():
        annotation, required = split_field(spec)
        details = []
        if name == config.primary_key:
            details.append("[yellow]PK[/yellow]")
            if config.primary_key_auto:
                details.append("[dim]auto[/dim]")
            elif config.primary_key_guid:
                details.append("[dim]guid[/dim]")
        if name == config.on_create_timestamp:
            details.append("[blue]on create[/blue]")
        if name == config.on_update_timestamp:
            details.append("[blue]on update[/blue]")
        if config.upsert and name in config.upsert.conflict_fields:
            details.append("[magenta]upsert key[/magenta]")

        structure_table.add_row(
            f"{name}{'*' if required else ''}", type_name(annotation), " ".join(details)
        )

    console.print(structure_table)
    console.print()


def print_welcome(project_name: str, version: str, host: str, port: int) -> None:
    """Prints a welcome message using a rich Panel."""
    docs_url = f"http://{host}:{port}/docs"
    message = Text.from_markup(
        f"API Documentation available at [link={docs_url}]{docs_url}[/link]"
    )
    panel = Panel(
        Align.center(message, vertical="middle"),
        title=f"[bold green]{project_name} v{version}[/bold green]",
        border_style="blue",
        padding=(1, 2),
    )
    console.print(panel)
