"""Console logging for pgrest, built on the stdlib logger and rich."""

import logging
import time
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

console = Console(stderr=True)


def _style(style: str) -> Callable[[Any], str]:
    return lambda text: f"[{style}]{text}[/{style}]"


# Markup helpers used to highlight names in log lines
color_palette: Dict[str, Callable[[Any], str]] = {
    "entity": _style("bold cyan"),
    "table": _style("blue"),
    "endpoint": _style("green"),
    "field": _style("cyan"),
    "method": _style("magenta"),
    "sql": _style("dim"),
    "error": _style("bold red"),
}


class Logger:
    """Thin wrapper around ``logging.Logger`` adding sections, timing and indentation."""

    def __init__(self, name: str = "pgrest", level: int = logging.INFO):
        self._logger = logging.getLogger(name)
        self._indent = 0
        if not self._logger.handlers:
            handler = RichHandler(
                console=console,
                markup=True,
                show_path=False,
                rich_tracebacks=True,
            )
            handler.setFormatter(logging.Formatter("%(message)s"))
            self._logger.addHandler(handler)
            self._logger.setLevel(level)
            self._logger.propagate = False

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def set_level(self, level: int | str) -> None:
        self._logger.setLevel(level)

    def _fmt(self, message: str) -> str:
        return f"{'  ' * self._indent}{message}"

    def debug(self, message: str, *args: Any, **kwargs: Any) -> None:
        self._logger.debug(self._fmt(message), *args, **kwargs)

    def info(self, message: str, *args: Any, **kwargs: Any) -> None:
        self._logger.info(self._fmt(message), *args, **kwargs)

    def success(self, message: str, *args: Any, **kwargs: Any) -> None:
        self._logger.info(self._fmt(f"[green]✓[/green] {message}"), *args, **kwargs)

    def warn(self, message: str, *args: Any, **kwargs: Any) -> None:
        self._logger.warning(self._fmt(message), *args, **kwargs)

    def error(self, message: str, *args: Any, **kwargs: Any) -> None:
        self._logger.error(self._fmt(message), *args, **kwargs)

    def section(self, title: str) -> None:
        if self._logger.isEnabledFor(logging.INFO):
            console.rule(f"[bold]{title}[/bold]")

    @contextmanager
    def indented(self) -> Iterator[None]:
        self._indent += 1
        try:
            yield
        finally:
            self._indent -= 1

    @contextmanager
    def timed(self, label: str) -> Iterator[None]:
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed = time.perf_counter() - start
            self.info(f"{label} [dim]({elapsed * 1000:.1f} ms)[/dim]")

    def table(
        self,
        headers: Sequence[str],
        rows: List[Sequence[Any]],
        title: Optional[str] = None,
    ) -> None:
        if not self._logger.isEnabledFor(logging.INFO):
            return
        table = Table(title=title, box=None, padding=(0, 1))
        for header in headers:
            table.add_column(header, style="cyan")
        for row in rows:
            table.add_row(*(str(cell) for cell in row))
        console.print(table)


log = Logger()
