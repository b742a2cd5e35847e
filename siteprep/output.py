"""Diagnostic output sinks handed to the hooks.

The host supplies a write-only channel with an informational and an error
side. :class:`ConsoleIO` renders through Rich; :class:`BufferedIO` keeps the
lines in memory for ``--json`` output and tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol, runtime_checkable

from rich.console import Console
from rich.markup import escape

from .utils import console as default_console
from .utils import err_console as default_err_console


class Level(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@runtime_checkable
class HookIO(Protocol):
    def write(self, message: str) -> None: ...

    def write_warning(self, message: str) -> None: ...

    def write_error(self, message: str) -> None: ...


class ConsoleIO:
    """Informational lines on stdout, warnings and errors on stderr."""

    def __init__(
        self,
        console: Console | None = None,
        err_console: Console | None = None,
    ) -> None:
        self.console = console or default_console
        self.err_console = err_console or default_err_console

    def write(self, message: str) -> None:
        self.console.print(escape(message))

    def write_warning(self, message: str) -> None:
        self.err_console.print(f"[bold yellow]{escape(message)}[/bold yellow]")

    def write_error(self, message: str) -> None:
        self.err_console.print(f"[bold red]{escape(message)}[/bold red]")


@dataclass
class BufferedIO:
    """Collects ``(level, message)`` records instead of printing them."""

    records: list[tuple[Level, str]] = field(default_factory=list)

    def write(self, message: str) -> None:
        self.records.append((Level.INFO, message))

    def write_warning(self, message: str) -> None:
        self.records.append((Level.WARNING, message))

    def write_error(self, message: str) -> None:
        self.records.append((Level.ERROR, message))

    def messages(self, level: Level | None = None) -> list[str]:
        """Return recorded messages, optionally filtered by level."""
        return [msg for lvl, msg in self.records if level is None or lvl == level]

    def as_dicts(self) -> list[dict[str, str]]:
        return [{"level": lvl.value, "message": msg} for lvl, msg in self.records]
