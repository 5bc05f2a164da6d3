"""Console output abstraction.

Services never print directly; they receive a ``ConsoleProtocol``. Three
implementations:

- ``RichConsole``: styled terminal output for the caller-side CLI.
- ``ChannelConsole``: the handler-side diagnostic channel. One plain line per
  message on stderr, ``HH:MM:SS [category] message``, which the gateway parses
  back into structured log entries. Verbose lines carry the ``V$`` marker.
- ``MockConsole``: captures output for tests.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Protocol, TextIO

__all__ = [
    "Category",
    "ChannelConsole",
    "ConsoleProtocol",
    "MockConsole",
    "OutputRecord",
    "RichConsole",
    "Style",
    "VERBOSE_MARKER",
]

VERBOSE_MARKER = "V$"


class Style(Enum):
    """Text styles for console output."""

    DEFAULT = auto()
    SUCCESS = auto()
    ERROR = auto()
    WARNING = auto()
    INFO = auto()
    DIM = auto()
    BOLD = auto()
    HEADER = auto()
    VERBOSE = auto()

    def __str__(self) -> str:
        return self.name.lower()


class Category(Enum):
    """Diagnostic categories, shown as ``[category]`` on the side channel."""

    INIT = "init"
    CONFIG = "config"
    PREFLIGHT = "pre-flight"
    GUARD = "guard"
    EXEC = "exec"
    ROLLBACK = "rollback"

    def __str__(self) -> str:
        return self.value


class ConsoleProtocol(Protocol):
    """Protocol for diagnostic output.

    ``category`` tags which phase of a release the message belongs to. The
    terminal console only uses it for display; the channel console writes it
    into the line so the caller can group the log.
    """

    def print(
        self,
        message: str,
        style: Style = Style.DEFAULT,
        *,
        category: Category = Category.EXEC,
    ) -> None: ...

    def success(self, message: str, *, category: Category = Category.EXEC) -> None: ...

    def error(self, message: str, *, category: Category = Category.EXEC) -> None: ...

    def warning(self, message: str, *, category: Category = Category.EXEC) -> None: ...

    def info(self, message: str, *, category: Category = Category.EXEC) -> None: ...

    def verbose(self, message: str, *, category: Category = Category.EXEC) -> None:
        """Print only when verbose output was requested."""
        ...

    def header(self, message: str) -> None: ...

    def newline(self) -> None: ...


class RichConsole:
    """Console implementation using Rich library."""

    def __init__(self, *, verbose: bool = False, stderr: bool = False) -> None:
        # Import Rich lazily to avoid import-time dependency in the handler
        from rich.console import Console
        from rich.markup import escape

        self._console = Console(stderr=stderr)
        self._escape = escape
        self._verbose = verbose
        self._style_map = {
            Style.DEFAULT: "",
            Style.SUCCESS: "green",
            Style.ERROR: "red bold",
            Style.WARNING: "yellow",
            Style.INFO: "cyan",
            Style.DIM: "dim",
            Style.BOLD: "bold",
            Style.HEADER: "blue bold",
            Style.VERBOSE: "magenta",
        }

    def print(
        self,
        message: str,
        style: Style = Style.DEFAULT,
        *,
        category: Category = Category.EXEC,
    ) -> None:
        del category
        rich_style = self._style_map.get(style, "")
        if rich_style:
            self._console.print(message, style=rich_style, markup=False)
        else:
            self._console.print(message, markup=False)

    def _tagged(self, prefix: str, category: Category, message: str) -> None:
        self._console.print(f"{prefix} [dim]\\[{category}][/dim] {self._escape(message)}")

    def success(self, message: str, *, category: Category = Category.EXEC) -> None:
        self._tagged("[green]OK[/green]", category, message)

    def error(self, message: str, *, category: Category = Category.EXEC) -> None:
        self._tagged("[red bold]error:[/red bold]", category, message)

    def warning(self, message: str, *, category: Category = Category.EXEC) -> None:
        self._tagged("[yellow]warning:[/yellow]", category, message)

    def info(self, message: str, *, category: Category = Category.EXEC) -> None:
        self._tagged("[cyan]info:[/cyan]", category, message)

    def verbose(self, message: str, *, category: Category = Category.EXEC) -> None:
        if not self._verbose:
            return
        self._tagged(f"[magenta]{VERBOSE_MARKER}[/magenta]", category, message)

    def header(self, message: str) -> None:
        self._console.print(f"\n[blue bold]{message}[/blue bold]")

    def newline(self) -> None:
        self._console.print()


class ChannelConsole:
    """Writes diagnostics to the handler's side channel (stderr by default).

    Lines are flushed immediately so the caller sees them in order even if
    the handler is killed mid-release.
    """

    def __init__(self, *, verbose: bool = False, stream: TextIO | None = None) -> None:
        self._verbose = verbose
        self._stream = stream if stream is not None else sys.stderr

    def _emit(self, category: Category, message: str) -> None:
        timestamp = datetime.now().strftime("%H:%M:%S")
        for line in message.splitlines() or [""]:
            self._stream.write(f"{timestamp} [{category}] {line}\n")
        self._stream.flush()

    def print(
        self,
        message: str,
        style: Style = Style.DEFAULT,
        *,
        category: Category = Category.EXEC,
    ) -> None:
        del style
        self._emit(category, message)

    def success(self, message: str, *, category: Category = Category.EXEC) -> None:
        self._emit(category, message)

    def error(self, message: str, *, category: Category = Category.EXEC) -> None:
        self._emit(category, f"error: {message}")

    def warning(self, message: str, *, category: Category = Category.EXEC) -> None:
        self._emit(category, f"warning: {message}")

    def info(self, message: str, *, category: Category = Category.EXEC) -> None:
        self._emit(category, message)

    def verbose(self, message: str, *, category: Category = Category.EXEC) -> None:
        if not self._verbose:
            return
        self._emit(category, f"{VERBOSE_MARKER} {message}")

    def header(self, message: str) -> None:
        self._emit(Category.EXEC, message)

    def newline(self) -> None:
        pass


@dataclass
class OutputRecord:
    """A single output record for MockConsole."""

    message: str
    style: Style
    category: Category = Category.EXEC


def _empty_outputs() -> list[OutputRecord]:
    return []


@dataclass
class MockConsole:
    """Console implementation that captures output for testing."""

    outputs: list[OutputRecord] = field(default_factory=_empty_outputs)

    def print(
        self,
        message: str,
        style: Style = Style.DEFAULT,
        *,
        category: Category = Category.EXEC,
    ) -> None:
        self.outputs.append(OutputRecord(message, style, category))

    def success(self, message: str, *, category: Category = Category.EXEC) -> None:
        self.outputs.append(OutputRecord(f"OK {message}", Style.SUCCESS, category))

    def error(self, message: str, *, category: Category = Category.EXEC) -> None:
        self.outputs.append(OutputRecord(f"error: {message}", Style.ERROR, category))

    def warning(self, message: str, *, category: Category = Category.EXEC) -> None:
        self.outputs.append(OutputRecord(f"warning: {message}", Style.WARNING, category))

    def info(self, message: str, *, category: Category = Category.EXEC) -> None:
        self.outputs.append(OutputRecord(f"info: {message}", Style.INFO, category))

    def verbose(self, message: str, *, category: Category = Category.EXEC) -> None:
        self.outputs.append(OutputRecord(message, Style.VERBOSE, category))

    def header(self, message: str) -> None:
        self.outputs.append(OutputRecord(message, Style.HEADER))

    def newline(self) -> None:
        self.outputs.append(OutputRecord("", Style.DEFAULT))

    # Test helper methods

    @property
    def messages(self) -> list[str]:
        return [o.message for o in self.outputs]

    @property
    def text(self) -> str:
        return "\n".join(self.messages)

    def has_error(self) -> bool:
        return any(o.style == Style.ERROR for o in self.outputs)

    def has_warning(self) -> bool:
        return any(o.style == Style.WARNING for o in self.outputs)

    def find(self, substring: str) -> list[OutputRecord]:
        """Find all outputs containing a substring."""
        return [o for o in self.outputs if substring in o.message]
