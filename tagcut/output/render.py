"""Caller-side rendering of handler responses with Rich.

Logs print first, in the order the handler emitted them; then either the
``data.items`` table, a key/value text block, or the error.
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from tagcut.core.structured import StrDict, as_obj_list, as_str_dict
from tagcut.output.console import VERBOSE_MARKER
from tagcut.protocol.messages import LogEntry, ReleaseResponse

__all__ = ["items_table", "render_logs", "render_response"]

_LEVEL_STYLES = {
    "error": "red",
    "warn": "yellow",
    "verbose": "magenta",
    "info": "",
}


def _cell(value: object) -> str:
    if isinstance(value, bool):
        return "yes" if value else "no"
    if value is None:
        return ""
    return str(value)


def items_table(items: list[StrDict], *, title: str | None = None) -> Table:
    """Table with one column per key, in first-seen order."""
    columns: list[str] = []
    for row in items:
        for key in row:
            if key not in columns:
                columns.append(key)

    table = Table(title=title, header_style="bold cyan")
    for col in columns:
        table.add_column(col.replace("_", " ").title())
    for row in items:
        table.add_row(*(_cell(row.get(col)) for col in columns))
    return table


def render_logs(logs: tuple[LogEntry, ...] | list[LogEntry], console: Console, *, verbose: bool = False) -> None:
    for entry in logs:
        if entry.level == "verbose" and not verbose:
            continue
        message = entry.message
        if message.startswith(VERBOSE_MARKER):
            message = message[len(VERBOSE_MARKER) :].lstrip()
        style = _LEVEL_STYLES.get(entry.level, "")
        line = f"[dim]{escape(entry.timestamp)} \\[{escape(entry.category)}][/dim] {escape(message)}"
        console.print(f"[{style}]{line}[/{style}]" if style else line)


def _render_text(data: StrDict, console: Console) -> None:
    for key, value in data.items():
        label = key.replace("_", " ")
        items = as_obj_list(value)
        if items is not None:
            console.print(f"[bold]{escape(label)}[/bold]:")
            for item in items:
                nested = as_str_dict(item)
                text = ", ".join(f"{k}={_cell(v)}" for k, v in nested.items()) if nested else _cell(item)
                console.print(f"  - {escape(text)}")
        elif (table := as_str_dict(value)) is not None:
            pairs = ", ".join(f"{k}={_cell(v)}" for k, v in table.items())
            console.print(f"[bold]{escape(label)}[/bold]: {escape(pairs)}")
        else:
            console.print(f"[bold]{escape(label)}[/bold]: {escape(_cell(value))}")


def render_response(response: ReleaseResponse, console: Console | None = None, *, verbose: bool = False) -> None:
    out = console or Console()
    render_logs(response.logs, out, verbose=verbose)

    if not response.ok:
        err = response.error
        if err is None:
            out.print("[red bold]error:[/red bold] handler reported failure")
            return
        out.print(f"[red bold]error:[/red bold] {escape(err.message)} [dim]({escape(err.code)})[/dim]")
        hint = err.details.get("hint")
        if isinstance(hint, str):
            out.print(f"[dim]hint: {escape(hint)}[/dim]")
        cause = as_str_dict(err.details.get("cause"))
        if cause is not None:
            out.print(f"[dim]caused by: {escape(_cell(cause.get('message')))}[/dim]")
        return

    if response.data is None:
        return
    if response.items:
        out.print(items_table(response.items, title=response.metadata.command or None))
        _render_text({k: v for k, v in response.data.items() if k != "items"}, out)
    else:
        _render_text(response.data, out)
