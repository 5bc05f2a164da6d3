"""Turn a handler's side-channel text back into structured log entries.

Handlers write one line per diagnostic, ``HH:MM:SS [category] message``
(see ``ChannelConsole``). Lines in any other shape are kept as ``info``
entries under the ``handler`` category.
"""

from __future__ import annotations

from datetime import datetime

from tagcut.output.console import VERBOSE_MARKER
from tagcut.protocol.messages import LogEntry, LogLevel

__all__ = ["FALLBACK_CATEGORY", "infer_level", "parse_log_line", "parse_log_output"]

FALLBACK_CATEGORY = "handler"


def infer_level(message: str) -> LogLevel:
    """Guess severity from the message text."""
    lowered = message.lower()
    if "error" in lowered or "failed" in lowered:
        return "error"
    if "warn" in lowered:
        return "warn"
    if message.startswith(VERBOSE_MARKER):
        return "verbose"
    return "info"


def parse_log_line(line: str, *, now: datetime | None = None) -> LogEntry:
    parts = line.split(" ", 2)
    if len(parts) == 3 and parts[1].startswith("[") and parts[1].endswith("]"):
        return LogEntry(
            timestamp=parts[0],
            level=infer_level(parts[2]),
            category=parts[1][1:-1],
            message=parts[2],
        )
    stamp = (now or datetime.now()).strftime("%H:%M:%S")
    return LogEntry(timestamp=stamp, level="info", category=FALLBACK_CATEGORY, message=line)


def parse_log_output(text: str) -> list[LogEntry]:
    """Parse every non-blank line of ``text``, in order."""
    entries: list[LogEntry] = []
    for raw in text.splitlines():
        line = raw.strip()
        if line:
            entries.append(parse_log_line(line))
    return entries
