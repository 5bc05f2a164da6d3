"""Output abstraction layer."""

from .console import (
    Category,
    ChannelConsole,
    ConsoleProtocol,
    MockConsole,
    RichConsole,
    Style,
)

__all__ = [
    "Category",
    "ChannelConsole",
    "ConsoleProtocol",
    "MockConsole",
    "RichConsole",
    "Style",
]
