"""Execution gateway between the caller and out-of-process handlers."""

from tagcut.gateway.dispatcher import (
    HANDLER_DIR_ENV_VAR,
    Dispatcher,
    TransportError,
    builtin_handler_command,
    invoke,
)

__all__ = [
    "Dispatcher",
    "HANDLER_DIR_ENV_VAR",
    "TransportError",
    "builtin_handler_command",
    "invoke",
]
