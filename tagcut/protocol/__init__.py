"""Wire protocol between the caller and a release handler process."""

from tagcut.protocol.logparse import infer_level, parse_log_line, parse_log_output
from tagcut.protocol.manifest import CommandSpec, FlagSpec, Manifest
from tagcut.protocol.messages import (
    FlagValue,
    LogEntry,
    ReleaseRequest,
    ReleaseResponse,
    RequestContext,
    ResponseError,
    ResponseMetadata,
    error_response,
    success_response,
)

__all__ = [
    "CommandSpec",
    "FlagSpec",
    "FlagValue",
    "LogEntry",
    "Manifest",
    "ReleaseRequest",
    "ReleaseResponse",
    "RequestContext",
    "ResponseError",
    "ResponseMetadata",
    "error_response",
    "infer_level",
    "parse_log_line",
    "parse_log_output",
    "success_response",
]
