"""Request and response objects exchanged with a release handler.

The caller writes one ``ReleaseRequest`` as JSON to the handler's stdin and
reads one ``ReleaseResponse`` from its stdout. Diagnostics never travel in
the response: the gateway attaches them afterwards as ``logs``.

Wire shape:

    request  {"command", "args", "flags", "context": {"working_dir", "user", "verbose"}}
    response {"status", "metadata": {"handler", "version", "command", "timestamp"},
              "data"?, "error"?: {"code", "message", "details"?},
              "renderer_hint"?, "logs"?: [{"timestamp", "level", "category", "message"}]}
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Literal

from tagcut.core.result import Err, Ok, Result
from tagcut.core.structured import (
    StrDict,
    as_obj_list,
    as_str_dict,
    get_bool,
    get_list,
    get_str,
    get_table,
)

__all__ = [
    "FlagValue",
    "LogEntry",
    "LogLevel",
    "ReleaseRequest",
    "ReleaseResponse",
    "RequestContext",
    "ResponseError",
    "ResponseMetadata",
    "ResponseStatus",
    "error_response",
    "success_response",
]

type FlagValue = str | bool | int
type ResponseStatus = Literal["success", "error"]
type LogLevel = Literal["info", "verbose", "warn", "error"]


def _now() -> str:
    return datetime.now(UTC).isoformat(timespec="seconds")


def _empty_flags() -> dict[str, FlagValue]:
    return {}


def _empty_details() -> StrDict:
    return {}


@dataclass(frozen=True, slots=True)
class RequestContext:
    working_dir: str
    user: str = ""
    verbose: bool = False

    def to_dict(self) -> StrDict:
        return {"working_dir": self.working_dir, "user": self.user, "verbose": self.verbose}


@dataclass(frozen=True, slots=True)
class ReleaseRequest:
    """One command invocation, constructed by the caller and consumed once."""

    command: str
    context: RequestContext
    args: tuple[str, ...] = ()
    flags: Mapping[str, FlagValue] = field(default_factory=_empty_flags)

    def to_dict(self) -> StrDict:
        return {
            "command": self.command,
            "args": list(self.args),
            "flags": dict(self.flags),
            "context": self.context.to_dict(),
        }

    def to_json(self) -> bytes:
        return json.dumps(self.to_dict()).encode("utf-8")

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Result[ReleaseRequest, str]:
        command = get_str(data, "command")
        if command is None:
            return Err("request is missing 'command'")

        args: list[str] = []
        for item in get_list(data, "args") or []:
            if not isinstance(item, str):
                return Err("request 'args' must be a list of strings")
            args.append(item)

        flags: dict[str, FlagValue] = {}
        for key, value in (get_table(data, "flags") or {}).items():
            if not isinstance(value, (str, bool, int)):
                return Err(f"flag {key!r} must be a string, boolean or integer")
            flags[key] = value

        ctx = get_table(data, "context") or {}
        context = RequestContext(
            working_dir=get_str(ctx, "working_dir") or ".",
            user=get_str(ctx, "user") or "",
            verbose=get_bool(ctx, "verbose") or False,
        )
        return Ok(cls(command=command, context=context, args=tuple(args), flags=flags))

    @classmethod
    def from_json(cls, raw: bytes | str) -> Result[ReleaseRequest, str]:
        try:
            obj: object = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return Err(f"failed to parse request: {e}")
        data = as_str_dict(obj)
        if data is None:
            return Err("request must be a JSON object")
        return cls.from_dict(data)


@dataclass(frozen=True, slots=True)
class ResponseMetadata:
    handler: str
    version: str
    command: str
    timestamp: str = field(default_factory=_now)

    def to_dict(self) -> StrDict:
        return {
            "handler": self.handler,
            "version": self.version,
            "command": self.command,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True, slots=True)
class ResponseError:
    """Machine-readable ``code`` plus a human message."""

    code: str
    message: str
    details: StrDict = field(default_factory=_empty_details)

    def to_dict(self) -> StrDict:
        out: StrDict = {"code": self.code, "message": self.message}
        if self.details:
            out["details"] = dict(self.details)
        return out


@dataclass(frozen=True, slots=True)
class LogEntry:
    """One diagnostic line recovered from the side channel."""

    timestamp: str
    level: LogLevel
    category: str
    message: str

    def to_dict(self) -> StrDict:
        return {
            "timestamp": self.timestamp,
            "level": self.level,
            "category": self.category,
            "message": self.message,
        }


@dataclass(frozen=True, slots=True)
class ReleaseResponse:
    status: ResponseStatus
    metadata: ResponseMetadata
    data: StrDict | None = None
    error: ResponseError | None = None
    renderer_hint: str | None = None
    logs: tuple[LogEntry, ...] = ()

    @property
    def ok(self) -> bool:
        return self.status == "success"

    @property
    def items(self) -> list[StrDict]:
        """``data.items``: flat rows for tabular display."""
        if self.data is None:
            return []
        rows = as_obj_list(self.data.get("items")) or []
        return [row for row in (as_str_dict(r) for r in rows) if row is not None]

    def with_logs(self, logs: Sequence[LogEntry]) -> ReleaseResponse:
        return replace(self, logs=tuple(logs))

    def to_dict(self) -> StrDict:
        out: StrDict = {"status": self.status, "metadata": self.metadata.to_dict()}
        if self.data is not None:
            out["data"] = self.data
        if self.error is not None:
            out["error"] = self.error.to_dict()
        if self.renderer_hint:
            out["renderer_hint"] = self.renderer_hint
        if self.logs:
            out["logs"] = [entry.to_dict() for entry in self.logs]
        return out

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Result[ReleaseResponse, str]:
        status = get_str(data, "status")
        if status not in ("success", "error"):
            return Err(f"invalid response status: {status!r}")

        meta = get_table(data, "metadata")
        if meta is None:
            return Err("response is missing 'metadata'")
        metadata = ResponseMetadata(
            handler=get_str(meta, "handler") or "",
            version=get_str(meta, "version") or "",
            command=get_str(meta, "command") or "",
            timestamp=get_str(meta, "timestamp") or "",
        )

        error: ResponseError | None = None
        err_obj = get_table(data, "error")
        if err_obj is not None:
            error = ResponseError(
                code=get_str(err_obj, "code") or "UNKNOWN",
                message=get_str(err_obj, "message") or "",
                details=get_table(err_obj, "details") or {},
            )
        if status == "error" and error is None:
            return Err("error response is missing 'error'")

        logs: list[LogEntry] = []
        for item in get_list(data, "logs") or []:
            entry = as_str_dict(item)
            if entry is None:
                continue
            level = get_str(entry, "level")
            logs.append(
                LogEntry(
                    timestamp=get_str(entry, "timestamp") or "",
                    level=level if level in ("info", "verbose", "warn", "error") else "info",
                    category=get_str(entry, "category") or "",
                    message=get_str(entry, "message") or "",
                )
            )

        return Ok(
            cls(
                status=status,
                metadata=metadata,
                data=get_table(data, "data"),
                error=error,
                renderer_hint=get_str(data, "renderer_hint"),
                logs=tuple(logs),
            )
        )

    @classmethod
    def from_json(cls, raw: bytes | str) -> Result[ReleaseResponse, str]:
        try:
            obj: object = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return Err(f"failed to parse response: {e}")
        data = as_str_dict(obj)
        if data is None:
            return Err("response must be a JSON object")
        return cls.from_dict(data)


def success_response(
    metadata: ResponseMetadata,
    data: StrDict,
    *,
    renderer_hint: str | None = None,
) -> ReleaseResponse:
    return ReleaseResponse(
        status="success", metadata=metadata, data=data, renderer_hint=renderer_hint
    )


def error_response(
    metadata: ResponseMetadata,
    code: str,
    message: str,
    details: StrDict | None = None,
) -> ReleaseResponse:
    return ReleaseResponse(
        status="error",
        metadata=metadata,
        error=ResponseError(code=code, message=message, details=details or {}),
    )
