"""Handler descriptor ("manifest").

A manifest tells the caller which commands a handler exposes and which
flags each takes, so the caller can build its invocation surface without
importing the handler. Installed handlers ship it as ``manifest.json``.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal

from tagcut.core.result import Err, Ok, Result
from tagcut.core.structured import StrDict, as_str_dict, get_bool, get_list, get_str, get_str_list

__all__ = ["CommandSpec", "FlagSpec", "FlagType", "Manifest"]

type FlagType = Literal["string", "bool", "int"]

_FLAG_TYPES: tuple[FlagType, ...] = ("string", "bool", "int")


@dataclass(frozen=True, slots=True)
class FlagSpec:
    name: str
    type: FlagType
    description: str = ""
    required: bool = False
    default: str | bool | int | None = None

    def to_dict(self) -> StrDict:
        out: StrDict = {
            "name": self.name,
            "type": self.type,
            "required": self.required,
            "description": self.description,
        }
        if self.default is not None:
            out["default"] = self.default
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> FlagSpec | None:
        name = get_str(data, "name")
        flag_type = get_str(data, "type")
        if name is None or flag_type not in _FLAG_TYPES:
            return None
        default = data.get("default")
        if not isinstance(default, (str, bool, int)):
            default = None
        return cls(
            name=name,
            type=flag_type,
            description=get_str(data, "description") or "",
            required=get_bool(data, "required") or False,
            default=default,
        )


@dataclass(frozen=True, slots=True)
class CommandSpec:
    name: str
    description: str
    outputs: tuple[str, ...] = ("table",)
    flags: tuple[FlagSpec, ...] = ()
    args: tuple[str, ...] = ()

    def flag(self, name: str) -> FlagSpec | None:
        for f in self.flags:
            if f.name == name:
                return f
        return None

    def to_dict(self) -> StrDict:
        out: StrDict = {
            "name": self.name,
            "description": self.description,
            "outputs": list(self.outputs),
        }
        if self.args:
            out["args"] = list(self.args)
        if self.flags:
            out["flags"] = [f.to_dict() for f in self.flags]
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> CommandSpec | None:
        name = get_str(data, "name")
        if name is None:
            return None
        flags: list[FlagSpec] = []
        for item in get_list(data, "flags") or []:
            d = as_str_dict(item)
            spec = FlagSpec.from_dict(d) if d is not None else None
            if spec is not None:
                flags.append(spec)
        return cls(
            name=name,
            description=get_str(data, "description") or "",
            outputs=tuple(get_str_list(data, "outputs") or ()),
            flags=tuple(flags),
            args=tuple(get_str_list(data, "args") or ()),
        )


@dataclass(frozen=True, slots=True)
class Manifest:
    name: str
    version: str
    description: str
    author: str
    commands: tuple[CommandSpec, ...]
    renderer_types: tuple[str, ...] = ("table", "text")

    def command(self, name: str) -> CommandSpec | None:
        for c in self.commands:
            if c.name == name:
                return c
        return None

    def to_dict(self) -> StrDict:
        return {
            "name": self.name,
            "version": self.version,
            "description": self.description,
            "author": self.author,
            "commands": [c.to_dict() for c in self.commands],
            "renderer_types": list(self.renderer_types),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2) + "\n"

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Result[Manifest, str]:
        name = get_str(data, "name")
        if name is None:
            return Err("manifest is missing 'name'")
        commands: list[CommandSpec] = []
        for item in get_list(data, "commands") or []:
            d = as_str_dict(item)
            spec = CommandSpec.from_dict(d) if d is not None else None
            if spec is not None:
                commands.append(spec)
        return Ok(
            cls(
                name=name,
                version=get_str(data, "version") or "",
                description=get_str(data, "description") or "",
                author=get_str(data, "author") or "",
                commands=tuple(commands),
                renderer_types=tuple(get_str_list(data, "renderer_types") or ()),
            )
        )

    @classmethod
    def from_json(cls, raw: str) -> Result[Manifest, str]:
        try:
            obj: object = json.loads(raw)
        except json.JSONDecodeError as e:
            return Err(f"invalid manifest JSON: {e}")
        data = as_str_dict(obj)
        if data is None:
            return Err("manifest must be a JSON object")
        return cls.from_dict(data)
