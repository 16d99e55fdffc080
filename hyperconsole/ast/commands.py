"""Task commands and dependencies."""

from __future__ import annotations

from dataclasses import dataclass, field

import yaml

from hyperconsole.ast.decode import (
    TaskfileDecodeError,
    decode_bool,
    decode_sequence,
    decode_str,
    decode_str_list,
    mapping_fields,
    optional,
)
from hyperconsole.ast.loop import For, decode_for
from hyperconsole.ast.platforms import Platform, decode_platform
from hyperconsole.ast.simple import decode_defer
from hyperconsole.ast.vars import Vars, decode_vars


def _copy_list(items: list | None) -> list | None:
    return None if items is None else list(items)


@dataclass
class Cmd:
    """A shell command or a call to another task."""

    cmd: str = ""
    task: str = ""
    for_: For | None = None
    silent: bool = False
    set: list[str] | None = None
    shopt: list[str] | None = None
    vars: Vars | None = None
    ignore_error: bool = False
    defer: bool = False
    platforms: list[Platform | None] | None = field(default=None)

    def deep_copy(self) -> Cmd:
        return Cmd(
            cmd=self.cmd,
            task=self.task,
            for_=None if self.for_ is None else self.for_.deep_copy(),
            silent=self.silent,
            set=_copy_list(self.set),
            shopt=_copy_list(self.shopt),
            vars=None if self.vars is None else self.vars.deep_copy(),
            ignore_error=self.ignore_error,
            defer=self.defer,
            platforms=None
            if self.platforms is None
            else [None if p is None else p.deep_copy() for p in self.platforms],
        )


def decode_cmd(node: yaml.Node) -> Cmd:
    """Decode a command given as a string or as a mapping."""
    if isinstance(node, yaml.ScalarNode):
        return Cmd(cmd=decode_str(node))
    if not isinstance(node, yaml.MappingNode):
        raise TaskfileDecodeError.from_node(node).with_type_message("command")

    fields = mapping_fields(node, "command")
    cmd = decode_str(fields.get("cmd"))
    task = decode_str(fields.get("task"))
    loop = optional(fields.get("for"), decode_for)
    silent = decode_bool(fields.get("silent"))
    set_options = decode_str_list(fields.get("set"))
    shopt = decode_str_list(fields.get("shopt"))
    variables = optional(fields.get("vars"), decode_vars)
    ignore_error = decode_bool(fields.get("ignore_error"))
    deferred = optional(fields.get("defer"), decode_defer)
    platforms = decode_sequence(fields.get("platforms"), decode_platform, "[]platform")

    if deferred is not None:
        if deferred.cmd:
            return Cmd(cmd=deferred.cmd, defer=True, silent=silent)
        if deferred.task:
            return Cmd(
                task=deferred.task, vars=deferred.vars, silent=deferred.silent, defer=True
            )
        return Cmd()

    if task:
        return Cmd(task=task, vars=variables, for_=loop, silent=silent)

    if cmd:
        return Cmd(
            cmd=cmd,
            for_=loop,
            silent=silent,
            set=set_options,
            shopt=shopt,
            ignore_error=ignore_error,
            platforms=platforms,
        )

    raise TaskfileDecodeError.from_node(node).with_message("invalid keys in command")


@dataclass
class Dep:
    """A task that must run before another."""

    task: str = ""
    for_: For | None = None
    vars: Vars | None = None
    silent: bool = False

    def deep_copy(self) -> Dep:
        return Dep(
            task=self.task,
            for_=None if self.for_ is None else self.for_.deep_copy(),
            vars=None if self.vars is None else self.vars.deep_copy(),
            silent=self.silent,
        )


def decode_dep(node: yaml.Node) -> Dep:
    """Decode a dependency given as a task name or as a mapping."""
    if isinstance(node, yaml.ScalarNode):
        return Dep(task=decode_str(node))
    if isinstance(node, yaml.MappingNode):
        fields = mapping_fields(node, "dependency")
        return Dep(
            task=decode_str(fields.get("task")),
            for_=optional(fields.get("for"), decode_for),
            vars=optional(fields.get("vars"), decode_vars),
            silent=decode_bool(fields.get("silent")),
        )
    raise TaskfileDecodeError.from_node(node).with_type_message("dependency")