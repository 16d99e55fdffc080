"""A single task of a Taskfile."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

import yaml

from hyperconsole.ast.commands import Cmd, Dep, decode_cmd, decode_dep
from hyperconsole.ast.decode import (
    TaskfileDecodeError,
    decode_bool,
    decode_sequence,
    decode_str,
    decode_str_list,
    is_null,
    mapping_fields,
    optional,
)
from hyperconsole.ast.platforms import Platform, decode_platform
from hyperconsole.ast.simple import (
    Glob,
    Location,
    Precondition,
    Requires,
    decode_glob,
    decode_precondition,
    decode_prompt,
    decode_requires,
)
from hyperconsole.ast.vars import Vars, decode_vars


def _copy_items(items: list | None) -> list:
    if items is None:
        return []
    return [None if item is None else item.deep_copy() for item in items]


def _copy_vars(variables: Vars | None) -> Vars | None:
    return None if variables is None else variables.deep_copy()


@dataclass
class Task:
    """A task definition."""

    task: str = ""
    cmds: list[Cmd | None] = field(default_factory=list)
    deps: list[Dep | None] = field(default_factory=list)
    label: str = ""
    desc: str = ""
    prompt: list[str] = field(default_factory=list)
    summary: str = ""
    requires: Requires | None = None
    aliases: list[str] = field(default_factory=list)
    sources: list[Glob | None] = field(default_factory=list)
    generates: list[Glob | None] = field(default_factory=list)
    status: list[str] = field(default_factory=list)
    preconditions: list[Precondition | None] = field(default_factory=list)
    dir: str = ""
    set: list[str] = field(default_factory=list)
    shopt: list[str] = field(default_factory=list)
    vars: Vars | None = None
    env: Vars | None = None
    dotenv: list[str] = field(default_factory=list)
    silent: bool = False
    interactive: bool = False
    internal: bool = False
    method: str = ""
    prefix: str = ""
    ignore_error: bool = False
    run: str = ""
    platforms: list[Platform | None] = field(default_factory=list)
    watch: bool = False
    location: Location | None = None
    namespace: str = ""
    include_vars: Vars | None = None
    included_taskfile_vars: Vars | None = None

    def name(self) -> str:
        """The label if one is set, otherwise the task name."""
        return self.label or self.task

    def local_name(self) -> str:
        """The task name without its namespace."""
        name = self.task
        if name.startswith(self.namespace):
            name = name[len(self.namespace):]
        if name.startswith(":"):
            name = name[1:]
        return name

    def wildcard_match(self, name: str) -> tuple[bool, list[str] | None]:
        """Match ``name`` against this task's name, returning wildcard values."""
        pattern = self.task.replace("*", "(.*)")
        match = re.fullmatch(pattern, name)
        if match is None:
            return False, None
        wildcards = ["" if group is None else group for group in match.groups()]
        if len(wildcards) != self.task.count("*"):
            return False, wildcards
        return True, wildcards

    def deep_copy(self) -> Task:
        """Copy the task; the watch flag is not carried over."""
        return Task(
            task=self.task,
            cmds=_copy_items(self.cmds),
            deps=_copy_items(self.deps),
            label=self.label,
            desc=self.desc,
            prompt=list(self.prompt),
            summary=self.summary,
            requires=None if self.requires is None else self.requires.deep_copy(),
            aliases=list(self.aliases),
            sources=[None if g is None else Glob(g.glob, g.negate) for g in self.sources],
            generates=[None if g is None else Glob(g.glob, g.negate) for g in self.generates],
            status=list(self.status),
            preconditions=_copy_items(self.preconditions),
            dir=self.dir,
            set=list(self.set),
            shopt=list(self.shopt),
            vars=_copy_vars(self.vars),
            env=_copy_vars(self.env),
            dotenv=list(self.dotenv),
            silent=self.silent,
            interactive=self.interactive,
            internal=self.internal,
            method=self.method,
            prefix=self.prefix,
            ignore_error=self.ignore_error,
            run=self.run,
            include_vars=_copy_vars(self.include_vars),
            included_taskfile_vars=_copy_vars(self.included_taskfile_vars),
            platforms=_copy_items(self.platforms),
            location=None if self.location is None else self.location.deep_copy(),
            namespace=self.namespace,
        )


def decode_task(node: yaml.Node) -> Task:
    """Decode a task given as one command, a list of commands or a full mapping."""
    if isinstance(node, yaml.ScalarNode):
        return Task(cmds=[decode_cmd(node)])
    if isinstance(node, yaml.SequenceNode):
        return Task(cmds=decode_sequence(node, decode_cmd, "[]command") or [])
    if not isinstance(node, yaml.MappingNode):
        raise TaskfileDecodeError.from_node(node).with_type_message("task")

    fields = mapping_fields(node, "task")
    cmd_node = fields.get("cmd")
    cmds_node = fields.get("cmds")
    if not is_null(cmd_node):
        if not is_null(cmds_node):
            raise TaskfileDecodeError.from_node(node).with_message(
                "task cannot have both cmd and cmds"
            )
        cmds = [decode_cmd(cmd_node)]
    else:
        cmds = decode_sequence(cmds_node, decode_cmd, "[]command") or []

    return Task(
        cmds=cmds,
        deps=decode_sequence(fields.get("deps"), decode_dep, "[]dependency") or [],
        label=decode_str(fields.get("label")),
        desc=decode_str(fields.get("desc")),
        prompt=optional(fields.get("prompt"), decode_prompt) or [],
        summary=decode_str(fields.get("summary")),
        aliases=decode_str_list(fields.get("aliases")) or [],
        sources=decode_sequence(fields.get("sources"), decode_glob, "[]glob") or [],
        generates=decode_sequence(fields.get("generates"), decode_glob, "[]glob") or [],
        status=decode_str_list(fields.get("status")) or [],
        preconditions=decode_sequence(
            fields.get("preconditions"), decode_precondition, "[]precondition"
        )
        or [],
        dir=decode_str(fields.get("dir")),
        set=decode_str_list(fields.get("set")) or [],
        shopt=decode_str_list(fields.get("shopt")) or [],
        vars=optional(fields.get("vars"), decode_vars),
        env=optional(fields.get("env"), decode_vars),
        dotenv=decode_str_list(fields.get("dotenv")) or [],
        silent=decode_bool(fields.get("silent")),
        interactive=decode_bool(fields.get("interactive")),
        internal=decode_bool(fields.get("internal")),
        method=decode_str(fields.get("method")),
        prefix=decode_str(fields.get("prefix")),
        ignore_error=decode_bool(fields.get("ignore_error")),
        run=decode_str(fields.get("run")),
        platforms=decode_sequence(fields.get("platforms"), decode_platform, "[]platform")
        or [],
        requires=optional(fields.get("requires"), decode_requires),
        watch=decode_bool(fields.get("watch")),
    )