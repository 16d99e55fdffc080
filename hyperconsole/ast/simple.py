"""Small Taskfile building blocks: locations, globs, prompts and the like."""

from __future__ import annotations

from dataclasses import dataclass, field

import yaml

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
from hyperconsole.ast.vars import Vars, decode_vars


@dataclass
class Location:
    """Where a task was defined."""

    line: int = 0
    column: int = 0
    taskfile: str = ""

    def deep_copy(self) -> Location:
        return Location(self.line, self.column, self.taskfile)


@dataclass
class Glob:
    """A source or generated file pattern, optionally excluded."""

    glob: str = ""
    negate: bool = False


def decode_glob(node: yaml.Node) -> Glob:
    if isinstance(node, yaml.ScalarNode):
        return Glob(glob=node.value)
    if isinstance(node, yaml.MappingNode):
        fields = mapping_fields(node, "glob")
        return Glob(glob=decode_str(fields.get("exclude")), negate=True)
    raise TaskfileDecodeError.from_node(node).with_type_message("glob")


@dataclass
class Precondition:
    """A shell check that must succeed before a task runs."""

    sh: str = ""
    msg: str = ""

    def deep_copy(self) -> Precondition:
        return Precondition(self.sh, self.msg)


def decode_precondition(node: yaml.Node) -> Precondition:
    if isinstance(node, yaml.ScalarNode):
        command = decode_str(node)
        return Precondition(sh=command, msg=f"`{command}` failed")
    if isinstance(node, yaml.MappingNode):
        fields = mapping_fields(node, "precondition")
        sh = decode_str(fields.get("sh"))
        msg = decode_str(fields.get("msg")) or f"{sh} failed"
        return Precondition(sh=sh, msg=msg)
    raise TaskfileDecodeError.from_node(node).with_type_message("precondition")


def decode_prompt(node: yaml.Node) -> list[str]:
    """Decode a prompt given as a single string or a list of strings."""
    if isinstance(node, yaml.ScalarNode):
        return [decode_str(node)]
    if isinstance(node, yaml.SequenceNode):
        return [decode_str(item) for item in node.value]
    raise TaskfileDecodeError.from_node(node).with_type_message("prompt")


@dataclass
class VarsWithValidation:
    """A required variable, optionally restricted to a set of values."""

    name: str = ""
    enum: list[str] | None = None

    def deep_copy(self) -> VarsWithValidation:
        return VarsWithValidation(self.name, None if self.enum is None else list(self.enum))


def decode_vars_with_validation(node: yaml.Node) -> VarsWithValidation:
    if isinstance(node, yaml.ScalarNode):
        return VarsWithValidation(name=decode_str(node))
    if isinstance(node, yaml.MappingNode):
        fields = mapping_fields(node, "requires")
        return VarsWithValidation(
            name=decode_str(fields.get("name")),
            enum=decode_str_list(fields.get("enum")),
        )
    raise TaskfileDecodeError.from_node(node).with_type_message("requires")


@dataclass
class Requires:
    """The variables a task requires."""

    vars: list[VarsWithValidation | None] = field(default_factory=list)

    def deep_copy(self) -> Requires:
        return Requires([None if v is None else v.deep_copy() for v in self.vars])


def decode_requires(node: yaml.Node) -> Requires:
    fields = mapping_fields(node, "requires")
    items = decode_sequence(fields.get("vars"), decode_vars_with_validation, "requires")
    return Requires(vars=items or [])


@dataclass
class OutputGroup:
    """Options for the ``group`` output style."""

    begin: str = ""
    end: str = ""
    error_only: bool = False

    def is_set(self) -> bool:
        return bool(self.begin or self.end)


@dataclass
class Output:
    """The output style of a Taskfile."""

    name: str = ""
    group: OutputGroup = field(default_factory=OutputGroup)

    def is_set(self) -> bool:
        return self.name != ""


def _decode_output_group(node: yaml.Node) -> OutputGroup:
    fields = mapping_fields(node, "output group")
    return OutputGroup(
        begin=decode_str(fields.get("begin")),
        end=decode_str(fields.get("end")),
        error_only=decode_bool(fields.get("error_only")),
    )


def decode_output(node: yaml.Node) -> Output:
    if isinstance(node, yaml.ScalarNode):
        return Output(name=decode_str(node))
    if isinstance(node, yaml.MappingNode):
        fields = mapping_fields(node, "output")
        group_node = fields.get("group")
        if is_null(group_node):
            raise TaskfileDecodeError.from_node(node).with_message(
                'output style must have the "group" key when in mapping form'
            )
        return Output(name="group", group=_decode_output_group(group_node))
    raise TaskfileDecodeError.from_node(node).with_type_message("output")


@dataclass
class Defer:
    """A command or task call run when the task finishes."""

    cmd: str = ""
    task: str = ""
    vars: Vars | None = None
    silent: bool = False


def decode_defer(node: yaml.Node) -> Defer:
    if isinstance(node, yaml.ScalarNode):
        return Defer(cmd=decode_str(node))
    if isinstance(node, yaml.MappingNode):
        fields = mapping_fields(node, "defer")
        return Defer(
            cmd=decode_str(fields.get("defer")),
            task=decode_str(fields.get("task")),
            vars=optional(fields.get("vars"), decode_vars),
            silent=decode_bool(fields.get("silent")),
        )
    raise TaskfileDecodeError.from_node(node).with_type_message("defer")