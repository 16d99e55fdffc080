"""The Taskfile root document."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import timedelta

import yaml

from hyperconsole.ast.decode import (
    TaskfileDecodeError,
    construct,
    decode_bool,
    decode_str,
    decode_str_list,
    mapping_fields,
    optional,
)
from hyperconsole.ast.include import Include, Includes, decode_includes
from hyperconsole.ast.simple import Output, decode_output
from hyperconsole.ast.tasks import Tasks, decode_tasks
from hyperconsole.ast.vars import Vars, decode_vars

NAMESPACE_SEPARATOR = ":"

_VERSION_RE = re.compile(
    r"v?([0-9]+)(?:\.([0-9]+))?(?:\.([0-9]+))?"
    r"(?:-([0-9A-Za-z\-]+(?:\.[0-9A-Za-z\-]+)*))?"
    r"(?:\+([0-9A-Za-z\-]+(?:\.[0-9A-Za-z\-]+)*))?"
)

_DURATION_UNITS = {
    "ns": 1.0,
    "us": 1e3,
    "µs": 1e3,
    "μs": 1e3,
    "ms": 1e6,
    "s": 1e9,
    "m": 60e9,
    "h": 3600e9,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


@dataclass(frozen=True, eq=False)
class Version:
    """A semantic version; build metadata does not take part in equality."""

    major: int
    minor: int = 0
    patch: int = 0
    prerelease: str = ""
    metadata: str = ""

    def _key(self) -> tuple:
        return (self.major, self.minor, self.patch, self.prerelease)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.metadata:
            text += f"+{self.metadata}"
        return text


def parse_version(text: str) -> Version:
    """Parse a possibly shortened semantic version such as ``3`` or ``3.1``."""
    match = _VERSION_RE.fullmatch(text.strip())
    if match is None:
        raise ValueError("Invalid Semantic Version")
    major, minor, patch, pre, meta = match.groups()
    return Version(int(major), int(minor or 0), int(patch or 0), pre or "", meta or "")


V3 = parse_version("3")


class TaskfileMergeError(Exception):
    """Raised when an included Taskfile cannot be merged into its parent."""


_DOTENV_MESSAGE = (
    "task: Included Taskfiles can't have dotenv declarations. "
    "Please, move the dotenv declaration to the main Taskfile"
)


@dataclass
class Taskfile:
    """A parsed Taskfile."""

    location: str = ""
    version: Version | None = None
    output: Output = field(default_factory=Output)
    method: str = ""
    includes: Includes = field(default_factory=Includes)
    set: list[str] = field(default_factory=list)
    shopt: list[str] = field(default_factory=list)
    vars: Vars = field(default_factory=Vars)
    env: Vars = field(default_factory=Vars)
    tasks: Tasks = field(default_factory=Tasks)
    silent: bool = False
    dotenv: list[str] = field(default_factory=list)
    run: str = ""
    interval: timedelta = field(default_factory=timedelta)

    def merge(self, other: Taskfile, include: Include) -> None:
        """Merge an included Taskfile into this one."""
        if self.version != other.version:
            raise TaskfileMergeError(
                f'task: Taskfiles versions should match. First is "{self.version}" '
                f'but second is "{other.version}"'
            )
        if other.dotenv:
            raise TaskfileMergeError(_DOTENV_MESSAGE)
        if other.output.is_set():
            self.output = other.output
        if self.includes is None:
            self.includes = Includes()
        if self.vars is None:
            self.vars = Vars()
        if self.env is None:
            self.env = Vars()
        if self.tasks is None:
            self.tasks = Tasks()
        self.vars.merge(other.vars, include)
        self.env.merge(other.env, include)
        self.tasks.merge(other.tasks or Tasks(), include, self.vars)


def _parse_duration(text: str) -> timedelta:
    body = text
    sign = 1
    if body and body[0] in "+-":
        sign = -1 if body[0] == "-" else 1
        body = body[1:]
    if body == "0":
        return timedelta(0)
    if not body:
        raise ValueError(f'time: invalid duration "{text}"')
    total = 0.0
    position = 0
    while position < len(body):
        match = _DURATION_PART.match(body, position)
        if match is None:
            raise ValueError(f'time: invalid duration "{text}"')
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()
    return timedelta(microseconds=sign * total / 1000)


def _decode_interval(node: yaml.Node) -> timedelta:
    if isinstance(node, yaml.ScalarNode):
        value = construct(node)
        if isinstance(value, int) and not isinstance(value, bool):
            return timedelta(microseconds=value / 1000)
        if isinstance(value, str):
            try:
                return _parse_duration(value)
            except ValueError as exc:
                raise TaskfileDecodeError.from_node(node, exc) from exc
    raise TaskfileDecodeError.from_node(node).with_type_message("duration")


def _decode_version(node: yaml.Node) -> Version:
    text = decode_str(node)
    try:
        return parse_version(text)
    except ValueError as exc:
        raise TaskfileDecodeError.from_node(node, exc) from exc


def decode_taskfile(node: yaml.Node) -> Taskfile:
    """Decode the root mapping of a Taskfile."""
    fields = mapping_fields(node, "taskfile")
    try:
        return Taskfile(
            version=optional(fields.get("version"), _decode_version),
            output=optional(fields.get("output"), decode_output) or Output(),
            method=decode_str(fields.get("method")),
            includes=optional(fields.get("includes"), decode_includes) or Includes(),
            set=decode_str_list(fields.get("set")) or [],
            shopt=decode_str_list(fields.get("shopt")) or [],
            vars=optional(fields.get("vars"), decode_vars) or Vars(),
            env=optional(fields.get("env"), decode_vars) or Vars(),
            tasks=optional(fields.get("tasks"), decode_tasks) or Tasks(),
            silent=decode_bool(fields.get("silent")),
            dotenv=decode_str_list(fields.get("dotenv")) or [],
            run=decode_str(fields.get("run")),
            interval=optional(fields.get("interval"), _decode_interval) or timedelta(),
        )
    except TaskfileDecodeError as exc:
        raise TaskfileDecodeError.from_node(node, exc) from exc


def parse_taskfile(data: bytes | str) -> Taskfile:
    """Parse Taskfile YAML; an empty document gives an empty Taskfile."""
    node = yaml.compose(data, Loader=yaml.SafeLoader)
    if node is None:
        return Taskfile()
    return decode_taskfile(node)