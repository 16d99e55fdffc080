"""Included Taskfiles."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Mapping

import yaml

from hyperconsole.ast.decode import (
    TaskfileDecodeError,
    decode_bool,
    decode_str,
    decode_str_list,
    mapping_fields,
    optional,
)
from hyperconsole.ast.vars import Vars, decode_vars


@dataclass
class Include:
    """Information about one included Taskfile."""

    namespace: str = ""
    taskfile: str = ""
    dir: str = ""
    optional: bool = False
    internal: bool = False
    aliases: list[str] = field(default_factory=list)
    excludes: list[str] = field(default_factory=list)
    advanced_import: bool = False
    vars: Vars | None = None
    flatten: bool = False

    def deep_copy(self) -> Include:
        """Copy the include; aliases are not carried over."""
        return Include(
            namespace=self.namespace,
            taskfile=self.taskfile,
            dir=self.dir,
            optional=self.optional,
            internal=self.internal,
            excludes=list(self.excludes),
            advanced_import=self.advanced_import,
            vars=None if self.vars is None else self.vars.deep_copy(),
            flatten=self.flatten,
        )


class Includes:
    """An ordered map of namespaces to :class:`Include` values."""

    def __init__(
        self,
        elements: Mapping[str, Include] | Iterable[tuple[str, Include]] | None = None,
    ) -> None:
        self._data: dict[str, Include] = {}
        self._lock = threading.RLock()
        if elements is not None:
            pairs = elements.items() if isinstance(elements, Mapping) else elements
            for key, value in pairs:
                self.set(key, value)

    def get(self, key: str) -> Include | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: Include) -> bool:
        """Store ``value``; return True when the key was new."""
        with self._lock:
            is_new = key not in self._data
            self._data[key] = value
            return is_new

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data

    def __iter__(self) -> Iterator[str]:
        return self.keys()

    def items(self) -> Iterator[tuple[str, Include]]:
        with self._lock:
            snapshot = list(self._data.items())
        return iter(snapshot)

    def keys(self) -> Iterator[str]:
        return (key for key, _ in self.items())

    def values(self) -> Iterator[Include]:
        return (value for _, value in self.items())

    def __repr__(self) -> str:
        return f"Includes({dict(self.items())!r})"


def decode_include(node: yaml.Node) -> Include:
    """Decode an include given as a path or as a mapping of options."""
    if isinstance(node, yaml.ScalarNode):
        return Include(taskfile=decode_str(node))
    if isinstance(node, yaml.MappingNode):
        fields = mapping_fields(node, "include")
        return Include(
            taskfile=decode_str(fields.get("taskfile")),
            dir=decode_str(fields.get("dir")),
            optional=decode_bool(fields.get("optional")),
            internal=decode_bool(fields.get("internal")),
            flatten=decode_bool(fields.get("flatten")),
            aliases=decode_str_list(fields.get("aliases")) or [],
            excludes=decode_str_list(fields.get("excludes")) or [],
            vars=optional(fields.get("vars"), decode_vars),
            advanced_import=True,
        )
    raise TaskfileDecodeError.from_node(node).with_type_message("include")


def decode_includes(node: yaml.Node) -> Includes:
    """Decode the ``includes`` mapping; each key becomes the namespace."""
    if not isinstance(node, yaml.MappingNode):
        raise TaskfileDecodeError.from_node(node).with_type_message("includes")
    includes = Includes()
    for key_node, value_node in node.value:
        try:
            include = decode_include(value_node)
        except TaskfileDecodeError as exc:
            raise TaskfileDecodeError.from_node(node, exc) from exc
        include.namespace = key_node.value
        includes.set(key_node.value, include)
    return includes