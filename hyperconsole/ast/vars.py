"""Ordered collection of task variables."""

from __future__ import annotations

import copy
import dataclasses
import threading
from typing import Any, Iterable, Iterator, Mapping

import yaml

from hyperconsole.ast.decode import TaskfileDecodeError, Var, decode_var


class Vars:
    """An ordered map of variable names to :class:`Var` values."""

    def __init__(
        self, elements: Mapping[str, Var] | Iterable[tuple[str, Var]] | None = None
    ) -> None:
        self._data: dict[str, Var] = {}
        self._lock = threading.RLock()
        if elements is not None:
            pairs = elements.items() if isinstance(elements, Mapping) else elements
            for key, value in pairs:
                self.set(key, value)

    def get(self, key: str) -> Var | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: Var) -> bool:
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

    def items(self) -> Iterator[tuple[str, Var]]:
        with self._lock:
            snapshot = list(self._data.items())
        return iter(snapshot)

    def keys(self) -> Iterator[str]:
        return (key for key, _ in self.items())

    def values(self) -> Iterator[Var]:
        return (value for _, value in self.items())

    def to_cache_map(self) -> dict[str, Any]:
        """Return the resolved values of all non-dynamic variables."""
        result: dict[str, Any] = {}
        for key, var in self.items():
            if var.sh:
                continue
            result[key] = var.live if var.live is not None else var.value
        return result

    def merge(self, other: Vars | None, include: Any = None) -> None:
        """Copy every variable of ``other`` into this collection.

        For an advanced include, each merged variable takes the include's dir.
        """
        if other is None:
            return
        advanced = include is not None and include.advanced_import
        for key, var in other.items():
            if advanced:
                var.dir = include.dir
            self.set(key, dataclasses.replace(var))

    def deep_copy(self) -> Vars:
        return Vars((key, copy.deepcopy(var)) for key, var in self.items())

    def __repr__(self) -> str:
        return f"Vars({dict(self.items())!r})"


def decode_vars(node: yaml.Node) -> Vars:
    """Decode a mapping of variable definitions."""
    if not isinstance(node, yaml.MappingNode):
        raise TaskfileDecodeError.from_node(node).with_type_message("vars")
    result = Vars()
    for key_node, value_node in node.value:
        result.set(key_node.value, decode_var(value_node))
    return result