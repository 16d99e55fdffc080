"""Matrices of loop values, keyed by variable name."""

from __future__ import annotations

import copy
import threading
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Mapping

import yaml

from hyperconsole.ast.decode import TaskfileDecodeError, construct, decode_str, mapping_fields


@dataclass
class MatrixRow:
    """The values for one matrix key, or a reference to a variable holding them."""

    ref: str = ""
    value: list[Any] | None = None

    def deep_copy(self) -> MatrixRow:
        return MatrixRow(self.ref, copy.deepcopy(self.value))


class Matrix:
    """An ordered map of variable names to :class:`MatrixRow` values."""

    def __init__(
        self,
        elements: Mapping[str, MatrixRow] | Iterable[tuple[str, MatrixRow]] | None = None,
    ) -> None:
        self._data: dict[str, MatrixRow] = {}
        self._lock = threading.RLock()
        if elements is not None:
            pairs = elements.items() if isinstance(elements, Mapping) else elements
            for key, value in pairs:
                self.set(key, value)

    def get(self, key: str) -> MatrixRow | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: MatrixRow) -> bool:
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

    def items(self) -> Iterator[tuple[str, MatrixRow]]:
        with self._lock:
            snapshot = list(self._data.items())
        return iter(snapshot)

    def keys(self) -> Iterator[str]:
        return (key for key, _ in self.items())

    def values(self) -> Iterator[MatrixRow]:
        return (value for _, value in self.items())

    def deep_copy(self) -> Matrix:
        return Matrix((key, row.deep_copy()) for key, row in self.items())

    def __repr__(self) -> str:
        return f"Matrix({dict(self.items())!r})"


def decode_matrix(node: yaml.Node) -> Matrix:
    """Decode a mapping of keys to lists or ``{ref: ...}`` references."""
    if not isinstance(node, yaml.MappingNode):
        raise TaskfileDecodeError.from_node(node).with_type_message("matrix")
    matrix = Matrix()
    for key_node, value_node in node.value:
        if isinstance(value_node, yaml.SequenceNode):
            try:
                values = construct(value_node)
            except TaskfileDecodeError as exc:
                raise TaskfileDecodeError.from_node(node, exc) from exc
            matrix.set(key_node.value, MatrixRow(value=list(values)))
        elif isinstance(value_node, yaml.MappingNode):
            fields = mapping_fields(value_node, "matrix")
            matrix.set(key_node.value, MatrixRow(ref=decode_str(fields.get("ref"))))
        else:
            raise TaskfileDecodeError.from_node(node).with_message(
                "matrix values must be an array or a reference"
            )
    return matrix