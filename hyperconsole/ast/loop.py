"""The ``for`` clause of commands and dependencies."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any

import yaml

from hyperconsole.ast.decode import (
    TaskfileDecodeError,
    construct,
    decode_str,
    mapping_fields,
    optional,
)
from hyperconsole.ast.matrix import Matrix, decode_matrix


@dataclass
class For:
    """What a command or dependency loops over."""

    from_: str = ""
    list: list[Any] | None = None
    matrix: Matrix | None = None
    var: str = ""
    split: str = ""
    as_: str = ""

    def deep_copy(self) -> For:
        return For(
            from_=self.from_,
            list=copy.deepcopy(self.list),
            matrix=None if self.matrix is None else self.matrix.deep_copy(),
            var=self.var,
            split=self.split,
            as_=self.as_,
        )


def decode_for(node: yaml.Node) -> For:
    """Decode a ``for`` given as a source name, a list or a mapping."""
    if isinstance(node, yaml.ScalarNode):
        return For(from_=decode_str(node))
    if isinstance(node, yaml.SequenceNode):
        return For(list=list(construct(node)))
    if isinstance(node, yaml.MappingNode):
        fields = mapping_fields(node, "for")
        matrix = optional(fields.get("matrix"), decode_matrix)
        var = decode_str(fields.get("var"))
        matrix_len = 0 if matrix is None else len(matrix)
        if not var and matrix_len == 0:
            raise TaskfileDecodeError.from_node(node).with_message("invalid keys in for")
        if var and matrix_len != 0:
            raise TaskfileDecodeError.from_node(node).with_message(
                "cannot use both var and matrix in for"
            )
        return For(
            matrix=matrix,
            var=var,
            split=decode_str(fields.get("split")),
            as_=decode_str(fields.get("as")),
        )
    raise TaskfileDecodeError.from_node(node).with_type_message("for")