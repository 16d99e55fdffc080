"""YAML node helpers, the Taskfile decode error and task variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

import yaml

_YAML_PREFIX = "tag:yaml.org,2002:"
_MAP_VARIABLES_ENV = "TASK_X_MAP_VARIABLES"

_TYPE_NAMES = {
    "str": "string",
    "int": "integer",
    "float": "float",
    "bool": "boolean",
    "null": "null",
    "seq": "sequence",
    "map": "mapping",
    "binary": "binary",
    "timestamp": "timestamp",
}

T = TypeVar("T")


def short_tag(node: yaml.Node) -> str:
    """Return the node's tag in its short ``!!name`` form."""
    tag = node.tag or ""
    if tag.startswith(_YAML_PREFIX):
        return "!!" + tag[len(_YAML_PREFIX):]
    return tag


class TaskfileDecodeError(Exception):
    """Raised when part of a Taskfile cannot be decoded."""

    def __init__(
        self,
        cause: BaseException | None = None,
        *,
        line: int = 0,
        column: int = 0,
        tag: str = "",
        message: str = "",
    ) -> None:
        super().__init__(message or (str(cause) if cause else ""))
        self.cause = cause
        self.line = line
        self.column = column
        self.tag = tag
        self.message = message
        self.location = ""
        self.snippet = ""

    @classmethod
    def from_node(
        cls, node: yaml.Node, cause: BaseException | None = None
    ) -> TaskfileDecodeError:
        """Build an error positioned at ``node``; an existing decode error is kept."""
        if isinstance(cause, TaskfileDecodeError):
            return cause
        return cls(
            cause,
            line=node.start_mark.line + 1,
            column=node.start_mark.column + 1,
            tag=short_tag(node),
        )

    def with_message(self, message: str) -> TaskfileDecodeError:
        self.message = message
        return self

    def with_type_message(self, type_name: str) -> TaskfileDecodeError:
        slug = self.tag[2:] if self.tag.startswith("!!") else self.tag
        self.message = f"cannot unmarshal {_TYPE_NAMES.get(slug, slug)} into {type_name}"
        return self

    def with_file_info(self, location: str, snippet: str) -> TaskfileDecodeError:
        self.location = location
        self.snippet = snippet
        return self

    def __str__(self) -> str:
        message = self.message or (str(self.cause) if self.cause else "")
        text = f"err:    {message}\nfile:   {self.location}:{self.line}:{self.column}\n"
        return text + self.snippet


def is_null(node: yaml.Node | None) -> bool:
    """True when ``node`` is absent or an explicit YAML null."""
    if node is None:
        return True
    return isinstance(node, yaml.ScalarNode) and node.tag == _YAML_PREFIX + "null"


def construct(node: yaml.Node) -> Any:
    """Turn a YAML node into plain Python values."""
    loader = yaml.SafeLoader("")
    try:
        return loader.construct_document(node)
    except yaml.YAMLError as exc:
        raise TaskfileDecodeError.from_node(node, exc) from exc
    finally:
        loader.dispose()


def mapping_fields(node: yaml.Node, type_name: str) -> dict[str, yaml.Node]:
    """Return the value nodes of a mapping keyed by their scalar keys."""
    if not isinstance(node, yaml.MappingNode):
        raise TaskfileDecodeError.from_node(node).with_type_message(type_name)
    fields: dict[str, yaml.Node] = {}
    for key_node, value_node in node.value:
        key = key_node.value if isinstance(key_node, yaml.ScalarNode) else ""
        if key in fields:
            raise TaskfileDecodeError.from_node(key_node).with_message(
                f'mapping key "{key}" already defined'
            )
        fields[key] = value_node
    return fields


def first_key(node: yaml.MappingNode) -> str:
    """Return the first key of a mapping node, or an empty string."""
    if not node.value:
        return ""
    key_node = node.value[0][0]
    return key_node.value if isinstance(key_node, yaml.ScalarNode) else ""


def decode_str(node: yaml.Node | None) -> str:
    if is_null(node):
        return ""
    if isinstance(node, yaml.ScalarNode):
        return node.value
    raise TaskfileDecodeError.from_node(node).with_type_message("string")


def decode_optional_str(node: yaml.Node | None) -> str | None:
    return None if is_null(node) else decode_str(node)


def decode_bool(node: yaml.Node | None) -> bool:
    if is_null(node):
        return False
    if isinstance(node, yaml.ScalarNode):
        value = construct(node)
        if isinstance(value, bool):
            return value
    raise TaskfileDecodeError.from_node(node).with_type_message("bool")


def decode_sequence(
    node: yaml.Node | None, item_decoder: Callable[[yaml.Node], T], type_name: str
) -> list[T | None] | None:
    """Decode a sequence item by item; null items become ``None``."""
    if is_null(node):
        return None
    if not isinstance(node, yaml.SequenceNode):
        raise TaskfileDecodeError.from_node(node).with_type_message(type_name)
    return [None if is_null(item) else item_decoder(item) for item in node.value]


def decode_str_list(node: yaml.Node | None) -> list[str] | None:
    if is_null(node):
        return None
    if not isinstance(node, yaml.SequenceNode):
        raise TaskfileDecodeError.from_node(node).with_type_message("[]string")
    return [decode_str(item) for item in node.value]


def optional(node: yaml.Node | None, decoder: Callable[[yaml.Node], T]) -> T | None:
    """Apply ``decoder`` unless the node is absent or null."""
    return None if is_null(node) else decoder(node)


@dataclass
class Var:
    """A static or dynamic variable."""

    value: Any = None
    live: Any = None
    sh: str | None = None
    ref: str = ""
    dir: str = ""


def _map_variables_mode() -> int:
    try:
        mode = int(os.environ.get(_MAP_VARIABLES_ENV, "0"))
    except ValueError:
        return 0
    return mode if mode in (1, 2) else 0


def decode_var(node: yaml.Node) -> Var:
    """Decode a single variable definition."""
    mode = _map_variables_mode()

    if mode == 1:
        value = construct(node)
        if isinstance(value, str):
            if value.startswith("$"):
                return Var(sh=value[1:])
            if value.startswith("#"):
                return Var(ref=value[1:])
        return Var(value=value)

    if mode == 2 and isinstance(node, yaml.MappingNode):
        key = first_key(node)
        if key not in ("sh", "ref", "map"):
            raise TaskfileDecodeError.from_node(node).with_message(
                f'"{key}" is not a valid variable type. '
                'Try "sh", "ref", "map" or using a scalar value'
            )
        fields = mapping_fields(node, "var")
        map_node = fields.get("map")
        return Var(
            sh=decode_optional_str(fields.get("sh")),
            ref=decode_str(fields.get("ref")),
            value=None if map_node is None else construct(map_node),
        )

    if isinstance(node, yaml.MappingNode):
        if first_key(node) not in ("sh", "ref"):
            raise TaskfileDecodeError.from_node(node).with_message(
                "maps cannot be assigned to variables"
            )
        fields = mapping_fields(node, "var")
        return Var(
            sh=decode_optional_str(fields.get("sh")),
            ref=decode_str(fields.get("ref")),
        )

    return Var(value=construct(node))