"""Ordered collection of tasks and merging of included tasks."""

from __future__ import annotations

import os
import threading
from typing import Callable, Iterable, Iterator, Mapping, Optional

import yaml

from hyperconsole.ast.decode import TaskfileDecodeError, is_null
from hyperconsole.ast.include import Include
from hyperconsole.ast.simple import Location
from hyperconsole.ast.task import Task, decode_task
from hyperconsole.ast.vars import Vars

NAMESPACE_SEPARATOR = ":"

Sorter = Callable[[list, Optional[list]], list]


class TaskNameFlattenConflictError(Exception):
    """Raised when a merged task name is already taken."""

    def __init__(self, task_name: str, include: str) -> None:
        super().__init__(f'task: Found multiple tasks ({task_name}) included by "{include}"')
        self.task_name = task_name
        self.include = include


def task_name_with_namespace(task_name: str, namespace: str) -> str:
    """Prefix ``task_name`` with ``namespace``; a leading ``:`` means root."""
    if task_name.startswith(NAMESPACE_SEPARATOR):
        return task_name[len(NAMESPACE_SEPARATOR):]
    return f"{namespace}{NAMESPACE_SEPARATOR}{task_name}"


def _smart_join(base: str, path: str) -> str:
    if os.path.isabs(path):
        return path
    parts = [part for part in (base, path) if part]
    if not parts:
        return ""
    return os.path.normpath(os.path.join(*parts))


class Tasks:
    """An ordered map of task names to :class:`Task` values."""

    def __init__(
        self, elements: Mapping[str, Task] | Iterable[tuple[str, Task]] | None = None
    ) -> None:
        self._data: dict[str, Task] = {}
        self._lock = threading.RLock()
        if elements is not None:
            pairs = elements.items() if isinstance(elements, Mapping) else elements
            for key, value in pairs:
                self.set(key, value)

    def get(self, key: str) -> Task | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: Task) -> bool:
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

    def items(self, sorter: Sorter | None = None) -> Iterator[tuple[str, Task]]:
        """Iterate over name/task pairs, in insertion order or as ``sorter`` orders the names."""
        with self._lock:
            snapshot = dict(self._data)
        if sorter is None:
            return iter(list(snapshot.items()))
        return iter([(key, snapshot[key]) for key in sorter(list(snapshot), None)])

    def keys(self, sorter: Sorter | None = None) -> Iterator[str]:
        return (key for key, _ in self.items(sorter))

    def values(self, sorter: Sorter | None = None) -> Iterator[Task]:
        return (value for _, value in self.items(sorter))

    def merge(
        self, other: Tasks, include: Include, included_taskfile_vars: Vars | None
    ) -> None:
        """Add copies of the tasks of an included Taskfile to this collection."""
        namespace = include.namespace
        for name, original in other.items():
            task = original.deep_copy()
            task.internal = task.internal or include.internal
            task_name = name

            if name in include.excludes:
                continue

            if not include.flatten:
                for dep in task.deps:
                    if dep is not None and dep.task:
                        dep.task = task_name_with_namespace(dep.task, namespace)
                for cmd in task.cmds:
                    if cmd is not None and cmd.task:
                        cmd.task = task_name_with_namespace(cmd.task, namespace)
                task.aliases = [
                    task_name_with_namespace(alias, namespace) for alias in task.aliases
                ]
                for namespace_alias in include.aliases:
                    task.aliases.append(task_name_with_namespace(task.task, namespace_alias))
                    task.aliases.extend(
                        task_name_with_namespace(alias, namespace_alias)
                        for alias in original.aliases
                    )
                task_name = task_name_with_namespace(name, namespace)
                task.namespace = namespace
                task.task = task_name

            if include.advanced_import:
                task.dir = _smart_join(include.dir, task.dir)
                if task.include_vars is None:
                    task.include_vars = Vars()
                task.include_vars.merge(include.vars, None)
                task.included_taskfile_vars = (
                    None if included_taskfile_vars is None else included_taskfile_vars.deep_copy()
                )

            if task_name in self:
                raise TaskNameFlattenConflictError(task_name, namespace)
            self.set(task_name, task)

        if "default" in other and namespace not in self and not include.flatten:
            default_task = self.get(f"{namespace}:default")
            if default_task is not None:
                default_task.aliases.append(namespace)
                default_task.aliases.extend(include.aliases)

    def __repr__(self) -> str:
        return f"Tasks({list(self.keys())!r})"


def decode_tasks(node: yaml.Node) -> Tasks:
    """Decode the ``tasks`` mapping, recording each task's name and position."""
    if not isinstance(node, yaml.MappingNode):
        raise TaskfileDecodeError.from_node(node).with_type_message("tasks")
    tasks = Tasks()
    for key_node, value_node in node.value:
        if is_null(value_node):
            task = Task()
        else:
            try:
                task = decode_task(value_node)
            except TaskfileDecodeError as exc:
                raise TaskfileDecodeError.from_node(node, exc) from exc
        task.task = key_node.value
        task.location = Location(
            line=key_node.start_mark.line + 1,
            column=key_node.start_mark.column + 1,
        )
        tasks.set(key_node.value, task)
    return tasks