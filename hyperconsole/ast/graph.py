"""The directed acyclic graph of a Taskfile and the Taskfiles it includes."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass

from hyperconsole.ast.include import Include
from hyperconsole.ast.taskfile import Taskfile


class VertexExistsError(Exception):
    """Raised when a vertex with the same URI is already in the graph."""

    def __init__(self, uri: str) -> None:
        super().__init__(f'vertex "{uri}" already exists')
        self.uri = uri


class EdgeCreatesCycleError(Exception):
    """Raised when adding an edge would make the graph cyclic."""

    def __init__(self, source: str, target: str) -> None:
        super().__init__(f'edge from "{source}" to "{target}" would create a cycle')
        self.source = source
        self.target = target


@dataclass
class TaskfileVertex:
    """A vertex of the Taskfile graph."""

    uri: str
    taskfile: Taskfile | None = None


def _dot_quote(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


class TaskfileGraph:
    """A rooted, directed, acyclic graph of Taskfiles keyed by URI.

    Edges carry the list of includes that link a parent to a child. Using the
    graph as a context manager holds its lock, so that callers can group
    several operations together.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._guard = threading.RLock()
        self._vertices: dict[str, TaskfileVertex] = {}
        self._edges: dict[str, dict[str, list[Include]]] = {}

    def __enter__(self) -> TaskfileGraph:
        self._lock.acquire()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self._lock.release()

    def __len__(self) -> int:
        with self._guard:
            return len(self._vertices)

    def add_vertex(self, vertex: TaskfileVertex) -> None:
        with self._guard:
            if vertex.uri in self._vertices:
                raise VertexExistsError(vertex.uri)
            self._vertices[vertex.uri] = vertex
            self._edges[vertex.uri] = {}

    def vertex(self, uri: str) -> TaskfileVertex:
        with self._guard:
            try:
                return self._vertices[uri]
            except KeyError:
                raise KeyError(f'vertex "{uri}" not found') from None

    def _reaches(self, start: str, goal: str) -> bool:
        seen: set[str] = set()
        stack = [start]
        while stack:
            current = stack.pop()
            if current == goal:
                return True
            if current in seen:
                continue
            seen.add(current)
            stack.extend(self._edges.get(current, {}))
        return False

    def add_edge(self, source: str, target: str, includes: list[Include]) -> None:
        """Link ``source`` to ``target``; the edge's weight is the number of includes."""
        with self._guard:
            self.vertex(source)
            self.vertex(target)
            if target in self._edges[source]:
                raise ValueError(f'edge from "{source}" to "{target}" already exists')
            if self._reaches(target, source):
                raise EdgeCreatesCycleError(source, target)
            self._edges[source][target] = list(includes)

    def edge(self, source: str, target: str) -> list[Include] | None:
        """Return the includes on the edge, or None when there is no such edge."""
        with self._guard:
            includes = self._edges.get(source, {}).get(target)
            return None if includes is None else list(includes)

    def update_edge(self, source: str, target: str, includes: list[Include]) -> None:
        with self._guard:
            targets = self._edges.get(source, {})
            if target not in targets:
                raise KeyError(f'edge from "{source}" to "{target}" not found')
            targets[target] = list(includes)

    def _predecessor_map(self) -> dict[str, list[tuple[str, list[Include]]]]:
        predecessors: dict[str, list[tuple[str, list[Include]]]] = {
            uri: [] for uri in self._vertices
        }
        for source, targets in self._edges.items():
            for target, includes in targets.items():
                predecessors[target].append((source, list(includes)))
        return predecessors

    def topological_order(self) -> list[str]:
        """Return the vertex URIs so that every parent comes before its children."""
        with self._guard:
            in_degree = {uri: 0 for uri in self._vertices}
            for targets in self._edges.values():
                for target in targets:
                    in_degree[target] += 1
            queue = deque(uri for uri, degree in in_degree.items() if degree == 0)
            order: list[str] = []
            while queue:
                current = queue.popleft()
                order.append(current)
                for target in self._edges[current]:
                    in_degree[target] -= 1
                    if in_degree[target] == 0:
                        queue.append(target)
            if len(order) != len(self._vertices):
                raise EdgeCreatesCycleError(order[-1] if order else "", "")
            return order

    def merge(self) -> Taskfile:
        """Merge every included Taskfile into its parents and return the root's."""
        with self._guard:
            order = self.topological_order()
            if not order:
                raise ValueError("task: the Taskfile graph has no vertices")
            predecessors = self._predecessor_map()
            # Children are merged before their parents, so each parent already
            # holds its own includes when it is merged upwards.
            for uri in reversed(order[1:]):
                included = self.vertex(uri)
                for source, includes in predecessors[uri]:
                    parent = self.vertex(source)
                    for include in includes:
                        parent.taskfile.merge(included.taskfile, include)
            return self.vertex(order[0]).taskfile

    def visualize(self, filename: str) -> None:
        """Write the graph to ``filename`` in DOT format."""
        with self._guard:
            lines = ["strict digraph {", ""]
            for uri in self._vertices:
                lines += [f"\t{_dot_quote(uri)} [  weight=0 ];", ""]
            for source, targets in self._edges.items():
                for target, includes in targets.items():
                    lines += [
                        f"\t{_dot_quote(source)} -> {_dot_quote(target)} "
                        f"[ weight={len(includes)} ];",
                        "",
                    ]
            lines.append("}")
        with open(filename, "w", encoding="utf-8") as handle:
            handle.write("\n".join(lines) + "\n")