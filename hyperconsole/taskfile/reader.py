"""Reading a Taskfile and every Taskfile it includes into a graph."""

from __future__ import annotations

import copy
import os
import re
import tempfile
import threading
from typing import Any, Callable

import yaml

from hyperconsole.ast.decode import TaskfileDecodeError, Var
from hyperconsole.ast.graph import (
    EdgeCreatesCycleError,
    TaskfileGraph,
    TaskfileVertex,
    VertexExistsError,
)
from hyperconsole.ast.include import Include
from hyperconsole.ast.simple import Location
from hyperconsole.ast.taskfile import Taskfile, parse_taskfile
from hyperconsole.ast.vars import Vars
from hyperconsole.taskfile.cache import Cache, checksum
from hyperconsole.taskfile.locate import TaskfileNetworkTimeoutError
from hyperconsole.taskfile.nodes import DEFAULT_TIMEOUT, Node, new_node
from hyperconsole.taskfile.snippet import Snippet

TASKFILE_UNTRUSTED_PROMPT = (
    "The task you are attempting to run depends on the remote Taskfile at {!r}.\n"
    "--- Make sure you trust the source of this Taskfile before continuing ---\n"
    "Continue?"
)
TASKFILE_CHANGED_PROMPT = (
    "The Taskfile at {!r} has changed since you last used it!\n"
    "--- Make sure you trust the source of this Taskfile before continuing ---\n"
    "Continue?"
)

_TEMPLATE_REF = re.compile(r"\{\{\s*\.(\w+)\s*\}\}")

DebugFunc = Callable[[str], None]
PromptFunc = Callable[[str], Any]


class TaskfileNotTrustedError(Exception):
    """Raised when the user does not trust a remote Taskfile."""

    def __init__(self, uri: str) -> None:
        super().__init__(f'task: Taskfile "{uri}" not trusted by user')
        self.uri = uri


class TaskfileCacheNotFoundError(Exception):
    """Raised in offline mode when no cached copy of a remote Taskfile exists."""

    def __init__(self, uri: str) -> None:
        super().__init__(
            f'task: Taskfile "{uri}" was not found in the cache. Remove the --offline flag '
            "to use a remote copy or download it using the --download flag"
        )
        self.uri = uri


class TaskfileVersionCheckError(Exception):
    """Raised when a Taskfile has no schema version."""

    def __init__(self, uri: str) -> None:
        super().__init__(f'task: Missing schema version in Taskfile "{uri}"')
        self.uri = uri


class TaskfileInvalidError(Exception):
    """Raised when a Taskfile cannot be parsed."""

    def __init__(self, uri: str, err: BaseException) -> None:
        super().__init__(f"task: Failed to parse {uri}:\n{err}")
        self.uri = uri
        self.err = err


class TaskfileCycleError(Exception):
    """Raised when Taskfiles include one another in a cycle."""

    def __init__(self, source: str, destination: str) -> None:
        super().__init__(f"task: include cycle detected between {source} <--> {destination}")
        self.source = source
        self.destination = destination


def _try_abs_to_rel(path: str) -> str:
    if not os.path.isabs(path):
        return path
    try:
        return os.path.relpath(path)
    except ValueError:
        return path


def _render(text: str, values: dict[str, Any]) -> str:
    def substitute(match: re.Match) -> str:
        value = values.get(match.group(1))
        return "<no value>" if value is None else str(value)

    return _TEMPLATE_REF.sub(substitute, text)


def _run_all(jobs: list[Callable[[], None]]) -> None:
    """Run ``jobs`` in parallel threads and re-raise the first failure."""
    errors: list[BaseException | None] = [None] * len(jobs)

    def runner(index: int, job: Callable[[], None]) -> None:
        try:
            job()
        except BaseException as exc:  # noqa: BLE001 - re-raised in the caller
            errors[index] = exc

    threads = [
        threading.Thread(target=runner, args=(index, job), daemon=True)
        for index, job in enumerate(jobs)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    for error in errors:
        if error is not None:
            raise error


class Reader:
    """Reads Taskfiles recursively from a :class:`Node` into a :class:`TaskfileGraph`.

    ``prompt_func`` is called before a new or changed remote Taskfile is used;
    raising or returning False rejects it. Without one, every prompt is accepted.
    """

    def __init__(
        self,
        node: Node,
        *,
        insecure: bool = False,
        download: bool = False,
        offline: bool = False,
        timeout: float = DEFAULT_TIMEOUT,
        temp_dir: str | None = None,
        debug_func: DebugFunc | None = None,
        prompt_func: PromptFunc | None = None,
    ) -> None:
        self.graph = TaskfileGraph()
        self.node = node
        self.insecure = insecure
        self.download = download
        self.offline = offline
        self.timeout = timeout
        self.temp_dir = temp_dir if temp_dir is not None else tempfile.gettempdir()
        self.debug_func = debug_func
        self.prompt_func = prompt_func
        self._prompt_lock = threading.Lock()

    def read(self) -> TaskfileGraph:
        """Read the root Taskfile and everything it includes."""
        self._include(self.node)
        return self.graph

    def _debug(self, message: str) -> None:
        if self.debug_func is not None:
            self.debug_func(message)

    def _prompt(self, message: str) -> bool:
        if self.prompt_func is None:
            return True
        with self._prompt_lock:
            try:
                answer = self.prompt_func(message)
            except Exception:
                return False
        return answer is not False

    def _include(self, node: Node) -> None:
        vertex = TaskfileVertex(uri=node.location())
        try:
            self.graph.add_vertex(vertex)
        except VertexExistsError:
            # Already read and explored.
            return

        vertex.taskfile = self._read_node(node)
        taskfile = vertex.taskfile

        jobs = [
            self._include_job(node, taskfile, include)
            for _, include in taskfile.includes.items()
        ]
        _run_all(jobs)

    def _include_job(
        self, node: Node, taskfile: Taskfile, original: Include
    ) -> Callable[[], None]:
        def job() -> None:
            variables = Vars()
            for key, value in os.environ.items():
                variables.set(key, Var(value=value))
            variables.merge(taskfile.vars, None)
            values = variables.to_cache_map()

            include = copy.copy(original)
            include.taskfile = _render(original.taskfile, values)
            include.dir = _render(original.dir, values)

            entrypoint = node.resolve_entrypoint(include.taskfile)
            include.dir = node.resolve_dir(include.dir)

            try:
                include_node = new_node(
                    entrypoint, include.dir, self.insecure, self.timeout, node
                )
            except Exception:
                if include.optional:
                    return
                raise

            self._include(include_node)

            source, target = node.location(), include_node.location()
            with self.graph:
                existing = self.graph.edge(source, target)
                try:
                    if existing is None:
                        self.graph.add_edge(source, target, [include])
                    else:
                        self.graph.update_edge(source, target, existing + [include])
                except EdgeCreatesCycleError as exc:
                    raise TaskfileCycleError(source, target) from exc

        return job

    def _read_node(self, node: Node) -> Taskfile:
        data = self._load_node_content(node)
        try:
            taskfile = parse_taskfile(data)
        except TaskfileDecodeError as exc:
            snippet = Snippet(
                data,
                line=getattr(exc, "line", 0) or 0,
                column=getattr(exc, "column", 0) or 0,
                padding=2,
            )
            raise exc.with_file_info(node.location(), str(snippet)) from None
        except (yaml.YAMLError, UnicodeDecodeError) as exc:
            raise TaskfileInvalidError(_try_abs_to_rel(node.location()), exc) from exc

        if taskfile.version is None:
            raise TaskfileVersionCheckError(node.location())

        taskfile.location = node.location()
        for task in taskfile.tasks.values():
            if task.location is None:
                task.location = Location()
            if not task.location.taskfile:
                task.location.taskfile = taskfile.location
        return taskfile

    def _load_node_content(self, node: Node) -> bytes:
        if not node.remote():
            return node.read(self.timeout)

        cache = Cache(self.temp_dir)

        if self.offline:
            try:
                cached = cache.read(node)
            except FileNotFoundError as exc:
                raise TaskfileCacheNotFoundError(node.location()) from exc
            self._debug(f"task: [{node.location()}] Fetched cached copy\n")
            return cached

        try:
            data = node.read(self.timeout)
        except TaskfileNetworkTimeoutError as exc:
            if self.download:
                raise TaskfileNetworkTimeoutError(node.location(), self.timeout) from exc
            try:
                cached = cache.read(node)
            except FileNotFoundError:
                raise TaskfileNetworkTimeoutError(
                    node.location(), self.timeout, checked_cache=True
                ) from exc
            self._debug(f"task: [{node.location()}] Network timeout. Fetched cached copy\n")
            return cached
        self._debug(f"task: [{node.location()}] Fetched remote copy\n")

        digest = checksum(data)
        cached_digest = cache.read_checksum(node)

        prompt = ""
        if cached_digest == "":
            prompt = TASKFILE_UNTRUSTED_PROMPT
        elif digest != cached_digest:
            prompt = TASKFILE_CHANGED_PROMPT

        if prompt:
            if not self._prompt(prompt.format(node.location())):
                raise TaskfileNotTrustedError(node.location())
            cache.write_checksum(node, digest)
            self._debug(f"task: [{node.location()}] Caching downloaded file\n")
            cache.write(node, data)

        return data