"""Sources a Taskfile can be read from: local files, standard input and HTTP."""

from __future__ import annotations

import abc
import os
import re
import sys
import urllib.parse

from hyperconsole.taskfile.locate import (
    TaskfileFetchFailedError,
    TaskfileNetworkTimeoutError,
    exists,
    exists_walk,
    http_request,
    remote_exists,
)

DEFAULT_TIMEOUT = 10.0
_REMOTE_EXPERIMENT_ENV = "TASK_X_REMOTE_TASKFILES"
_SCP_LIKE = re.compile(r"^(?:[^@/\s]+@)?(?P<host>[^:/\s]{2,}):(?P<path>[^/\\].*)$")


class TaskfileNotSecureError(Exception):
    """Raised when a remote Taskfile would be fetched over plain HTTP."""

    def __init__(self, uri: str) -> None:
        super().__init__(
            f'task: Taskfile "{uri}" cannot be downloaded over an insecure connection. '
            "You can override this by using the --insecure flag"
        )
        self.uri = uri


class RemoteTaskfilesDisabledError(Exception):
    """Raised when a remote Taskfile is requested but remote Taskfiles are off."""

    def __init__(self) -> None:
        super().__init__(
            "task: Remote taskfiles are not enabled. "
            f"Set {_REMOTE_EXPERIMENT_ENV}=1 to enable this experiment"
        )


def _expand(path: str) -> str:
    return os.path.expanduser(os.path.expandvars(path))


def _smart_join(base: str, path: str) -> str:
    if os.path.isabs(path):
        return path
    parts = [part for part in (base, path) if part]
    if not parts:
        return ""
    return os.path.normpath(os.path.join(*parts))


def _base(path: str) -> str:
    if path == "":
        return "."
    stripped = path.rstrip("/")
    if stripped == "":
        return "/"
    return stripped.rpartition("/")[2]


def _remote_taskfiles_enabled() -> bool:
    return os.environ.get(_REMOTE_EXPERIMENT_ENV, "") == "1"


class Node(abc.ABC):
    """A place a Taskfile is read from."""

    def __init__(self, dir: str = "", parent: Node | None = None) -> None:
        self.dir = dir
        self.parent = parent

    @abc.abstractmethod
    def read(self, timeout: float | None = None) -> bytes:
        """Return the raw Taskfile contents."""

    @abc.abstractmethod
    def location(self) -> str:
        """The identifier of this Taskfile, used as its graph key."""

    @abc.abstractmethod
    def remote(self) -> bool:
        """True when reading needs the network."""

    @abc.abstractmethod
    def resolve_entrypoint(self, entrypoint: str) -> str:
        """Resolve an included Taskfile's entrypoint relative to this node."""

    @abc.abstractmethod
    def resolve_dir(self, dir: str) -> str:
        """Resolve an include's directory relative to this node."""

    @abc.abstractmethod
    def filename_and_last_dir(self) -> tuple[str, str]:
        """Return the last directory name and the file name, in that order."""


class FileNode(Node):
    """A Taskfile on the local filesystem."""

    def __init__(self, entrypoint: str = "", dir: str = "", parent: Node | None = None) -> None:
        super().__init__(dir, parent)
        if entrypoint:
            entrypoint = exists(entrypoint)
            if not self.dir:
                self.dir = os.path.dirname(entrypoint)
        else:
            start = self.dir or os.getcwd()
            entrypoint = exists_walk(start)
            self.dir = os.path.dirname(entrypoint)
        self.entrypoint = entrypoint

    def location(self) -> str:
        return self.entrypoint

    def remote(self) -> bool:
        return False

    def read(self, timeout: float | None = None) -> bytes:
        with open(self.location(), "rb") as handle:
            return handle.read()

    def resolve_entrypoint(self, entrypoint: str) -> str:
        if "://" in entrypoint or entrypoint.startswith("git"):
            return entrypoint
        path = _expand(entrypoint)
        if os.path.isabs(path):
            return path
        # Includes are relative to the including Taskfile, not the working directory.
        return _smart_join(os.path.dirname(self.entrypoint), path)

    def resolve_dir(self, dir: str) -> str:
        path = _expand(dir)
        if os.path.isabs(path):
            return path
        return _smart_join(os.path.dirname(self.entrypoint), path)

    def filename_and_last_dir(self) -> tuple[str, str]:
        return "", os.path.basename(self.entrypoint)


class StdinNode(Node):
    """A Taskfile read from standard input."""

    def __init__(self, dir: str = "") -> None:
        super().__init__(dir)

    def location(self) -> str:
        return "__stdin__"

    def remote(self) -> bool:
        return False

    def read(self, timeout: float | None = None) -> bytes:
        lines = []
        for line in sys.stdin:
            line = line[:-1] if line.endswith("\n") else line
            line = line[:-1] if line.endswith("\r") else line
            lines.append(line + "\n")
        return "".join(lines).encode()

    def resolve_entrypoint(self, entrypoint: str) -> str:
        if "://" in entrypoint:
            return entrypoint
        path = _expand(entrypoint)
        if os.path.isabs(path):
            return path
        return _smart_join(self.dir, path)

    def resolve_dir(self, dir: str) -> str:
        path = _expand(dir)
        if os.path.isabs(path):
            return path
        return _smart_join(self.dir, path)

    def filename_and_last_dir(self) -> tuple[str, str]:
        return "", "__stdin__"


class HTTPNode(Node):
    """A Taskfile fetched over HTTP or HTTPS."""

    def __init__(
        self,
        entrypoint: str,
        dir: str = "",
        insecure: bool = False,
        timeout: float = DEFAULT_TIMEOUT,
        parent: Node | None = None,
    ) -> None:
        super().__init__(dir, parent)
        scheme = urllib.parse.urlsplit(entrypoint).scheme
        if scheme == "http" and not insecure:
            raise TaskfileNotSecureError(entrypoint)
        self.url = entrypoint
        self.entrypoint = entrypoint
        self.timeout = timeout

    def location(self) -> str:
        return self.entrypoint

    def remote(self) -> bool:
        return True

    def read(self, timeout: float | None = None) -> bytes:
        limit = self.timeout if timeout is None else timeout
        self.url = remote_exists(self.url, limit)
        try:
            status, _, body = http_request("GET", self.url, limit)
        except TimeoutError as exc:
            raise TaskfileNetworkTimeoutError(self.url, limit) from exc
        except OSError as exc:
            raise TaskfileFetchFailedError(self.url) from exc
        if status != 200:
            raise TaskfileFetchFailedError(self.url, status)
        return body

    def resolve_entrypoint(self, entrypoint: str) -> str:
        return urllib.parse.urljoin(self.url, entrypoint)

    def resolve_dir(self, dir: str) -> str:
        path = _expand(dir)
        if os.path.isabs(path):
            return path
        base = self.parent.dir if self.parent is not None else self.dir
        return _smart_join(base, path)

    def filename_and_last_dir(self) -> tuple[str, str]:
        head, sep, filename = self.entrypoint.rpartition("/")
        return _base(head + sep), filename


def get_scheme(uri: str) -> str:
    """Return ``git`` for Git repository URLs, else the URI's scheme or ``""``."""
    scheme, path = "", ""
    match = _SCP_LIKE.match(uri) if "://" not in uri else None
    if match is not None:
        scheme, path = "ssh", match.group("path")
    else:
        parts = urllib.parse.urlsplit(uri)
        scheme, path = parts.scheme, parts.path
    if path.split("//")[0].endswith(".git") and scheme in ("git", "ssh", "https", "http"):
        return "git"
    index = uri.find("://")
    return uri[:index] if index != -1 else ""


def default_dir(entrypoint: str, dir: str) -> str:
    """Pick the root directory: the cwd when nothing is given, else ``dir`` made absolute."""
    if not dir:
        if not entrypoint:
            try:
                return os.getcwd()
            except OSError:
                return ""
        return dir
    return os.path.abspath(dir)


def new_node(
    entrypoint: str,
    dir: str = "",
    insecure: bool = False,
    timeout: float = DEFAULT_TIMEOUT,
    parent: Node | None = None,
) -> Node:
    """Create the node that reads ``entrypoint``."""
    scheme = get_scheme(entrypoint)
    if scheme == "git":
        if not _remote_taskfiles_enabled():
            raise RemoteTaskfilesDisabledError()
        raise ValueError(f'task: Git taskfiles are not supported: "{entrypoint}"')
    if scheme in ("http", "https"):
        node: Node = HTTPNode(entrypoint, dir, insecure, timeout, parent)
    else:
        node = FileNode(entrypoint, dir, parent)
    if node.remote() and not _remote_taskfiles_enabled():
        raise RemoteTaskfilesDisabledError()
    return node


def new_root_node(
    entrypoint: str,
    dir: str = "",
    insecure: bool = False,
    timeout: float = DEFAULT_TIMEOUT,
) -> Node:
    """Create the node for the main Taskfile; ``-`` reads standard input."""
    dir = default_dir(entrypoint, dir)
    if entrypoint == "-":
        return StdinNode(dir)
    return new_node(entrypoint, dir, insecure, timeout)