"""Finding Taskfiles on disk and at remote URLs."""

from __future__ import annotations

import http.client
import os
import posixpath
import stat
import urllib.error
import urllib.parse
import urllib.request

DEFAULT_TASKFILES = (
    "Taskfile.yml",
    "taskfile.yml",
    "Taskfile.yaml",
    "taskfile.yaml",
    "Taskfile.dist.yml",
    "taskfile.dist.yml",
    "Taskfile.dist.yaml",
    "taskfile.dist.yaml",
)

ALLOWED_CONTENT_TYPES = (
    "text/plain",
    "text/yaml",
    "text/x-yaml",
    "application/yaml",
    "application/x-yaml",
)


class TaskfileNotFoundError(Exception):
    """Raised when no Taskfile exists at a path or URL."""

    def __init__(self, uri: str, walk: bool = False) -> None:
        message = f'task: No Taskfile found at "{uri}"'
        if walk:
            message += " (or any of the parent directories)"
        super().__init__(message)
        self.uri = uri
        self.walk = walk


class TaskfileFetchFailedError(Exception):
    """Raised when a remote Taskfile cannot be downloaded."""

    def __init__(self, uri: str, http_status_code: int = 0) -> None:
        message = f'task: Download of "{uri}" failed'
        if http_status_code:
            message += f" with status code {http_status_code}"
        super().__init__(message)
        self.uri = uri
        self.http_status_code = http_status_code


class TaskfileNetworkTimeoutError(Exception):
    """Raised when fetching a remote Taskfile takes longer than allowed."""

    def __init__(self, uri: str = "", timeout: float = 0.0, checked_cache: bool = False) -> None:
        message = f'task: Timed out after {timeout}s while attempting to read Taskfile "{uri}"'
        if checked_cache:
            message += " and no offline copy was found in the cache"
        super().__init__(message)
        self.uri = uri
        self.timeout = timeout
        self.checked_cache = checked_cache


def _smart_join(base: str, path: str) -> str:
    if os.path.isabs(path):
        return path
    parts = [part for part in (base, path) if part]
    if not parts:
        return ""
    return os.path.normpath(os.path.join(*parts))


def http_request(method: str, url: str, timeout: float) -> tuple[int, str, bytes]:
    """Send a request and return the status, content type and body.

    Timeouts raise :class:`TimeoutError`; any other network failure raises
    :class:`OSError`. Error statuses are returned, not raised.
    """
    try:
        request = urllib.request.Request(url, method=method)
        with urllib.request.urlopen(request, timeout=timeout) as response:
            body = b"" if method == "HEAD" else response.read()
            return response.status, response.headers.get("Content-Type", "") or "", body
    except urllib.error.HTTPError as exc:
        headers = exc.headers
        content_type = headers.get("Content-Type", "") if headers is not None else ""
        exc.close()
        return exc.code, content_type or "", b""
    except urllib.error.URLError as exc:
        if isinstance(exc.reason, TimeoutError):
            raise TimeoutError(str(exc.reason)) from exc
        raise
    except (ValueError, http.client.HTTPException) as exc:
        raise OSError(str(exc)) from exc


def exists(path: str) -> str:
    """Return the absolute path of the Taskfile at ``path``.

    A file is returned as is; a directory is searched for the default names.
    """
    mode = os.stat(path).st_mode
    if (
        stat.S_ISREG(mode)
        or stat.S_ISBLK(mode)
        or stat.S_ISCHR(mode)
        or stat.S_ISLNK(mode)
        or stat.S_ISFIFO(mode)
    ):
        return os.path.abspath(path)
    for name in DEFAULT_TASKFILES:
        alt = _smart_join(path, name)
        if os.path.exists(alt):
            return os.path.abspath(alt)
    raise TaskfileNotFoundError(path)


def _owner(path: str) -> int:
    return getattr(os.stat(path), "st_uid", 0)


def _parent_dir(path: str) -> str:
    return os.path.normpath(os.path.dirname(path) or ".")


def exists_walk(path: str) -> str:
    """Search ``path`` and its parents for a Taskfile.

    The search stops at the root or where the directory owner changes.
    """
    original = path
    owner = _owner(path)
    while True:
        try:
            return exists(path)
        except (OSError, TaskfileNotFoundError):
            pass
        parent = _parent_dir(path)
        parent_owner = _owner(parent)
        if path == parent or parent_owner != owner:
            raise TaskfileNotFoundError(original)
        owner = parent_owner
        path = parent


def remote_exists(url: str, timeout: float = 10.0) -> str:
    """Return the URL of the remote Taskfile at ``url``.

    If ``url`` does not serve a YAML document, the default Taskfile names are
    tried below it and the first that answers is returned.
    """
    try:
        status, content_type, _ = http_request("HEAD", url, timeout)
    except TimeoutError as exc:
        raise TaskfileNetworkTimeoutError(url, timeout) from exc
    except OSError as exc:
        raise TaskfileFetchFailedError(url) from exc

    if status == 200 and any(kind in content_type for kind in ALLOWED_CONTENT_TYPES):
        return url

    parts = urllib.parse.urlsplit(url)
    parts = parts._replace(path=parts.path or "/")
    base = urllib.parse.urlunsplit(parts)
    for name in DEFAULT_TASKFILES:
        alt_path = posixpath.normpath(posixpath.join(parts.path, name))
        alt = urllib.parse.urlunsplit(parts._replace(path=alt_path))
        try:
            status, _, _ = http_request("HEAD", alt, timeout)
        except OSError as exc:
            raise TaskfileFetchFailedError(base) from exc
        if status == 200:
            return alt

    raise TaskfileNotFoundError(base)