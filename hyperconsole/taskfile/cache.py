"""On-disk cache of downloaded remote Taskfiles."""

from __future__ import annotations

import hashlib
import os
import shutil
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hyperconsole.taskfile.nodes import Node


def checksum(data: bytes) -> str:
    """Return the hex SHA-256 digest of ``data``."""
    return hashlib.sha256(data).hexdigest()


class Cache:
    """Stores remote Taskfiles and their checksums under ``<dir>/remote``."""

    def __init__(self, dir: str) -> None:
        self.dir = os.path.join(dir, "remote")
        os.makedirs(self.dir, mode=0o755, exist_ok=True)

    def write(self, node: Node, data: bytes) -> None:
        with open(self._cache_file_path(node), "wb") as handle:
            handle.write(data)

    def read(self, node: Node) -> bytes:
        """Return the cached copy; raises FileNotFoundError when there is none."""
        with open(self._cache_file_path(node), "rb") as handle:
            return handle.read()

    def write_checksum(self, node: Node, checksum: str) -> None:
        with open(self._checksum_file_path(node), "w", encoding="utf-8") as handle:
            handle.write(checksum)

    def read_checksum(self, node: Node) -> str:
        """Return the stored checksum, or an empty string."""
        try:
            with open(self._checksum_file_path(node), encoding="utf-8") as handle:
                return handle.read()
        except OSError:
            return ""

    def key(self, node: Node) -> str:
        return checksum(node.location().encode()).rstrip("=")

    def _cache_file_path(self, node: Node) -> str:
        return self.file_path(node, "yaml")

    def _checksum_file_path(self, node: Node) -> str:
        return self.file_path(node, "checksum")

    def file_path(self, node: Node, suffix: str) -> str:
        last_dir, filename = node.filename_and_last_dir()
        prefix = filename
        # Skip "", "." and "/": they do not name a directory.
        if len(last_dir) > 1:
            prefix = f"{last_dir}-{filename}"
        return os.path.join(self.dir, f"{prefix}.{self.key(node)}.{suffix}")

    def clear(self) -> None:
        try:
            shutil.rmtree(self.dir)
        except FileNotFoundError:
            pass