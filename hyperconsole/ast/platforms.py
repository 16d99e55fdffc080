"""Operating system and architecture restrictions."""

from __future__ import annotations

from dataclasses import dataclass

import yaml

from hyperconsole.ast.decode import TaskfileDecodeError, decode_str

_KNOWN_OS = frozenset({
    "aix", "android", "darwin", "dragonfly", "freebsd", "hurd", "illumos", "ios",
    "js", "linux", "nacl", "netbsd", "openbsd", "plan9", "solaris", "wasip1",
    "windows", "zos",
})

_KNOWN_ARCH = frozenset({
    "386", "amd64", "amd64p32", "arm", "armbe", "arm64", "arm64be", "loong64",
    "mips", "mipsle", "mips64", "mips64le", "mips64p32", "mips64p32le", "ppc",
    "ppc64", "ppc64le", "riscv", "riscv64", "s390", "s390x", "sparc", "sparc64",
    "wasm",
})


def is_known_os(name: str) -> bool:
    return name in _KNOWN_OS


def is_known_arch(name: str) -> bool:
    return name in _KNOWN_ARCH


class InvalidPlatformError(ValueError):
    """Raised for a platform string that names no known OS or architecture."""

    def __init__(self, platform: str) -> None:
        super().__init__(f'invalid platform "{platform}"')
        self.platform = platform


@dataclass
class Platform:
    """An OS, an architecture, or both."""

    os: str = ""
    arch: str = ""

    def deep_copy(self) -> Platform:
        return Platform(self.os, self.arch)


def _parse_os_or_arch(platform: Platform, value: str) -> None:
    if not value:
        raise ValueError("task: Blank OS/Arch value provided")
    if is_known_os(value):
        platform.os = value
    elif is_known_arch(value):
        platform.arch = value
    else:
        raise ValueError(f"task: Invalid OS/Arch value provided ({value})")


def _parse_arch(platform: Platform, value: str) -> None:
    if not value:
        raise ValueError("task: Blank Arch value provided")
    if platform.arch:
        raise ValueError("task: Multiple Arch values provided")
    if not is_known_arch(value):
        raise ValueError(f"task: Invalid Arch value provided ({value})")
    platform.arch = value


def parse_platform(text: str) -> Platform:
    """Parse ``OS``, ``Arch`` or ``OS/Arch``."""
    parts = text.split("/")
    if len(parts) > 2:
        raise InvalidPlatformError(text)
    platform = Platform()
    try:
        _parse_os_or_arch(platform, parts[0])
        if len(parts) == 2:
            _parse_arch(platform, parts[1])
    except ValueError as exc:
        raise InvalidPlatformError(text) from exc
    return platform


def decode_platform(node: yaml.Node) -> Platform:
    if isinstance(node, yaml.ScalarNode):
        text = decode_str(node)
        try:
            return parse_platform(text)
        except InvalidPlatformError as exc:
            raise TaskfileDecodeError.from_node(node, exc) from exc
    raise TaskfileDecodeError.from_node(node).with_type_message("platform")