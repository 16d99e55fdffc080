"""Key bindings for the terminal interface."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Protocol


class KeyProvider(Protocol):
    """Something that names a key, its keystroke and its help text."""

    def __str__(self) -> str: ...

    def key_stroke(self) -> str: ...

    def help(self) -> str: ...

    def short_help(self) -> str: ...


_DEFAULT_KEYS = (
    ("CursorUp", "up", "Move up"),
    ("CursorDown", "down", "Move down"),
    ("PageUp", "pgup", "Page up"),
    ("PageDown", "pgdown", "Page down"),
    ("HalfPageUp", "u", "½ page up"),
    ("HalfPageDown", "d", "½ page down"),
    ("Enter", "enter", "Select"),
    ("Create", "a", "Create"),
    ("Delete", "ctrl+d", "Delete"),
    ("Cancel", "esc", "Cancel"),
    ("Quit", "q", "Quit"),
    ("ForceQuit", "ctrl+c", "Force quit"),
)


class DefaultKey(enum.Enum):
    """The keys every view understands."""

    UP = 0
    DOWN = 1
    PAGE_UP = 2
    PAGE_DOWN = 3
    HALF_PAGE_UP = 4
    HALF_PAGE_DOWN = 5
    ENTER = 6
    CREATE = 7
    DELETE = 8
    CANCEL = 9
    QUIT = 10
    FORCE_QUIT = 11

    def __str__(self) -> str:
        return _DEFAULT_KEYS[self.value][0]

    def key_stroke(self) -> str:
        return _DEFAULT_KEYS[self.value][1]

    def help(self) -> str:
        return _DEFAULT_KEYS[self.value][2]

    def short_help(self) -> str:
        return self.help()


@dataclass(frozen=True)
class CustomKey:
    """A key defined by a view, e.g. ``CustomKey("Reload", "ctrl+r", "Reload the data")``."""

    name: str
    keystroke: str
    help_text: str

    def __str__(self) -> str:
        return self.name

    def key_stroke(self) -> str:
        return self.keystroke

    def help(self) -> str:
        return self.help_text

    def short_help(self) -> str:
        return self.name


@dataclass(frozen=True)
class KeyBinding:
    """Keystrokes bound to an action, with the help shown for it."""

    keys: tuple[str, ...] = ()
    help_key: str = ""
    help_desc: str = ""
    disabled: bool = False

    @property
    def enabled(self) -> bool:
        return not self.disabled and bool(self.keys)

    def matches(self, keystroke: str) -> bool:
        return self.enabled and keystroke in self.keys


@dataclass
class KeyMap:
    """The keys a view responds to and the ones shown in its short help."""

    _items: dict = field(default_factory=dict)
    _short_help: list[KeyBinding] = field(default_factory=list)

    def with_key(self, provider: KeyProvider, show_short_help: bool) -> KeyMap:
        """Bind ``provider``; return the map so that calls can be chained."""
        stroke = provider.key_stroke()
        self._items[provider] = KeyBinding((stroke,), stroke, provider.help())
        if show_short_help:
            self._short_help.append(KeyBinding((stroke,), stroke, provider.short_help()))
        return self

    def matches(self, keystroke: str, provider: KeyProvider) -> bool:
        """True when ``keystroke`` triggers ``provider`` in this map."""
        binding = self._items.get(provider)
        return binding is not None and binding.matches(keystroke)

    def short_help(self) -> list[KeyBinding]:
        return list(self._short_help)

    def full_help(self) -> list[list[KeyBinding]]:
        """One column holding the short-help bindings, padded with empty ones."""
        padding = max(len(self._items) - len(self._short_help), 0)
        return [list(self._short_help) + [KeyBinding()] * padding]


def new_list_key_map() -> KeyMap:
    return (
        KeyMap()
        .with_key(DefaultKey.UP, False)
        .with_key(DefaultKey.DOWN, False)
        .with_key(DefaultKey.ENTER, True)
        .with_key(DefaultKey.QUIT, False)
    )


def new_viewport_key_map() -> KeyMap:
    return (
        KeyMap()
        .with_key(DefaultKey.UP, False)
        .with_key(DefaultKey.DOWN, False)
        .with_key(DefaultKey.PAGE_UP, False)
        .with_key(DefaultKey.PAGE_DOWN, False)
        .with_key(DefaultKey.HALF_PAGE_UP, False)
        .with_key(DefaultKey.HALF_PAGE_DOWN, False)
        .with_key(DefaultKey.ENTER, True)
        .with_key(DefaultKey.QUIT, False)
        .with_key(DefaultKey.CANCEL, False)
    )