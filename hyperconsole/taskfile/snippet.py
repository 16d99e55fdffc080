"""Syntax highlighted excerpts of a Taskfile pointing at a line and column."""

from __future__ import annotations

import os
import sys

from pygments import highlight
from pygments.formatters import TerminalFormatter
from pygments.lexers import YamlLexer

LINE_INDICATOR = ">"
COLUMN_INDICATOR = "^"


def _use_color() -> bool:
    if "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb":
        return False
    stream = sys.stdout
    return stream is not None and hasattr(stream, "isatty") and stream.isatty()


def _red(text: str) -> str:
    return f"\x1b[31m{text}\x1b[0m" if _use_color() else text


def _highlight(text: str) -> str:
    try:
        return highlight(text, YamlLexer(stripnl=False, ensurenl=False), TerminalFormatter())
    except Exception:
        return text


def digits(number: int) -> int:
    """Return the number of decimal digits of ``number``; zero has none."""
    number = abs(number)
    count = 0
    while number != 0:
        number //= 10
        count += 1
    return count


class Snippet:
    """A highlighted excerpt of a Taskfile around a 1-indexed line.

    ``padding`` lines are shown before and after ``line``; ``column`` points
    into the chosen line.
    """

    def __init__(
        self,
        data: bytes | str,
        *,
        line: int = 0,
        column: int = 0,
        padding: int = 0,
        no_indicators: bool = False,
    ) -> None:
        self.line = line
        self.column = column
        self.padding = padding
        self.no_indicators = no_indicators

        text = data.decode("utf-8", errors="replace") if isinstance(data, bytes) else data
        lines_raw = text.split("\n")
        lines_highlighted = _highlight(text).split("\n")
        if len(lines_highlighted) != len(lines_raw):
            lines_highlighted = lines_raw

        self.start = max(line - padding, 1)
        self.end = min(line + padding, len(lines_raw) - 1)
        self.lines_raw = lines_raw[self.start - 1 : self.end]
        self.lines_highlighted = lines_highlighted[self.start - 1 : self.end]

    def __str__(self) -> str:
        width = digits(self.end)
        number_spacer = " " * width
        indicator_spacer = " " * len(LINE_INDICATOR)
        column_spacer = " " * max(self.column - 1, 0)
        column_line = (
            f"\n{indicator_spacer} {number_spacer} | {column_spacer}{_red(COLUMN_INDICATOR)}"
        )

        parts: list[str] = []
        for offset, (raw, highlighted) in enumerate(
            zip(self.lines_raw, self.lines_highlighted)
        ):
            if offset > 0:
                parts.append("\n")
            current = self.start + offset
            number = str(current).rjust(width)

            if current != self.line or self.no_indicators:
                parts.append(f"{indicator_spacer} {number} | {highlighted}")
                continue

            parts.append(f"{_red(LINE_INDICATOR)} {number} | {highlighted}")
            if 0 < self.column <= len(raw.encode()):
                parts.append(column_line)

        if self.lines_highlighted and self.line == 0 and self.column > 0:
            parts.append(column_line)

        return "".join(parts)