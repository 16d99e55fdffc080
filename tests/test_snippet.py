import re

import pytest

from hyperconsole.taskfile.snippet import Snippet, digits

ANSI = re.compile(r"\x1b\[[0-9;]*m")

SAMPLE = b"version: '3'\ntasks:\n  default:\n    cmds:\n      - echo hi\n"


def plain(snippet):
    return ANSI.sub("", str(snippet))


def test_worked_example_with_indicators():
    snippet = Snippet(SAMPLE, line=3, column=3, padding=1)
    assert plain(snippet) == (
        "  2 | tasks:\n"
        "> 3 |   default:\n"
        "    |   ^\n"
        "  4 |     cmds:"
    )


def test_range_bounds():
    snippet = Snippet(SAMPLE, line=3, padding=1)
    assert snippet.start == 2
    assert snippet.end == 4
    assert snippet.lines_raw == ["tasks:", "  default:", "    cmds:"]


def test_highlighted_lines_match_raw_after_stripping():
    snippet = Snippet(SAMPLE, line=3, padding=2)
    assert [ANSI.sub("", line) for line in snippet.lines_highlighted] == snippet.lines_raw


def test_no_indicators():
    snippet = Snippet(SAMPLE, line=3, column=3, padding=1, no_indicators=True)
    text = plain(snippet)
    assert ">" not in text
    assert "^" not in text
    assert len(text.split("\n")) == 3


def test_column_out_of_bounds_has_no_caret():
    snippet = Snippet(SAMPLE, line=2, column=50, padding=0)
    text = plain(snippet)
    assert "^" not in text
    assert text.startswith(">")


def test_column_without_line_goes_under_all_lines():
    snippet = Snippet(SAMPLE, line=0, column=2, padding=2)
    text = plain(snippet)
    lines = text.split("\n")
    assert lines[-1].endswith("^")
    assert ">" not in text


def test_start_never_below_one():
    snippet = Snippet(SAMPLE, line=1, padding=5)
    assert snippet.start == 1
    assert snippet.end == len(SAMPLE.decode().split("\n")) - 1


def test_accepts_text():
    assert plain(Snippet(SAMPLE.decode(), line=2)) == plain(Snippet(SAMPLE, line=2))


@pytest.mark.parametrize("number", [1, 9, 10, 99, 100, 12345])
def test_digits_counts_decimal_digits(number):
    assert digits(number) == len(str(number))
    assert digits(-number) == digits(number)


def test_digits_of_zero():
    assert digits(0) == 0