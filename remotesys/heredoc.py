"""Here-documents: strip the common indentation of multi-line strings."""

from __future__ import annotations

import sys


def _indent_of(line: str) -> int:
    return len(line) - len(line.lstrip(" \t"))


def _min_indent(lines: list[str]) -> tuple[int, list[str]]:
    """Return the smallest indentation of non-blank lines and the lines.

    A trailing blank line that is shallower than the indentation seen so far
    is emptied.
    """
    minimum = sys.maxsize
    result = list(lines)
    last = len(result) - 1
    for position, line in enumerate(result):
        size = _indent_of(line)
        if size == len(line):
            if position == last and size < minimum:
                result[position] = ""
        elif size < minimum:
            minimum = size
    return minimum, result


def doc(raw: str) -> str:
    """Return *raw* with its common indentation removed.

    A leading newline is dropped; otherwise the first line is kept as is and
    does not count towards the indentation.
    """
    if raw.startswith("\n"):
        raw = raw[1:]
        start = 0
    else:
        start = 1

    raw_lines = raw.split("\n")
    indent, body = _min_indent(raw_lines[start:])
    raw_lines[start:] = [line[indent:] if len(line) >= indent else line for line in body]
    return "\n".join(raw_lines)


def docf(raw: str, *args: object) -> str:
    """Return the un-indented *raw* formatted with printf-style *args*."""
    return doc(raw) % args