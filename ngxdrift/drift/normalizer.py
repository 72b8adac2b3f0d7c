"""Comment stripping for fetched configuration text."""

from __future__ import annotations

import re

# Lines end at "\n" only; "\r", "\x0c" and friends stay inside the line.
_LINE = re.compile(r"[^\n]*\n|[^\n]+")


def is_comment(line: str) -> bool:
    return line.lstrip().startswith("#")


def normalize(text: str) -> str:
    """Drop every full-line comment, indented or not.

    All other lines, blank ones included, keep their order and line endings.
    Generators such as the ingress controller stamp per-pod values (e.g. the
    render time) into comments; those must not count as drift.
    """
    return "".join(line for line in _LINE.findall(text) if not is_comment(line))
