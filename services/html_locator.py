"""Whitespace-tolerant location of a SEARCH block inside existing HTML.

Models often re-indent or re-wrap the markup they quote back in a SEARCH
block.  The search text is compiled into a pattern that matches it
literally except for whitespace, which may differ freely:

1. every pattern metacharacter is escaped,
2. each whitespace run becomes ``\\s*``,
3. ``><`` becomes ``>\\s*<``,
4. each ``>`` may be preceded by whitespace (``\\s*>``).

The *matched haystack text* is returned, not the search text, so the
caller replaces exactly what is in the document.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from config.prompts.markers import escape_literal

_WHITESPACE_RUN = re.compile(r"\s+")
_TAG_GAP = re.compile(r">\s*<")
_TAG_CLOSE = re.compile(r"\s*>")


@dataclass(frozen=True)
class BlockMatch:
    """First occurrence of a search block in a haystack."""

    start: int
    end: int
    text: str


def build_flexible_pattern(search_text: str) -> str:
    """Compile *search_text* into a whitespace-relaxed pattern string."""
    pattern = escape_literal(search_text)
    pattern = _WHITESPACE_RUN.sub(lambda _: r"\s*", pattern)
    pattern = _TAG_GAP.sub(lambda _: r">\s*<", pattern)
    pattern = _TAG_CLOSE.sub(lambda _: r"\s*>", pattern)
    return pattern


def locate(search_text: str, haystack: str) -> BlockMatch | None:
    """Return the first whitespace-tolerant match of *search_text*, or None."""
    match = re.search(build_flexible_pattern(search_text), haystack)
    if match is None:
        return None
    return BlockMatch(start=match.start(), end=match.end(), text=match.group(0))


def line_number_at(text: str, offset: int) -> int:
    """1-based line number of the character at *offset*."""
    return text.count("\n", 0, offset) + 1


def line_count(text: str) -> int:
    """Number of lines in *text* (an empty string counts as one line)."""
    return text.count("\n") + 1
