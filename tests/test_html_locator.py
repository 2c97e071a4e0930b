"""Tests for services/html_locator.py — whitespace-tolerant block location."""

from config.prompts.markers import escape_literal
from services.html_locator import (
    build_flexible_pattern,
    line_count,
    line_number_at,
    locate,
)


# ── escape_literal ────────────────────────────────────────────


def test_escape_literal_metacharacters():
    assert escape_literal("a.b*(c)") == r"a\.b\*\(c\)"
    assert escape_literal("[x]{2}|^$?+\\") == r"\[x\]\{2\}\|\^\$\?\+\\"


def test_escape_literal_keeps_whitespace_and_tags():
    assert escape_literal("<div class='a'>\n  x</div>") == "<div class='a'>\n  x</div>"


def test_escape_literal_markers():
    assert escape_literal("<<<<<<< SEARCH") == "<<<<<<< SEARCH"
    assert escape_literal(">>>>>>> REPLACE") == ">>>>>>> REPLACE"


# ── build_flexible_pattern ───────────────────────────────────


def test_pattern_relaxes_whitespace_runs():
    assert build_flexible_pattern("<div> <p>") == r"<div\s*>\s*<p\s*>"


def test_pattern_relaxes_adjacent_tags():
    assert build_flexible_pattern("<a></a>") == r"<a\s*>\s*</a\s*>"


# ── locate ───────────────────────────────────────────────────


def test_locate_collapsed_whitespace():
    search = "<div>\n  <h1>Hi</h1>\n</div>"
    haystack = "<body><div><h1>Hi</h1></div></body>"

    match = locate(search, haystack)

    assert match is not None
    assert match.text == "<div><h1>Hi</h1></div>"
    assert haystack[match.start:match.end] == match.text


def test_locate_reindented_haystack():
    search = "<ul><li>One</li><li>Two</li></ul>"
    haystack = "<main>\n    <ul>\n        <li>One</li>\n        <li>Two</li>\n    </ul>\n</main>"

    match = locate(search, haystack)

    assert match is not None
    assert match.text.startswith("<ul>")
    assert match.text.endswith("</ul>")


def test_locate_whitespace_before_closing_bracket():
    match = locate('<img src="a.png">', '<img src="a.png" >')
    assert match is not None
    assert match.text == '<img src="a.png" >'


def test_locate_content_difference_is_not_matched():
    assert locate("<h1>Hello</h1>", "<h1>Help</h1>") is None


def test_locate_metacharacters_are_literal():
    assert locate("price: $5.00 (incl.)", "price: $5x00 (incl.)") is None
    assert locate("price: $5.00 (incl.)", "<p>price: $5.00 (incl.)</p>") is not None


def test_locate_first_match_wins():
    haystack = "<p>x</p>\n<p>x</p>"
    match = locate("<p>x</p>", haystack)
    assert match is not None
    assert match.start == 0


# ── line helpers ─────────────────────────────────────────────


def test_line_number_at():
    text = "a\nb\nc"
    assert line_number_at(text, 0) == 1
    assert line_number_at(text, 2) == 2
    assert line_number_at(text, 4) == 3


def test_line_count():
    assert line_count("") == 1
    assert line_count("one") == 1
    assert line_count("\none\n") == 3
