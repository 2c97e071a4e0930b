"""Marker grammar — literal delimiters the model is instructed to emit.

The tokens appear verbatim in the system prompts and are echoed back by the
model, so they must match byte-for-byte.  They are always matched as
literal text: build patterns through :func:`escape_literal`.
"""

from __future__ import annotations

import re

# ── Edit triplet (inside an update region) ───────────────────
SEARCH_START = "<<<<<<< SEARCH"
DIVIDER = "======="
REPLACE_END = ">>>>>>> REPLACE"

# ── Initial generation ───────────────────────────────────────
TITLE_PAGE_START = "<<<<<<< START_TITLE "
TITLE_PAGE_END = " >>>>>>> END_TITLE"

# ── Follow-up edits ──────────────────────────────────────────
NEW_PAGE_START = "<<<<<<< NEW_PAGE_START "
NEW_PAGE_END = " >>>>>>> NEW_PAGE_END"
UPDATE_PAGE_START = "<<<<<<< UPDATE_PAGE_START "
UPDATE_PAGE_END = " >>>>>>> UPDATE_PAGE_END"

# ── Project naming (new projects only) ───────────────────────
PROJECT_NAME_START = "<<<<<<< PROJECT_NAME_START "
PROJECT_NAME_END = " >>>>>>> PROJECT_NAME_END"

# Paths treated as the canonical top-level document
HOME_PAGE_ALIASES = ("/", "/index", "index")

_METACHARACTERS = re.compile(r"[.*+?^${}()|[\]\\]")


def escape_literal(text: str) -> str:
    """Escape pattern metacharacters so *text* matches literally.

    Only ``. * + ? ^ $ { } ( ) | [ ] \\`` are escaped.  Whitespace is left
    untouched so later passes can relax it.
    """
    return _METACHARACTERS.sub(lambda m: "\\" + m.group(0), text)
