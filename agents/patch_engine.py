"""Patch engine — turns raw model output into an updated page set.

Two entry points:

- :func:`parse_full_generation` for the initial generation format
  (``START_TITLE`` page blocks, optional project name).
- :func:`apply_update` for follow-up edits (``UPDATE_PAGE`` regions with
  SEARCH/REPLACE triplets, ``NEW_PAGE`` regions with whole documents).

Neither function raises on malformed or non-matching content.  A SEARCH
block that cannot be located is skipped and recorded as a ``skipped``
:class:`EditOutcome`; the rest of the batch still applies.
"""

from __future__ import annotations

import logging
import re

from config.prompts.markers import (
    DIVIDER,
    HOME_PAGE_ALIASES,
    NEW_PAGE_END,
    NEW_PAGE_START,
    PROJECT_NAME_END,
    PROJECT_NAME_START,
    REPLACE_END,
    SEARCH_START,
    TITLE_PAGE_END,
    TITLE_PAGE_START,
    UPDATE_PAGE_END,
    UPDATE_PAGE_START,
    escape_literal,
)
from models.site import (
    EditBlock,
    EditOutcome,
    EditStatus,
    FullGeneration,
    Page,
    UpdateInstruction,
    UpdateResult,
)
from services.html_locator import line_count, line_number_at, locate

logger = logging.getLogger(__name__)

# A region runs until the next update/new-page start marker or end of text.
_REGION_END = (
    f"(?={escape_literal(UPDATE_PAGE_START)}|{escape_literal(NEW_PAGE_START)}|\\Z)"
)

_UPDATE_PAGE_RE = re.compile(
    f"{escape_literal(UPDATE_PAGE_START)}(\\S+)\\s*{escape_literal(UPDATE_PAGE_END)}"
    f"([\\s\\S]*?){_REGION_END}"
)
_NEW_PAGE_RE = re.compile(
    f"{escape_literal(NEW_PAGE_START)}(\\S+)\\s*{escape_literal(NEW_PAGE_END)}"
    f"([\\s\\S]*?){_REGION_END}"
)
_PROJECT_NAME_RE = re.compile(
    f"{escape_literal(PROJECT_NAME_START)}([\\s\\S]*?){escape_literal(PROJECT_NAME_END)}"
)
_FENCED_HTML_RE = re.compile(r"```html\s*([\s\S]*?)\s*```")
# Initial generation may be cut off by max_tokens before the closing fence.
_FENCED_HTML_OPEN_RE = re.compile(r"```html\s*([\s\S]*?)\s*(?:```|\Z)")

_SLUG_MAX_LENGTH = 96


# ── Small helpers ────────────────────────────────────────────


def extract_project_name(raw_text: str) -> str | None:
    """Return the first PROJECT_NAME marker payload, trimmed, or None."""
    match = _PROJECT_NAME_RE.search(raw_text)
    if not match:
        return None
    name = match.group(1).strip()
    return name or None


def project_slug(name: str) -> str:
    """Lowercase, collapse non-alphanumerics to ``-``, cap at 96 chars."""
    parts = re.split(r"[^a-z0-9]+", name.lower())
    return "-".join(p for p in parts if p)[:_SLUG_MAX_LENGTH]


def is_home_path(path: str) -> bool:
    return path in HOME_PAGE_ALIASES


def _find_page(pages: list[Page], path: str) -> int:
    for index, page in enumerate(pages):
        if page.path == path:
            return index
    return -1


def _find_home_page(pages: list[Page]) -> int:
    """Index of the home page: an alias path first, then ``index.html``."""
    for index, page in enumerate(pages):
        if is_home_path(page.path):
            return index
    return _find_page(pages, "index.html")


def _fenced_html(content: str) -> str | None:
    match = _FENCED_HTML_RE.search(content)
    return match.group(1) if match else None


# ── Edit triplets ────────────────────────────────────────────


def iter_edit_blocks(content: str):
    """Yield :class:`EditBlock` triplets in document order.

    Scanning is left to right and non-overlapping; it stops at the first
    triplet missing its DIVIDER or REPLACE marker.
    """
    position = 0
    while True:
        search_start = content.find(SEARCH_START, position)
        if search_start == -1:
            return
        divider = content.find(DIVIDER, search_start)
        if divider == -1:
            return
        replace_end = content.find(REPLACE_END, divider)
        if replace_end == -1:
            return

        yield EditBlock(
            search_text=content[search_start + len(SEARCH_START):divider],
            replace_text=content[divider + len(DIVIDER):replace_end],
        )
        position = replace_end + len(REPLACE_END)


def apply_edit_block(
    html: str, block: EditBlock, page_path: str = ""
) -> tuple[str, EditOutcome]:
    """Apply one triplet to *html* and describe what happened."""
    if block.is_prepend:
        new_html = f"{block.replace_text}\n{html}"
        return new_html, EditOutcome(
            page_path=page_path,
            status=EditStatus.APPLIED,
            reason="prepend",
            changed_range=(1, line_count(block.replace_text)),
        )

    match = locate(block.search_text, html)
    if match is None:
        return html, EditOutcome(
            page_path=page_path,
            status=EditStatus.SKIPPED,
            reason="search block not found",
        )

    start_line = line_number_at(html, match.start)
    end_line = start_line + line_count(block.replace_text) - 1
    new_html = html[:match.start] + block.replace_text + html[match.end:]
    return new_html, EditOutcome(
        page_path=page_path,
        status=EditStatus.APPLIED,
        reason="replace",
        changed_range=(start_line, end_line),
    )


def apply_edit_blocks(
    html: str, content: str, page_path: str = ""
) -> tuple[str, list[EditOutcome]]:
    """Apply every triplet found in *content*, each against the running HTML."""
    outcomes: list[EditOutcome] = []
    for block in iter_edit_blocks(content):
        html, outcome = apply_edit_block(html, block, page_path)
        if outcome.status == EditStatus.SKIPPED:
            logger.debug("Skipped edit on %s: %s", page_path or "<home>", outcome.reason)
        outcomes.append(outcome)
    return html, outcomes


# ── Initial generation ───────────────────────────────────────


def parse_full_generation(raw_text: str) -> FullGeneration:
    """Parse the initial-generation format into a project name and pages.

    Pages are returned in the order the model wrote them.  Checking that
    the first page is ``index.html`` is left to the caller.
    """
    project_name = extract_project_name(raw_text)
    body = _PROJECT_NAME_RE.sub("", raw_text, count=1)

    pages: list[Page] = []
    segments = body.split(TITLE_PAGE_START)
    for segment in segments[1:]:
        head, sep, payload = segment.partition(TITLE_PAGE_END)
        if not sep:
            # Title marker never closed: the filename runs to end of line.
            head, _, payload = segment.partition("\n")
        path = head.strip()
        if not path:
            continue

        match = _FENCED_HTML_OPEN_RE.search(payload)
        html = match.group(1) if match else payload
        html = html.strip()

        index = _find_page(pages, path)
        if index == -1:
            pages.append(Page(path=path, html=html))
        else:
            pages[index] = Page(path=path, html=html)

    if not pages and len(segments) == 1:
        match = _FENCED_HTML_OPEN_RE.search(body)
        if match and match.group(1).strip():
            pages.append(Page(path="index.html", html=match.group(1).strip()))

    return FullGeneration(project_name=project_name, pages=pages)


# ── Follow-up edits ──────────────────────────────────────────


def parse_update_instructions(raw_text: str) -> list[UpdateInstruction]:
    """All UPDATE_PAGE regions of *raw_text*, in document order."""
    return [
        UpdateInstruction(page_path=match.group(1), raw_content=match.group(2))
        for match in _UPDATE_PAGE_RE.finditer(raw_text)
    ]


def _apply_instruction(
    html: str, instruction: UpdateInstruction
) -> tuple[str, list[EditOutcome]]:
    content = instruction.raw_content
    fenced = _fenced_html(content)
    if fenced is not None:
        if SEARCH_START not in content:
            # Whole region is one document: full-file replacement.
            return fenced.strip(), [
                EditOutcome(
                    page_path=instruction.page_path,
                    status=EditStatus.APPLIED,
                    reason="full replace",
                )
            ]
        if SEARCH_START in fenced:
            content = fenced
    return apply_edit_blocks(html, content, instruction.page_path)


def apply_update(current_pages: list[Page], raw_text: str) -> UpdateResult:
    """Apply follow-up model output to *current_pages*.

    Returns a new page list (the input is not mutated), the changed line
    ranges in the order edits were applied, and one outcome per edit.
    """
    pages = [page.model_copy() for page in current_pages]
    outcomes: list[EditOutcome] = []
    home_html: str | None = None

    # 1–4. UPDATE_PAGE regions
    for instruction in parse_update_instructions(raw_text):
        index = _find_page(pages, instruction.page_path)
        if index == -1:
            logger.info(
                "Ignoring update for unknown page %s", instruction.page_path
            )
            outcomes.append(
                EditOutcome(
                    page_path=instruction.page_path,
                    status=EditStatus.SKIPPED,
                    reason="unknown page",
                )
            )
            continue

        html, page_outcomes = _apply_instruction(pages[index].html, instruction)
        pages[index] = Page(path=instruction.page_path, html=html)
        outcomes.extend(page_outcomes)
        if is_home_path(instruction.page_path):
            home_html = html

    # 5. NEW_PAGE regions, scanned over the same original text
    for match in _NEW_PAGE_RE.finditer(raw_text):
        path, content = match.group(1), match.group(2)
        fenced = _fenced_html(content)
        html = (fenced if fenced is not None else content).strip()
        page = Page(path=path, html=html)

        index = _find_page(pages, path)
        if index == -1:
            pages.append(page)
            reason = "new page"
        else:
            pages[index] = page
            reason = "page overwritten"
        outcomes.append(
            EditOutcome(page_path=path, status=EditStatus.APPLIED, reason=reason)
        )

    # 6. Triplets the model forgot to wrap in an UPDATE_PAGE region
    if len(pages) == len(current_pages) and UPDATE_PAGE_START not in raw_text:
        home_index = _find_home_page(pages)
        if home_index != -1:
            home_path = pages[home_index].path
            html = home_html if home_html is not None else pages[home_index].html
            html, fallback_outcomes = apply_edit_blocks(html, raw_text, home_path)
            if fallback_outcomes:
                pages[home_index] = Page(path=home_path, html=html)
                home_html = html
                outcomes.extend(fallback_outcomes)

    changed_ranges = [o.changed_range for o in outcomes if o.changed_range is not None]
    if outcomes:
        skipped = sum(1 for o in outcomes if o.status == EditStatus.SKIPPED)
        logger.info(
            "Applied update: %d edits applied, %d skipped, %d pages",
            len(outcomes) - skipped,
            skipped,
            len(pages),
        )

    return UpdateResult(
        pages=pages,
        changed_ranges=changed_ranges,
        outcomes=outcomes,
        home_html=home_html,
        project_name=extract_project_name(raw_text),
    )
