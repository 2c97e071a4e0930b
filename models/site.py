"""Site project models — pages, chat messages, completions, edit outcomes."""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from models.base import CamelModel


class Page(CamelModel):
    """A single HTML document of a project, keyed by its relative path."""

    path: str
    html: str


class ChatMessage(BaseModel):
    """One chat-completions message (OpenAI format)."""

    model_config = ConfigDict(frozen=True)

    role: Literal["system", "user", "assistant"]
    content: str


class Usage(CamelModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class Completion(CamelModel):
    """Result of one successful backend call."""

    content: str
    finish_reason: str = "stop"
    usage: Usage | None = None
    tier: str = ""  # name of the tier that produced it


class EditBlock(BaseModel):
    """One SEARCH / DIVIDER / REPLACE triplet."""

    search_text: str
    replace_text: str

    @property
    def is_prepend(self) -> bool:
        return self.search_text.strip() == ""


class UpdateInstruction(BaseModel):
    """One UPDATE_PAGE region: target path plus the raw region body."""

    page_path: str
    raw_content: str


class EditStatus(str, Enum):
    APPLIED = "applied"
    SKIPPED = "skipped"


class EditOutcome(BaseModel):
    """Audit record for one edit instruction.

    ``changed_range`` is set only for applied search/replace or prepend
    edits; whole-page replacements report ``applied`` without a range.
    """

    page_path: str
    status: EditStatus
    reason: str = ""
    changed_range: tuple[int, int] | None = None


class FullGeneration(CamelModel):
    """Parsed initial-generation output."""

    project_name: str | None = None
    pages: list[Page] = Field(default_factory=list)


class UpdateResult(CamelModel):
    """Parsed and applied follow-up output."""

    pages: list[Page] = Field(default_factory=list)
    changed_ranges: list[tuple[int, int]] = Field(default_factory=list)
    outcomes: list[EditOutcome] = Field(default_factory=list)
    home_html: str | None = None
    project_name: str | None = None

    @property
    def applied_count(self) -> int:
        return sum(1 for o in self.outcomes if o.status == EditStatus.APPLIED)
