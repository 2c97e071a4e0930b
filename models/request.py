"""API request / response models."""

from __future__ import annotations

from pydantic import Field

from models.base import CamelModel
from models.site import Page


class ImageRef(CamelModel):
    """An uploaded image the generated site must reference."""

    name: str
    url: str


class EnhancedSettings(CamelModel):
    """Optional styling hints appended to the initial prompt."""

    is_active: bool = False
    primary_color: str | None = None
    secondary_color: str | None = None
    theme: str | None = None


class AskCreateRequest(CamelModel):
    """POST /api/ask — request body."""

    prompt: str = ""
    redesign_markdown: str | None = None
    enhanced_settings: EnhancedSettings | None = None
    images: list[ImageRef] = Field(default_factory=list)


class AskUpdateRequest(CamelModel):
    """PUT /api/ask — request body."""

    prompt: str = ""
    pages: list[Page] = Field(default_factory=list)
    selected_element_html: str | None = None
    files: list[str] = Field(default_factory=list)
    repo_id: str | None = None
    is_new: bool = False


class CommitInfo(CamelModel):
    title: str
    date: str


class AskUpdateResponse(CamelModel):
    """PUT /api/ask — response body."""

    ok: bool = True
    updated_lines: list[tuple[int, int]] = Field(default_factory=list)
    pages: list[Page] = Field(default_factory=list)
    repo_id: str | None = None
    project_name: str | None = None
    project_slug: str | None = None
    commit: CommitInfo
