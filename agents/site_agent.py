"""SiteAgent — prompt → LLM router → patch engine.

Glue between the API layer and the core: builds the chat messages, asks
the router for a completion, and hands the raw text to the patch engine.
Persisting or publishing the result is left to the caller.
"""

from __future__ import annotations

import logging

from agents.patch_engine import apply_update, parse_full_generation
from config.llm_config import LLMConfig
from config.prompts.site import (
    build_create_messages,
    build_create_user_prompt,
    build_update_messages,
)
from errors.exceptions import NoContentError
from models.request import AskCreateRequest, AskUpdateRequest
from models.site import Completion, FullGeneration, UpdateResult
from services.llm_router import LLMRouter

logger = logging.getLogger(__name__)


class SiteAgent:
    """Generate new sites and apply follow-up edits."""

    def __init__(self, router: LLMRouter, llm_config: LLMConfig | None = None) -> None:
        self._router = router
        self._llm_config = llm_config

    async def complete_create(self, req: AskCreateRequest) -> Completion:
        """Run the initial-generation prompt and return the raw completion."""
        user_prompt = build_create_user_prompt(
            prompt=req.prompt,
            redesign_markdown=req.redesign_markdown,
            enhanced_settings=req.enhanced_settings,
            images=req.images,
        )
        completion = await self._router.generate(
            build_create_messages(user_prompt), self._llm_config
        )
        if not completion.content.strip():
            raise NoContentError()
        if completion.finish_reason == "length":
            logger.warning("Initial generation truncated by max_tokens (tier=%s)", completion.tier)
        return completion

    @staticmethod
    def parse_create(completion: Completion) -> FullGeneration:
        generation = parse_full_generation(completion.content)
        logger.info(
            "Parsed initial generation: project=%r, pages=%s",
            generation.project_name,
            [p.path for p in generation.pages],
        )
        return generation

    async def update(self, req: AskUpdateRequest) -> UpdateResult:
        """Ask for edits against the current pages and apply them.

        Raises:
            NoContentError: The model returned an empty completion.
        """
        messages = build_update_messages(
            prompt=req.prompt,
            pages=req.pages,
            selected_element_html=req.selected_element_html,
            files=req.files,
            is_new=req.is_new,
        )
        completion = await self._router.generate(messages, self._llm_config)
        if not completion.content.strip():
            raise NoContentError()

        result = apply_update(req.pages, completion.content)
        logger.info(
            "Update applied: %d/%d edits applied, %d changed ranges (tier=%s)",
            result.applied_count,
            len(result.outcomes),
            len(result.changed_ranges),
            completion.tier,
        )
        return result
