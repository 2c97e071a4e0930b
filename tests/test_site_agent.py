"""Tests for agents/site_agent.py — prompt building handed to the router."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from agents.site_agent import SiteAgent
from config.llm_config import LLMConfig
from config.prompts.markers import DIVIDER, REPLACE_END, SEARCH_START
from errors.exceptions import NoContentError
from models.request import AskCreateRequest, AskUpdateRequest, ImageRef
from models.site import Completion, Page


def _router(content: str, finish_reason: str = "stop"):
    router = MagicMock()
    router.generate = AsyncMock(
        return_value=Completion(content=content, finish_reason=finish_reason, tier="t")
    )
    return router


@pytest.mark.asyncio
async def test_complete_create_passes_prompt_and_config():
    router = _router("<html></html>")
    config = LLMConfig(max_tokens=1000)
    agent = SiteAgent(router, llm_config=config)

    await agent.complete_create(
        AskCreateRequest(prompt="A gym site", images=[ImageRef(name="logo", url="/l.png")])
    )

    messages, passed_config = router.generate.call_args.args
    assert messages[0].role == "system"
    assert messages[1].content.endswith("## USER REQUEST:\nA gym site")
    assert passed_config is config


@pytest.mark.asyncio
async def test_complete_create_empty_output_raises():
    agent = SiteAgent(_router("\n  \n"))
    with pytest.raises(NoContentError):
        await agent.complete_create(AskCreateRequest(prompt="x"))


@pytest.mark.asyncio
async def test_truncated_output_is_still_returned():
    agent = SiteAgent(_router("<html>partial", finish_reason="length"))
    completion = await agent.complete_create(AskCreateRequest(prompt="x"))
    assert completion.finish_reason == "length"


@pytest.mark.asyncio
async def test_update_applies_completion_to_request_pages():
    raw = f"{SEARCH_START}<p>a</p>{DIVIDER}<p>b</p>{REPLACE_END}"
    agent = SiteAgent(_router(raw))
    pages = [Page(path="index.html", html="<div><p>a</p></div>")]

    result = await agent.update(AskUpdateRequest(prompt="change a to b", pages=pages))

    assert result.pages[0].html == "<div><p>b</p></div>"
    assert result.changed_ranges == [(1, 1)]
    assert pages[0].html == "<div><p>a</p></div>"
