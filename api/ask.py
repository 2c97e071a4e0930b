"""Ask API — initial site generation (SSE) and follow-up edits."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import AsyncGenerator

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sse_starlette.sse import EventSourceResponse

from agents.patch_engine import project_slug
from agents.site_agent import SiteAgent
from config.settings import get_settings
from errors.exceptions import (
    AllTiersFailedError,
    ConfigurationError,
    LLMRouterError,
    NoContentError,
)
from models.errors import ErrorCode, error_payload, format_error, format_llm_error
from models.request import AskCreateRequest, AskUpdateRequest, AskUpdateResponse, CommitInfo
from services.llm_router import LLMRouter, get_llm_router
from services.rate_limiter import SlidingWindowRateLimiter, client_identity, get_rate_limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ask", tags=["ask"])


def get_site_agent(llm_router: LLMRouter = Depends(get_llm_router)) -> SiteAgent:
    return SiteAgent(llm_router)


def _error_response(status_code: int, code: ErrorCode, message: str, **headers) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_payload(code, message),
        headers={k.replace("_", "-"): v for k, v in headers.items()} or None,
    )


def _event(event_type: str, **fields) -> str:
    return json.dumps({"type": event_type, **fields}, ensure_ascii=False, default=str)


async def _create_event_generator(
    agent: SiteAgent,
    req: AskCreateRequest,
    request: Request,
    chunk_size: int,
) -> AsyncGenerator[str, None]:
    """Stream the raw completion in chunks, then the parsed project."""
    try:
        completion = await agent.complete_create(req)
    except NoContentError as exc:
        yield _event("error", errorText=format_error(ErrorCode.NO_CONTENT, str(exc)))
        return
    except LLMRouterError as exc:
        logger.error("Initial generation failed: %s", exc)
        yield _event("error", errorText=format_llm_error(str(exc)))
        return
    except Exception as exc:
        logger.exception("Initial generation failed unexpectedly")
        yield _event(
            "error",
            errorText=format_error(ErrorCode.INTERNAL_ERROR, f"Generation failed: {exc}"),
        )
        return

    if await request.is_disconnected():
        logger.info("Client disconnected after LLM call")
        return

    content = completion.content
    for start in range(0, len(content), chunk_size):
        if await request.is_disconnected():
            logger.info("Client disconnected during streaming")
            return
        yield _event("chunk", content=content[start:start + chunk_size])

    generation = agent.parse_create(completion)
    if not generation.pages:
        yield _event(
            "error",
            errorText=format_error(ErrorCode.NO_CONTENT, "No pages found in the model output"),
        )
        return

    malformed = generation.pages[0].path != "index.html"
    if malformed:
        logger.warning("First generated page is %s, expected index.html", generation.pages[0].path)

    yield _event(
        "complete",
        projectName=generation.project_name,
        projectSlug=project_slug(generation.project_name) if generation.project_name else None,
        pages=[p.model_dump(by_alias=True) for p in generation.pages],
        finishReason=completion.finish_reason,
        malformed=malformed,
    )


@router.post("")
async def ask_create(
    req: AskCreateRequest,
    request: Request,
    limiter: SlidingWindowRateLimiter = Depends(get_rate_limiter),
    agent: SiteAgent = Depends(get_site_agent),
    llm_router: LLMRouter = Depends(get_llm_router),
):
    """Generate a new site and stream it via SSE.

    Emits ``chunk`` events with the raw model output, then one ``complete``
    event carrying the parsed pages (or an ``error`` event).
    """
    if not req.prompt and not req.redesign_markdown:
        return _error_response(400, ErrorCode.INVALID_REQUEST, "Missing required fields")

    if not llm_router.tiers():
        return _error_response(500, ErrorCode.LLM_NOT_CONFIGURED, "Custom LLM API is not configured")

    client = client_identity(request)
    if not limiter.hit(client):
        return _error_response(
            429,
            ErrorCode.RATE_LIMITED,
            "Too many requests. Please try again later.",
            retry_after=str(limiter.retry_after(client)),
        )

    logger.info("Generating site (prompt=%d chars, images=%d)", len(req.prompt), len(req.images))
    return EventSourceResponse(
        _create_event_generator(agent, req, request, get_settings().stream_chunk_size),
        media_type="text/event-stream",
    )


@router.put("")
async def ask_update(
    req: AskUpdateRequest,
    agent: SiteAgent = Depends(get_site_agent),
):
    """Apply a follow-up edit to the client's current pages."""
    if not req.prompt or not req.pages:
        return _error_response(400, ErrorCode.INVALID_REQUEST, "Missing required fields")

    logger.info("Updating site (%d pages, is_new=%s)", len(req.pages), req.is_new)
    try:
        result = await agent.update(req)
    except ConfigurationError as exc:
        return _error_response(500, ErrorCode.LLM_NOT_CONFIGURED, str(exc))
    except NoContentError as exc:
        return _error_response(400, ErrorCode.NO_CONTENT, str(exc))
    except AllTiersFailedError as exc:
        logger.error("Update failed on every tier: %s", exc)
        return _error_response(500, ErrorCode.LLM_PROVIDER_ERROR, str(exc))
    except Exception as exc:
        logger.exception("Update failed unexpectedly")
        return _error_response(500, ErrorCode.INTERNAL_ERROR, f"Update failed: {exc}")

    project_name = result.project_name if req.is_new else None
    response = AskUpdateResponse(
        updated_lines=result.changed_ranges,
        pages=result.pages,
        repo_id=req.repo_id,
        project_name=project_name,
        project_slug=project_slug(project_name) if project_name else None,
        commit=CommitInfo(
            title=req.prompt,
            date=datetime.now(timezone.utc).isoformat(),
        ),
    )
    return JSONResponse(content=response.model_dump(mode="json", by_alias=True))
