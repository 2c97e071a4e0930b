"""FastAPI endpoint tests using httpx.AsyncClient."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from agents.site_agent import SiteAgent
from api.ask import _create_event_generator
from config.prompts.markers import (
    DIVIDER,
    PROJECT_NAME_END,
    PROJECT_NAME_START,
    REPLACE_END,
    SEARCH_START,
    TITLE_PAGE_END,
    TITLE_PAGE_START,
    UPDATE_PAGE_END,
    UPDATE_PAGE_START,
)
from errors.exceptions import AllTiersFailedError
from main import app
from models.request import AskCreateRequest
from models.site import Completion
from services.llm_router import get_llm_router
from services.rate_limiter import SlidingWindowRateLimiter, get_rate_limiter


class FakeRouter:
    """Stands in for LLMRouter: fixed tier list, scripted completions."""

    def __init__(self, content="", tiers=("Tier 1: Custom LLM",), error=None):
        self._tiers = [MagicMock(describe=MagicMock(return_value={"name": t})) for t in tiers]
        self.generate = AsyncMock(
            side_effect=error,
            return_value=Completion(content=content, tier="Tier 1: Custom LLM"),
        )

    def tiers(self):
        return self._tiers


@pytest.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def _use(router=None, limiter=None):
    if router is not None:
        app.dependency_overrides[get_llm_router] = lambda: router
    if limiter is not None:
        app.dependency_overrides[get_rate_limiter] = lambda: limiter


def _update_payload(**overrides):
    payload = {
        "prompt": "Rename the heading",
        "pages": [{"path": "index.html", "html": "<h1>Old</h1>"}],
        "repoId": "user/site",
    }
    payload.update(overrides)
    return payload


# ── Health ─────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_list_models(client):
    _use(router=FakeRouter(tiers=("Tier 1: Local relay", "Tier 2: HF Serverless")))
    resp = await client.get("/api/models")
    assert resp.status_code == 200
    data = resp.json()
    assert data["configured"] is True
    assert [t["name"] for t in data["tiers"]] == ["Tier 1: Local relay", "Tier 2: HF Serverless"]


# ── PUT /api/ask ───────────────────────────────────────────────


@pytest.mark.asyncio
async def test_update_applies_edits(client):
    raw = (
        f"{UPDATE_PAGE_START}index.html{UPDATE_PAGE_END}\n"
        f"{SEARCH_START}\n<h1>Old</h1>\n{DIVIDER}\n<h1>New</h1>\n{REPLACE_END}"
    )
    router = FakeRouter(content=raw)
    _use(router=router)

    resp = await client.put("/api/ask", json=_update_payload())

    assert resp.status_code == 200
    data = resp.json()
    assert data["ok"] is True
    assert data["pages"] == [{"path": "index.html", "html": "\n<h1>New</h1>\n"}]
    assert data["updatedLines"] == [[1, 3]]
    assert data["repoId"] == "user/site"
    assert data["commit"]["title"] == "Rename the heading"
    assert data["projectName"] is None
    router.generate.assert_awaited_once()


@pytest.mark.asyncio
async def test_update_names_new_project(client):
    raw = f"{PROJECT_NAME_START}Tiny Bakery 🧁{PROJECT_NAME_END}"
    _use(router=FakeRouter(content=raw))

    resp = await client.put("/api/ask", json=_update_payload(isNew=True))

    data = resp.json()
    assert data["projectName"] == "Tiny Bakery 🧁"
    assert data["projectSlug"] == "tiny-bakery"
    assert data["updatedLines"] == []


@pytest.mark.asyncio
async def test_update_missing_fields(client):
    _use(router=FakeRouter())
    resp = await client.put("/api/ask", json=_update_payload(pages=[]))
    assert resp.status_code == 400
    assert resp.json() == {"ok": False, "code": "INVALID_REQUEST", "message": "Missing required fields"}


@pytest.mark.asyncio
async def test_update_empty_completion(client):
    _use(router=FakeRouter(content="   "))
    resp = await client.put("/api/ask", json=_update_payload())
    assert resp.status_code == 400
    assert resp.json()["code"] == "NO_CONTENT"


@pytest.mark.asyncio
async def test_update_all_tiers_failed(client):
    error = AllTiersFailedError([("Tier 1: Custom LLM", "HTTP 500: boom")])
    _use(router=FakeRouter(error=error))

    resp = await client.put("/api/ask", json=_update_payload())

    assert resp.status_code == 500
    data = resp.json()
    assert data["code"] == "LLM_PROVIDER_ERROR"
    assert "Tier 1: Custom LLM: HTTP 500: boom" in data["message"]


# ── POST /api/ask ──────────────────────────────────────────────


@pytest.mark.asyncio
async def test_create_missing_prompt(client):
    _use(router=FakeRouter(), limiter=SlidingWindowRateLimiter(4, 3600))
    resp = await client.post("/api/ask", json={})
    assert resp.status_code == 400
    assert resp.json()["code"] == "INVALID_REQUEST"


@pytest.mark.asyncio
async def test_create_without_tiers(client):
    _use(router=FakeRouter(tiers=()), limiter=SlidingWindowRateLimiter(4, 3600))
    resp = await client.post("/api/ask", json={"prompt": "A portfolio"})
    assert resp.status_code == 500
    assert resp.json()["code"] == "LLM_NOT_CONFIGURED"


@pytest.mark.asyncio
async def test_create_rate_limited(client):
    limiter = SlidingWindowRateLimiter(max_requests=1, window_seconds=3600)
    limiter.hit("203.0.113.9")
    _use(router=FakeRouter(), limiter=limiter)

    resp = await client.post(
        "/api/ask",
        json={"prompt": "A portfolio"},
        headers={"X-Forwarded-For": "203.0.113.9"},
    )

    assert resp.status_code == 429
    assert resp.json()["code"] == "RATE_LIMITED"
    assert int(resp.headers["retry-after"]) > 0


# ── SSE event stream ───────────────────────────────────────────


def _fake_request(disconnected=False):
    request = MagicMock()
    request.is_disconnected = AsyncMock(return_value=disconnected)
    return request


async def _collect(agent, req, request, chunk_size=10):
    return [json.loads(e) async for e in _create_event_generator(agent, req, request, chunk_size)]


@pytest.mark.asyncio
async def test_create_stream_chunks_then_complete():
    raw = (
        f"{PROJECT_NAME_START}Stellar Dashboard ✨{PROJECT_NAME_END}\n"
        f"{TITLE_PAGE_START}index.html{TITLE_PAGE_END}\n```html\n<html>home</html>\n```"
    )
    agent = SiteAgent(FakeRouter(content=raw))

    events = await _collect(agent, AskCreateRequest(prompt="dashboard"), _fake_request())

    chunks = [e for e in events if e["type"] == "chunk"]
    assert "".join(c["content"] for c in chunks) == raw
    assert all(len(c["content"]) <= 10 for c in chunks)
    complete = events[-1]
    assert complete["type"] == "complete"
    assert complete["projectName"] == "Stellar Dashboard ✨"
    assert complete["projectSlug"] == "stellar-dashboard"
    assert complete["pages"] == [{"path": "index.html", "html": "<html>home</html>"}]
    assert complete["malformed"] is False


@pytest.mark.asyncio
async def test_create_stream_flags_missing_index():
    raw = f"{TITLE_PAGE_START}about.html{TITLE_PAGE_END}\n<html>about</html>"
    agent = SiteAgent(FakeRouter(content=raw))

    events = await _collect(agent, AskCreateRequest(prompt="x"), _fake_request(), chunk_size=1000)

    assert events[-1]["type"] == "complete"
    assert events[-1]["malformed"] is True


@pytest.mark.asyncio
async def test_create_stream_error_event_on_provider_failure():
    error = AllTiersFailedError([("Tier 1: Custom LLM", "Timeout after 180000ms")])
    agent = SiteAgent(FakeRouter(error=error))

    events = await _collect(agent, AskCreateRequest(prompt="x"), _fake_request())

    assert len(events) == 1
    assert events[0]["type"] == "error"
    assert events[0]["errorText"].startswith("LLM_PROVIDER_ERROR: ")


@pytest.mark.asyncio
async def test_create_stream_error_when_no_pages():
    agent = SiteAgent(FakeRouter(content="Sorry, I can't do that."))

    events = await _collect(agent, AskCreateRequest(prompt="x"), _fake_request(), chunk_size=1000)

    assert events[-1]["type"] == "error"
    assert events[-1]["errorText"].startswith("NO_CONTENT: ")


@pytest.mark.asyncio
async def test_create_stream_stops_when_client_disconnects():
    agent = SiteAgent(FakeRouter(content="<html></html>"))

    events = await _collect(agent, AskCreateRequest(prompt="x"), _fake_request(disconnected=True))

    assert events == []


# ── Middleware ─────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_request_id_generated_and_echoed(client):
    resp = await client.get("/api/health")
    assert len(resp.headers["x-request-id"]) == 8

    resp = await client.get("/api/health", headers={"X-Request-ID": "abc123"})
    assert resp.headers["x-request-id"] == "abc123"


# ── Unexpected failures ────────────────────────────────────────


@pytest.mark.asyncio
async def test_update_unexpected_error_is_internal_error(client):
    _use(router=FakeRouter(error=RuntimeError("disk full")))

    resp = await client.put("/api/ask", json=_update_payload())

    assert resp.status_code == 500
    assert resp.json() == {
        "ok": False,
        "code": "INTERNAL_ERROR",
        "message": "Update failed: disk full",
    }


@pytest.mark.asyncio
async def test_create_stream_unexpected_error_event():
    agent = SiteAgent(FakeRouter(error=RuntimeError("disk full")))

    events = await _collect(agent, AskCreateRequest(prompt="x"), _fake_request())

    assert events == [
        {"type": "error", "errorText": "INTERNAL_ERROR: Generation failed: disk full"}
    ]
