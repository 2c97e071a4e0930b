"""FastAPI entry point for the SiteForge generation service."""

import asyncio
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import get_settings
from services.concurrency import ConcurrencyLimitMiddleware
from services.llm_router import get_llm_router
from services.middleware import RequestIdMiddleware
from services.rate_limiter import create_rate_limiter, periodic_cleanup

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle — start/stop shared resources."""
    llm_router = get_llm_router()
    await llm_router.start()
    app.state.rate_limiter = create_rate_limiter()
    cleanup_task = asyncio.create_task(
        periodic_cleanup(app.state.rate_limiter, settings.rate_limit_cleanup_seconds)
    )

    tiers = llm_router.tiers()
    if tiers:
        logger.info("LLM tiers: %s", ", ".join(t.name for t in tiers))
    else:
        logger.warning("No LLM tiers configured — generation requests will fail")

    yield

    cleanup_task.cancel()
    try:
        await cleanup_task
    except asyncio.CancelledError:
        pass

    await llm_router.close()


app = FastAPI(
    title="SiteForge",
    description="Prompt-to-website generation with multi-tier LLM fallback",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Middleware stack (outermost first) ─────────────────────────
# Order matters: CORS → RequestId → ConcurrencyLimit → route handler
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIdMiddleware)
app.add_middleware(ConcurrencyLimitMiddleware, max_concurrent=settings.max_concurrent_heavy)

# ── Register routers ────────────────────────────────────────
from api.ask import router as ask_router  # noqa: E402
from api.health import router as health_router  # noqa: E402

app.include_router(health_router)
app.include_router(ask_router)


if __name__ == "__main__":
    if settings.debug:
        # Development: single worker with reload
        uvicorn.run(
            "main:app",
            host="0.0.0.0",
            port=settings.service_port,
            reload=True,
        )
    else:
        # Production: prefer gunicorn main:app -c deploy/gunicorn.conf.py
        uvicorn.run(
            "main:app",
            host="0.0.0.0",
            port=settings.service_port,
            workers=4,
            timeout_keep_alive=120,
        )
