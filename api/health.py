"""Health and backend tier listing endpoints."""

from fastapi import APIRouter, Depends

from services.llm_router import LLMRouter, get_llm_router

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
async def health():
    return {"status": "healthy"}


@router.get("/models")
async def list_models(llm_router: LLMRouter = Depends(get_llm_router)):
    """List configured backend tiers in fallback order (no credentials)."""
    tiers = llm_router.tiers()
    return {
        "configured": bool(tiers),
        "tiers": [tier.describe() for tier in tiers],
    }
