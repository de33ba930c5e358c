from fastapi import APIRouter, Depends

from statement_extractor.api.deps import get_settings
from statement_extractor.config import Settings
from statement_extractor.llm.providers import default_providers

router = APIRouter(tags=["health"])


@router.get("/health")
async def health():
    """Basic health check."""
    return {"status": "ok"}


@router.get("/health/ready")
async def health_ready(app_settings: Settings = Depends(get_settings)):
    """Readiness check listing the LLM providers that can be used.

    Pattern extraction needs no provider, so the service is ready either way;
    `llm` reports whether the LLM path can run at all.
    """
    providers = [p.name for p in default_providers(app_settings) if p.is_configured()]
    return {
        "status": "ready",
        "extraction_mode": app_settings.extraction_mode,
        "llm": "available" if providers else "unavailable",
        "providers": providers,
    }
