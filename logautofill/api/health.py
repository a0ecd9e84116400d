"""Liveness endpoint, plus which backends the service is wired to."""

from fastapi import APIRouter, Request

from logautofill import __version__

router = APIRouter(prefix="/api", tags=["monitoring"])


@router.get("/health")
async def health_check(request: Request) -> dict:
    """
    Report that the service is up.

    "extraction" is "gemini" when an API key is configured, "stub" when the
    offline stub is enabled instead, and "disabled" otherwise.
    """
    settings = request.app.state.settings
    if settings.gemini_api_key:
        extraction = "gemini"
    elif settings.allow_stub:
        extraction = "stub"
    else:
        extraction = "disabled"
    return {"status": "ok", "version": __version__, "extraction": extraction}
