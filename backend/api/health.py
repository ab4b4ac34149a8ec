"""GET /api/health — LLM provider reachability check."""
import logging
from fastapi import APIRouter

from config import settings
from integrations.llm_factory import get_llm_client

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
def health_check():
    llm_status = _check_llm()
    overall = "ok" if llm_status["status"] == "up" else "degraded"
    return {
        "status": overall,
        "services": {
            "llm": llm_status,
        },
    }


def _check_llm() -> dict:
    try:
        client = get_llm_client()
    except ValueError as e:
        # Provider configured without credentials.
        return {"status": "down", "provider": settings.AI_PROVIDER, "error": str(e)}
    ok, detail = client.is_healthy()
    if ok:
        return {"status": "up", "provider": client.name, "model": detail}
    logger.warning("%s health check failed: %s", client.name, detail)
    return {"status": "down", "provider": client.name, "error": detail}
