# dit/routers/health.py
# Liveness / readiness probes and a component report for operators

import logging
import time
from typing import Any, Dict

from fastapi import APIRouter, Request, Response, status
from pydantic import BaseModel
from sqlalchemy import text

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


class StoreCheck(BaseModel):
    ok: bool
    latency_ms: float
    error: str = ""


class HealthReport(BaseModel):
    status: str  # "healthy" or "unhealthy"
    timestamp: float
    store: StoreCheck
    components: Dict[str, Any] = {}


async def ping_store(request: Request) -> StoreCheck:
    """Round-trip SELECT 1 through the session factory the services use."""
    started = time.perf_counter()
    try:
        async with request.app.state.services.db.session() as session:
            value = (await session.execute(text("SELECT 1"))).scalar()
    except Exception as e:
        logger.error(f"Store ping failed: {type(e).__name__}: {e}")
        return StoreCheck(ok=False, latency_ms=_since(started), error=type(e).__name__)
    if value != 1:
        return StoreCheck(ok=False, latency_ms=_since(started), error="unexpected result")
    return StoreCheck(ok=True, latency_ms=_since(started))


def _since(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


@router.get("/health", response_model=HealthReport)
async def health(request: Request, response: Response) -> HealthReport:
    services = request.app.state.services
    store = await ping_store(request)
    if not store.ok:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return HealthReport(
        status="healthy" if store.ok else "unhealthy",
        timestamp=time.time(),
        store=store,
        components={
            "players": len(services.players),
            "chat_configured": services.chat_relay.webhook_url is not None,
            "guardian_configured": services.guardian_relay.webhook_url is not None,
        },
    )


@router.get("/health/live")
async def liveness() -> Dict[str, str]:
    """The process answers; dependencies are not consulted."""
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness(request: Request, response: Response) -> Dict[str, str]:
    store = await ping_store(request)
    if not store.ok:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {"status": "not_ready", "reason": store.error}
    return {"status": "ready"}
