# dit/routers/analytics.py
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel

from dit.middleware.rate_limiter import UNKNOWN_CLIENT, client_key
from dit.routers.deps import bearer_token, get_services

router = APIRouter(tags=["Analytics"])


class TrackEventRequest(BaseModel):
    event: Optional[str] = None
    track_key: Optional[str] = None
    play_id: Optional[str] = None
    position_ms: Optional[float] = None
    duration_ms: Optional[float] = None
    idempotency_key: Optional[str] = None


@router.post("/analytics/track")
async def track_event(payload: TrackEventRequest, request: Request) -> Dict[str, Any]:
    """Record play start / progress / end for a track."""
    ip = client_key(request)
    return await get_services(request).analytics.track(
        event=payload.event,
        track_key=payload.track_key,
        play_id=payload.play_id,
        position_ms=payload.position_ms,
        duration_ms=payload.duration_ms,
        idempotency_key=payload.idempotency_key,
        session_token=bearer_token(request),
        ip=None if ip == UNKNOWN_CLIENT else ip,
        user_agent=request.headers.get("user-agent"),
    )
