# dit/services/analytics_service.py
# Play analytics: start / progress / end events for album tracks

from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Callable, Optional

from dit.middleware.error_handler import InvalidInput
from dit.repositories.track_play_repository import TrackPlayRepository
from dit.utils.text import utcnow

EVENTS = ("start", "progress", "end")


def _ms(value: Any) -> int:
    try:
        number = float(value or 0)
    except (TypeError, ValueError):
        raise InvalidInput("Invalid position")
    if math.isnan(number) or math.isinf(number):
        raise InvalidInput("Invalid position")
    return max(0, int(math.floor(number)))


class AnalyticsService:

    def __init__(
        self,
        repository: TrackPlayRepository,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.repository = repository
        self._clock = clock

    async def track(
        self,
        event: Optional[str],
        track_key: Optional[str] = None,
        play_id: Optional[str] = None,
        position_ms: Optional[float] = None,
        duration_ms: Optional[float] = None,
        idempotency_key: Optional[str] = None,
        session_token: Optional[str] = None,
        ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> dict[str, Any]:
        if event not in EVENTS:
            raise InvalidInput("Invalid event")
        if event in ("start", "progress") and not track_key:
            raise InvalidInput("Missing track_key")

        if event == "start":
            new_id = await self.repository.start(
                track_key=track_key,
                session_token=session_token,
                ip=ip,
                user_agent=user_agent[:512] if user_agent else None,
                now=self._clock(),
                idempotency_key=idempotency_key,
            )
            return {"play_id": new_id}

        if event == "progress":
            # Progress pings without a play are accepted and ignored
            if not play_id:
                return {"ok": True}
            await self.repository.progress(play_id, _ms(position_ms))
            return {"ok": True}

        if not play_id:
            raise InvalidInput("Missing play_id")
        played = position_ms if position_ms is not None else duration_ms
        await self.repository.complete(play_id, _ms(played), self._clock())
        return {"ok": True}
