# dit/routers/stream.py
# Server-Sent Events framing for the live feed endpoints

from __future__ import annotations

import asyncio
import json
from typing import Any, AsyncIterator

from fastapi import Request
from fastapi.responses import StreamingResponse

from dit.services.broker import FeedBroker

KEEPALIVE_SECONDS = 15.0


def sse_event(item: Any, event: str = "insert") -> str:
    return f"event: {event}\ndata: {json.dumps(item, default=str)}\n\n"


async def _events(request: Request, broker: FeedBroker, topic: str, keepalive: float) -> AsyncIterator[str]:
    with broker.subscribe(topic) as queue:
        yield ": connected\n\n"
        while not await request.is_disconnected():
            try:
                item = await asyncio.wait_for(queue.get(), timeout=keepalive)
            except asyncio.TimeoutError:
                yield ": keepalive\n\n"
                continue
            yield sse_event(item)


def sse_response(request: Request, broker: FeedBroker, topic: str, keepalive: float = KEEPALIVE_SECONDS) -> StreamingResponse:
    return StreamingResponse(
        _events(request, broker, topic, keepalive),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-store", "X-Accel-Buffering": "no"},
    )
