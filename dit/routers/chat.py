# dit/routers/chat.py
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Request
from pydantic import BaseModel

from dit.middleware.error_handler import InvalidInput
from dit.routers.deps import get_services

router = APIRouter(tags=["Chat"])


class ChatReply(BaseModel):
    reply: str


def _message(body: Any) -> Any:
    if not isinstance(body, dict) or "message" not in body:
        raise InvalidInput("Missing or invalid message")
    return body["message"]


@router.post("/chat", response_model=ChatReply)
async def chat(request: Request, body: Any = Body(None)) -> ChatReply:
    """General assistant relay."""
    return ChatReply(reply=await get_services(request).chat_relay.relay(_message(body)))


@router.post("/guardian", response_model=ChatReply)
async def guardian(request: Request, body: Any = Body(None)) -> ChatReply:
    """Password guardian hint relay."""
    return ChatReply(reply=await get_services(request).guardian_relay.relay(_message(body)))
