# dit/routers/auth.py
# Access-code exchange, session validation and sign-out

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from dit.middleware.error_handler import InvalidInput, Unauthorized
from dit.routers.deps import get_services, require_bearer
from dit.services.session_store import SessionHandle

router = APIRouter(tags=["Auth"])


class ExchangeRequest(BaseModel):
    code: Optional[str] = None


class ExchangeResponse(BaseModel):
    token: str
    type: str


class OkResponse(BaseModel):
    ok: bool = True


@router.post("/auth", response_model=ExchangeResponse)
async def exchange_code(payload: ExchangeRequest, request: Request) -> ExchangeResponse:
    """Redeem an access code for a new session token."""
    if not payload.code:
        raise InvalidInput("Missing code")
    redemption = await get_services(request).gate.redeem(payload.code)
    return ExchangeResponse(token=redemption.token, type=redemption.kind)


@router.get("/auth", response_model=OkResponse)
async def validate_session(request: Request, token: str = Depends(require_bearer)) -> OkResponse:
    if not await get_services(request).sessions.validate(token):
        raise Unauthorized("Invalid or expired session")
    return OkResponse()


@router.delete("/auth", response_model=OkResponse)
async def sign_out(request: Request, token: str = Depends(require_bearer)) -> OkResponse:
    services = get_services(request)
    await services.sessions.revoke(token)
    services.players.drop(SessionHandle(token=token))
    return OkResponse()
