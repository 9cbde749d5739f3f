# dit/routers/deps.py
# Shared FastAPI dependencies: service lookup and session gating

from __future__ import annotations

from typing import Optional

from fastapi import Request

from dit.middleware.error_handler import InvalidInput, Unauthorized
from dit.services.session_store import SessionHandle


def get_services(request: Request):
    return request.app.state.services


def bearer_token(request: Request) -> Optional[str]:
    """Token from 'Authorization: Bearer <token>', or None."""
    header = request.headers.get("Authorization") or ""
    if not header.startswith("Bearer "):
        return None
    token = header[len("Bearer "):].strip()
    return token or None


def require_bearer(request: Request) -> str:
    token = bearer_token(request)
    if token is None:
        raise InvalidInput("Missing token")
    return token


async def require_session(request: Request) -> SessionHandle:
    """Validate the caller's bearer token and hand back a SessionHandle."""
    token = require_bearer(request)
    services = get_services(request)
    handle = SessionHandle(token=token)
    if not await services.sessions.validate(token):
        # Expired or revoked elsewhere: release its player too
        services.players.drop(handle)
        raise Unauthorized("Invalid or expired session")
    return handle
