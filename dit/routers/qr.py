# dit/routers/qr.py
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel, StrictStr

from dit.middleware.error_handler import InvalidInput
from dit.routers.deps import get_services

router = APIRouter(tags=["Auth"])


class QrRequest(BaseModel):
    qr: Optional[StrictStr] = None


@router.post("/qr")
async def validate_qr(payload: QrRequest, request: Request) -> Dict[str, Any]:
    """Check a scanned code without creating a session."""
    if not payload.qr or not payload.qr.strip():
        raise InvalidInput("Missing or invalid qr field")
    result = await get_services(request).gate.redeem_qr(payload.qr)
    if not result.valid:
        return {"valid": False}
    return {"valid": True, "type": result.kind, "code": result.code}
