# dit/services/access_gate.py
# Access-Code Gate: exchange a typed or scanned code for a session

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from dit.middleware.error_handler import InvalidCode, InvalidInput
from dit.repositories.access_code_repository import AccessCodeRepository
from dit.services.session_store import SessionStore
from dit.utils.logger import log_info, redact
from dit.utils.text import sanitize_text

logger = logging.getLogger(__name__)

DEFAULT_KIND = "album"
CARE_PACKAGE_KIND = "special"


@dataclass(frozen=True)
class Redemption:
    token: str
    kind: str


@dataclass(frozen=True)
class QrResult:
    valid: bool
    kind: Optional[str] = None
    code: Optional[str] = None


def normalize_code(raw: str) -> str:
    return sanitize_text(raw).upper()


class AccessGate:

    def __init__(self, codes: AccessCodeRepository, sessions: SessionStore):
        self.codes = codes
        self.sessions = sessions

    async def redeem(self, code: str) -> Redemption:
        """Validate code and issue a brand new session for it."""
        normalized = normalize_code(code)
        if not normalized:
            raise InvalidInput("Missing code")

        record = await self.codes.find_active(normalized)
        if record is None:
            log_info(f"redeem rejected {redact(normalized)}")
            raise InvalidCode()

        token = await self.sessions.create()
        kind = record.get("type") or DEFAULT_KIND
        log_info(f"redeem ok {redact(normalized)} kind={kind}")
        return Redemption(token=token, kind=kind)

    async def redeem_qr(self, payload: str) -> QrResult:
        """Same lookup as redeem() but never creates or touches a session."""
        normalized = normalize_code(payload)
        if not normalized:
            return QrResult(valid=False)

        record = await self.codes.find_active(normalized)
        if record is None:
            return QrResult(valid=False)
        return QrResult(valid=True, kind=record.get("type") or DEFAULT_KIND, code=record["code"])

    async def verify_care_package(self, code: str | None) -> str | None:
        """Return the stored code when it unlocks the care package tier, else None."""
        if not code:
            return None
        result = await self.redeem_qr(code)
        if result.valid and result.kind == CARE_PACKAGE_KIND:
            return result.code
        return None
