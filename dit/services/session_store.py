# dit/services/session_store.py
# Session Store Adapter: issue, validate (sliding TTL, lazy expiry) and revoke tokens

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from dit.middleware.error_handler import SessionCreateFailed
from dit.observability.metrics import SESSIONS_CREATED
from dit.repositories.session_repository import SessionRepository
from dit.utils.logger import log_info, redact
from dit.utils.text import as_utc, utcnow

logger = logging.getLogger(__name__)

TOKEN_RE = re.compile(r"^[A-Za-z0-9_-]{16,200}$")


@dataclass(frozen=True)
class SessionHandle:
    """Proof of a validated session, passed explicitly to whatever needs it."""
    token: str


def new_token() -> str:
    """36-char uuid4 string (122 random bits)."""
    return str(uuid.uuid4())


def is_well_formed(token: str | None) -> bool:
    return bool(token) and TOKEN_RE.match(token) is not None


class SessionStore:
    """
    Session lifecycle: Active --[TTL elapsed OR revoke]--> Deleted.

    Expiry is lazy: validate() is the only path that observes and enacts it.
    sweep_expired() exists for deployments that need bounded storage.
    """

    def __init__(
        self,
        repository: SessionRepository,
        ttl: timedelta = timedelta(hours=24),
        max_attempts: int = 3,
        token_factory: Callable[[], str] = new_token,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.repository = repository
        self.ttl = ttl
        self.max_attempts = max_attempts
        self._token_factory = token_factory
        self._clock = clock

    async def create(self) -> str:
        """Insert a fresh token, regenerating on unique collisions."""
        for attempt in range(1, self.max_attempts + 1):
            token = self._token_factory()
            try:
                await self.repository.insert(token, self._clock())
            except IntegrityError:
                logger.warning(f"Session token collision (attempt {attempt}/{self.max_attempts})")
                continue
            SESSIONS_CREATED.inc()
            log_info(f"session created {redact(token)}")
            return token
        raise SessionCreateFailed(self.max_attempts)

    async def validate(self, token: str | None) -> bool:
        """Fail closed; extend the session on success."""
        if not is_well_formed(token):
            return False

        last_active = await self.repository.last_active(token)
        if last_active is None:
            return False

        now = self._clock()
        if now - as_utc(last_active) > self.ttl:
            await self.repository.delete(token)
            log_info(f"session expired {redact(token)}")
            return False

        try:
            await self.repository.touch(token, now)
        except SQLAlchemyError as e:
            logger.warning(f"Failed to touch session {redact(token)}: {type(e).__name__}")
        return True

    async def revoke(self, token: str) -> None:
        """Delete the session if present. Idempotent."""
        if not token:
            return
        removed = await self.repository.delete(token)
        if removed:
            log_info(f"session revoked {redact(token)}")

    async def sweep_expired(self) -> int:
        removed = await self.repository.delete_inactive_since(self._clock() - self.ttl)
        if removed:
            logger.info(f"Swept {removed} expired sessions")
        return removed
