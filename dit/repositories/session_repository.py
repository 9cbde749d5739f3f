# dit/repositories/session_repository.py
# Repository for user_sessions rows

from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dit.models.sessions_table import user_sessions


class SessionRepository:
    """Persistence for opaque session tokens."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def insert(self, token: str, now: datetime) -> None:
        """Insert a new session row. Raises IntegrityError on a duplicate token."""
        async with self._session_factory() as session:
            await session.execute(
                user_sessions.insert().values(session_token=token, created_at=now, last_active=now)
            )
            await session.commit()

    async def last_active(self, token: str) -> datetime | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(user_sessions.c.last_active).where(user_sessions.c.session_token == token)
            )
            row = result.fetchone()
            return row[0] if row else None

    async def touch(self, token: str, now: datetime) -> None:
        async with self._session_factory() as session:
            await session.execute(
                update(user_sessions)
                .where(user_sessions.c.session_token == token)
                .values(last_active=now)
            )
            await session.commit()

    async def delete(self, token: str) -> int:
        async with self._session_factory() as session:
            result = await session.execute(
                delete(user_sessions).where(user_sessions.c.session_token == token)
            )
            await session.commit()
            return result.rowcount or 0

    async def delete_inactive_since(self, cutoff: datetime) -> int:
        async with self._session_factory() as session:
            result = await session.execute(
                delete(user_sessions).where(user_sessions.c.last_active < cutoff)
            )
            await session.commit()
            return result.rowcount or 0
