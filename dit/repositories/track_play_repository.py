# dit/repositories/track_play_repository.py
# Repository for play analytics rows

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dit.models.track_plays_table import track_plays


class TrackPlayRepository:

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def _find_by_idempotency_key(self, key: str) -> str | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(track_plays.c.id).where(track_plays.c.idempotency_key == key)
            )
            row = result.first()
            return row[0] if row else None

    async def start(
        self,
        track_key: str,
        session_token: str | None,
        ip: str | None,
        user_agent: str | None,
        now: datetime,
        idempotency_key: str | None = None,
    ) -> str:
        """Insert a play and return its id; an idempotency_key seen before returns the existing id."""
        if idempotency_key:
            existing = await self._find_by_idempotency_key(idempotency_key)
            if existing:
                return existing

        play_id = str(uuid.uuid4())
        try:
            async with self._session_factory() as session:
                await session.execute(
                    track_plays.insert().values(
                        id=play_id,
                        track_key=track_key,
                        session_token=session_token,
                        ip=ip,
                        user_agent=user_agent,
                        ms_played=0,
                        completed=False,
                        idempotency_key=idempotency_key,
                        created_at=now,
                    )
                )
                await session.commit()
        except IntegrityError:
            # Lost a race with a concurrent start using the same key
            if idempotency_key:
                existing = await self._find_by_idempotency_key(idempotency_key)
                if existing:
                    return existing
            raise
        return play_id

    async def progress(self, play_id: str, ms_played: int) -> None:
        async with self._session_factory() as session:
            await session.execute(
                update(track_plays).where(track_plays.c.id == play_id).values(ms_played=ms_played)
            )
            await session.commit()

    async def complete(self, play_id: str, ms_played: int, now: datetime) -> None:
        async with self._session_factory() as session:
            await session.execute(
                update(track_plays)
                .where(track_plays.c.id == play_id)
                .values(completed=True, completed_at=now, ms_played=ms_played)
            )
            await session.commit()
