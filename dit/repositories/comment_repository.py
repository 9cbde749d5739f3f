# dit/repositories/comment_repository.py

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dit.models.comments_table import comments
from dit.utils.text import isoformat


class CommentRepository:
    """Append-only comment persistence."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def for_post(self, post_id: str) -> list[dict[str, Any]]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(
                    comments.c.id,
                    comments.c.post_id,
                    comments.c.author_name,
                    comments.c.content,
                    comments.c.created_at,
                )
                .where(comments.c.post_id == post_id)
                .order_by(comments.c.created_at.asc(), comments.c.id.asc())
            )
            rows = []
            for r in result.mappings().all():
                row = dict(r)
                row["created_at"] = isoformat(row["created_at"])
                rows.append(row)
            return rows

    async def insert(self, post_id: str, content: str, author_name: str, now: datetime) -> dict[str, Any]:
        row = {
            "id": str(uuid.uuid4()),
            "post_id": post_id,
            "content": content,
            "author_name": author_name,
            "created_at": now,
        }
        async with self._session_factory() as session:
            await session.execute(comments.insert().values(**row))
            await session.commit()
        row["created_at"] = isoformat(now)
        return row
