# dit/repositories/post_repository.py
# Repository for wall posts and the atomic like toggle

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dit.models.posts_table import posts, post_likes
from dit.utils.text import isoformat

_POST_COLUMNS = (
    posts.c.id,
    posts.c.content,
    posts.c.author_name,
    posts.c.source,
    posts.c.care_package_code,
    posts.c.likes,
    posts.c.created_at,
)


def _insert_like(dialect_name: str, **values):
    """INSERT of a like row that ignores a duplicate (post, session) pair."""
    dialect = {"postgresql": postgresql, "sqlite": sqlite}.get(dialect_name)
    if dialect is None:
        return post_likes.insert().values(**values)
    return dialect.insert(post_likes).values(**values).on_conflict_do_nothing(
        index_elements=[post_likes.c.post_id, post_likes.c.session_token]
    )


def _post_row(row) -> dict[str, Any]:
    data = dict(row)
    data["created_at"] = isoformat(data["created_at"])
    return data


class PostRepository:
    """Persistence for posts and post_likes."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def latest(self, limit: int) -> list[dict[str, Any]]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(*_POST_COLUMNS).order_by(posts.c.created_at.desc(), posts.c.id.desc()).limit(limit)
            )
            return [_post_row(r) for r in result.mappings().all()]

    async def insert(
        self,
        content: str,
        author_name: str,
        care_package_code: str | None,
        now: datetime,
        source: str = "web",
    ) -> dict[str, Any]:
        row = {
            "id": str(uuid.uuid4()),
            "content": content,
            "author_name": author_name,
            "source": source,
            "care_package_code": care_package_code,
            "likes": 0,
            "created_at": now,
        }
        async with self._session_factory() as session:
            await session.execute(posts.insert().values(**row))
            await session.commit()
        row["created_at"] = isoformat(now)
        return row

    async def exists(self, post_id: str) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(select(posts.c.id).where(posts.c.id == post_id))
            return result.first() is not None

    async def toggle_like(self, post_id: str, session_token: str, now: datetime) -> tuple[bool, int] | None:
        """
        Flip the (post, session) like and persist the recounted total.

        Check, mutation and recount run in one transaction holding the post
        row lock, so concurrent toggles on the same post are serialized and
        the denormalized counter cannot lose an update. Stores without row
        locks (sqlite) can still race two toggles of the same pair into the
        insert; the loser finds the row present and reports it as liked.
        Returns (liked, likes), or None when the post does not exist.
        """
        async with self._session_factory() as session:
            async with session.begin():
                locked = await session.execute(
                    select(posts.c.id).where(posts.c.id == post_id).with_for_update()
                )
                if locked.first() is None:
                    return None

                removed = await session.execute(
                    delete(post_likes)
                    .where(post_likes.c.post_id == post_id)
                    .where(post_likes.c.session_token == session_token)
                )
                liked = not (removed.rowcount or 0)
                if liked:
                    await session.execute(
                        _insert_like(
                            session.bind.dialect.name,
                            post_id=post_id,
                            session_token=session_token,
                            created_at=now,
                        )
                    )

                count = (await session.execute(
                    select(func.count()).select_from(post_likes).where(post_likes.c.post_id == post_id)
                )).scalar_one()
                await session.execute(update(posts).where(posts.c.id == post_id).values(likes=count))
        return liked, int(count)
