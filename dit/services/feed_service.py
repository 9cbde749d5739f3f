# dit/services/feed_service.py
# Social wall: posts, like toggles and comment threads

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable

from dit.middleware.error_handler import InvalidInput
from dit.observability.metrics import LIKE_TOGGLES
from dit.repositories.comment_repository import CommentRepository
from dit.repositories.post_repository import PostRepository
from dit.services.access_gate import AccessGate
from dit.services.broker import FeedBroker, POSTS_TOPIC, comments_topic
from dit.utils.logger import log_info
from dit.utils.text import clean_author, clean_field, utcnow

logger = logging.getLogger(__name__)

POST_MAX_CHARS = 280
COMMENT_MAX_CHARS = 1000
AUTHOR_MAX_CHARS = 100
ID_MAX_CHARS = 100
TOKEN_MIN_CHARS = 16
TOKEN_MAX_CHARS = 200

Clock = Callable[[], datetime]


def validate_post_id(post_id: str | None) -> str:
    post_id = (post_id or "").strip()
    if not post_id:
        raise InvalidInput("Missing post_id")
    if len(post_id) > ID_MAX_CHARS:
        raise InvalidInput("Invalid post_id format")
    return post_id


class PostService:

    def __init__(
        self,
        repository: PostRepository,
        gate: AccessGate,
        broker: FeedBroker,
        feed_limit: int = 100,
        clock: Clock = utcnow,
    ):
        self.repository = repository
        self.gate = gate
        self.broker = broker
        self.feed_limit = feed_limit
        self._clock = clock

    async def latest(self, limit: int | None = None) -> list[dict[str, Any]]:
        limit = self.feed_limit if limit is None else max(1, min(limit, self.feed_limit))
        return await self.repository.latest(limit)

    async def create(
        self,
        content: str | None,
        author_name: str | None = None,
        care_package_code: str | None = None,
    ) -> dict[str, Any]:
        clean = clean_field(content, POST_MAX_CHARS)
        if not clean:
            raise InvalidInput("Content cannot be empty")

        # Badge only for a code that really unlocks the care package tier
        badge = await self.gate.verify_care_package(care_package_code)
        post = await self.repository.insert(
            content=clean,
            author_name=clean_author(author_name, AUTHOR_MAX_CHARS),
            care_package_code=badge,
            now=self._clock(),
        )
        self.broker.publish(POSTS_TOPIC, post)
        log_info(f"post created id={post['id']} special={bool(badge)}")
        return post


class LikeService:

    def __init__(self, repository: PostRepository, clock: Clock = utcnow):
        self.repository = repository
        self._clock = clock

    async def toggle(self, post_id: str | None, session_token: str | None) -> dict[str, Any]:
        post_id = validate_post_id(post_id)
        if not session_token:
            raise InvalidInput("Missing fields")
        if not TOKEN_MIN_CHARS <= len(session_token) <= TOKEN_MAX_CHARS:
            raise InvalidInput("Invalid token")

        result = await self.repository.toggle_like(post_id, session_token, self._clock())
        if result is None:
            raise InvalidInput("Unknown post_id")

        liked, likes = result
        LIKE_TOGGLES.labels("like" if liked else "unlike").inc()
        return {"liked": liked, "likes": likes}


class CommentService:

    def __init__(
        self,
        repository: CommentRepository,
        posts: PostRepository,
        broker: FeedBroker,
        clock: Clock = utcnow,
    ):
        self.repository = repository
        self.posts = posts
        self.broker = broker
        self._clock = clock

    async def list(self, post_id: str | None) -> list[dict[str, Any]]:
        return await self.repository.for_post(validate_post_id(post_id))

    async def create(self, post_id: str | None, content: str | None, author_name: str | None = None) -> dict[str, Any]:
        post_id = validate_post_id(post_id)
        if not content:
            raise InvalidInput("Missing fields")
        clean = clean_field(content, COMMENT_MAX_CHARS)
        if not clean:
            raise InvalidInput("Content cannot be empty")
        if not await self.posts.exists(post_id):
            raise InvalidInput("Unknown post_id")

        comment = await self.repository.insert(
            post_id=post_id,
            content=clean,
            author_name=clean_author(author_name, AUTHOR_MAX_CHARS),
            now=self._clock(),
        )
        self.broker.publish(comments_topic(post_id), comment)
        return comment
