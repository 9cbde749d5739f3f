# dit/client/feed.py
# Live post feed: push events merged with periodic snapshots

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List

import httpx

from dit.client.http import request_with_retry

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _created_at(post: Dict[str, Any]) -> datetime:
    raw = post.get("created_at")
    if not raw:
        return _EPOCH
    try:
        value = datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
    except ValueError:
        return _EPOCH
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class FeedView:
    """
    Newest-first list of posts fed from two sources.

    Both push events and poll snapshots land here; records are keyed by id
    so a post seen twice collapses to one, the later copy winning.
    """

    def __init__(self, limit: int = 100):
        self.limit = limit
        self._posts: Dict[str, Dict[str, Any]] = {}

    def apply_event(self, post: Dict[str, Any]) -> None:
        post_id = post.get("id")
        if not post_id:
            return
        self._posts[post_id] = dict(post)
        self._trim()

    def apply_snapshot(self, posts: Iterable[Dict[str, Any]]) -> None:
        for post in posts:
            post_id = post.get("id")
            if post_id:
                self._posts[post_id] = dict(post)
        self._trim()

    def _trim(self) -> None:
        if len(self._posts) <= self.limit:
            return
        keep = self.posts
        self._posts = {p["id"]: p for p in keep}

    @property
    def posts(self) -> List[Dict[str, Any]]:
        ordered = sorted(self._posts.values(), key=_created_at, reverse=True)
        return ordered[: self.limit]

    def __len__(self) -> int:
        return len(self._posts)


class LiveFeed:
    """
    Keeps a FeedView current against the server.

    Consumes the SSE stream; once the stream fails it falls back to
    polling the snapshot endpoint every poll_interval seconds.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        view: FeedView,
        poll_interval: float = 5.0,
        base_url: str = "",
    ):
        self.client = client
        self.view = view
        self.poll_interval = poll_interval
        self.base_url = base_url.rstrip("/")
        self.polling = False
        self._stop = asyncio.Event()

    async def refresh(self) -> None:
        response = await request_with_retry(
            self.client, "GET", f"{self.base_url}/api/posts",
            params={"limit": self.view.limit},
        )
        response.raise_for_status()
        self.view.apply_snapshot(response.json().get("posts", []))

    async def _consume_stream(self) -> None:
        async with self.client.stream("GET", f"{self.base_url}/api/posts/stream", timeout=None) as response:
            response.raise_for_status()
            async for line in response.aiter_lines():
                if self._stop.is_set():
                    return
                if line.startswith("data:"):
                    self.view.apply_event(json.loads(line[len("data:"):].strip()))
        # Server closed the stream
        raise httpx.ReadError("stream closed")

    async def _poll(self) -> None:
        self.polling = True
        while not self._stop.is_set():
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.poll_interval)
                return
            except asyncio.TimeoutError:
                pass
            try:
                await self.refresh()
            except httpx.HTTPError as e:
                logger.warning(f"Feed poll failed: {e}")

    async def run(self) -> None:
        await self.refresh()
        try:
            await self._consume_stream()
        except (httpx.HTTPError, ValueError) as e:
            if self._stop.is_set():
                return
            logger.warning(f"Feed stream unavailable, polling every {self.poll_interval}s: {e}")
        await self._poll()

    def stop(self) -> None:
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

