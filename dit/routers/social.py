# dit/routers/social.py
# Social wall: posts, like toggles, comments and their live streams

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Query, Request, status
from pydantic import BaseModel

from dit.routers.deps import get_services
from dit.routers.stream import sse_response
from dit.services.broker import POSTS_TOPIC, comments_topic
from dit.services.feed_service import validate_post_id

router = APIRouter(tags=["Social"])


class PostCreateRequest(BaseModel):
    content: Optional[str] = None
    author_name: Optional[str] = None
    care_package_code: Optional[str] = None


class LikeToggleRequest(BaseModel):
    post_id: Optional[str] = None
    session_token: Optional[str] = None


class CommentCreateRequest(BaseModel):
    post_id: Optional[str] = None
    content: Optional[str] = None
    author_name: Optional[str] = None


@router.get("/posts")
async def list_posts(request: Request, limit: Optional[int] = Query(None, ge=1, le=500)) -> Dict[str, Any]:
    """Newest posts first; also the poll fallback for the live feed."""
    return {"posts": await get_services(request).posts.latest(limit)}


@router.post("/posts", status_code=status.HTTP_201_CREATED)
async def create_post(payload: PostCreateRequest, request: Request) -> Dict[str, Any]:
    post = await get_services(request).posts.create(
        payload.content, payload.author_name, payload.care_package_code
    )
    return {"ok": True, "post": post}


@router.get("/posts/stream")
async def stream_posts(request: Request):
    return sse_response(request, get_services(request).broker, POSTS_TOPIC)


@router.post("/likes/toggle")
async def toggle_like(payload: LikeToggleRequest, request: Request) -> Dict[str, Any]:
    return await get_services(request).likes.toggle(payload.post_id, payload.session_token)


@router.get("/comments")
async def list_comments(request: Request, post_id: Optional[str] = None) -> Dict[str, Any]:
    return {"comments": await get_services(request).comments.list(post_id)}


@router.post("/comments", status_code=status.HTTP_201_CREATED)
async def create_comment(payload: CommentCreateRequest, request: Request) -> Dict[str, Any]:
    await get_services(request).comments.create(payload.post_id, payload.content, payload.author_name)
    return {"ok": True}


@router.get("/comments/stream")
async def stream_comments(request: Request, post_id: Optional[str] = None):
    topic = comments_topic(validate_post_id(post_id))
    return sse_response(request, get_services(request).broker, topic)
